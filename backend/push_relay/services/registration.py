"""Registration manager - binds devices to a fresh dispatch token."""
import logging
import secrets
from typing import Optional

from ..errors import ValidationError
from ..models import Network
from .store import RegistrationRow, RelayStore

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16


def generate_token() -> str:
    """Unpredictable 128-bit dispatch token as 32 hex characters."""
    return secrets.token_hex(TOKEN_BYTES)


def parse_network(value: Optional[str]) -> Network:
    """Normalize a network name, rejecting unknown networks."""
    try:
        return Network((value or "").lower())
    except ValueError:
        raise ValidationError(f"Unsupported push network: {value}") from None


class RegistrationService:
    """Reconciles a device registration into the device table."""

    async def register(
        self,
        store: RelayStore,
        network: Optional[str],
        registration_id: Optional[str],
        details: Optional[dict] = None,
        address: Optional[str] = None,
    ) -> RegistrationRow:
        """Register a device (or re-register it) and rotate its dispatch token.

        The endpoint ARN of an existing device survives the rotation; no
        broker call is made until the first dispatch reaches the device.
        """
        if not registration_id:
            raise ValidationError("Missing registration_id")
        push_network = parse_network(network)

        token = generate_token()
        row = await store.upsert_device(
            network=push_network.value,
            registration_id=registration_id,
            details=details,
            address=address,
            token=token,
        )
        logger.info(
            f"Registered {push_network.value} device {registration_id[:16]}... for {address or '(no address)'}"
        )
        return row
