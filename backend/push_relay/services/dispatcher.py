"""Dispatch engine - fans an origin's messages out to listening devices."""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import DeliveryError, DependencyUnavailable, SignatureRejected, ValidationError
from ..models import Device, Network
from ..schemas.dispatch import PushMessage
from .broker import Broker
from .endpoints import EndpointProvisioner
from .rate_limiter import RateLimiter
from .signature import AcceptAllVerifier, SignatureVerifier
from .statistics import StatisticsService
from .store import RelayStore

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Tokens nobody listens on, and the distinct delivery errors."""
    invalid_tokens: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


class DispatchService:
    """Checks, resolves and delivers a batch of messages for one origin."""

    def __init__(
        self,
        broker: Broker,
        provisioner: EndpointProvisioner,
        rate_limiter: RateLimiter,
        verifier: Optional[SignatureVerifier] = None,
        statistics: Optional[StatisticsService] = None,
    ):
        self.broker = broker
        self.provisioner = provisioner
        self.rate_limiter = rate_limiter
        self.verifier = verifier or AcceptAllVerifier()
        self.statistics = statistics or StatisticsService()

    async def dispatch(
        self,
        store: RelayStore,
        address: Optional[str],
        signature: Optional[str],
        messages: Optional[List[PushMessage]],
    ) -> DispatchResult:
        """Deliver messages to every device listening on the address.

        A failed delivery to one device is recorded in `errors` and never
        stops delivery to the others.
        """
        if not signature or not address or messages is None:
            raise ValidationError("Missing signature, address or messages")

        if not await self.verifier.verify(address, signature):
            logger.warning(f"Signature rejected for {address}")
            raise SignatureRejected()

        # Costs one unit per message, however many recipients it has
        self.rate_limiter.check_and_consume(address, len(messages))

        recipient_tokens = list(dict.fromkeys(
            token for message in messages for token in message.tokens
        ))
        devices = await store.find_listening_devices(address, recipient_tokens)

        valid_tokens = set()
        message_counts: Dict[int, int] = {}
        errors: List[str] = []
        for device in devices:
            valid_tokens.add(device.current_token)
            device_messages = [m for m in messages if device.current_token in m.tokens]
            message_counts[device.id] = await self._send_messages(store, device, device_messages, errors)

        await self.statistics.record(store, address, message_counts)

        invalid_tokens = [token for token in recipient_tokens if token not in valid_tokens]
        if errors:
            logger.warning(f"Dispatch from {address}: {len(errors)} delivery failures")
        logger.info(
            f"Dispatched {len(messages)} messages from {address} to {len(devices)} devices "
            f"({len(invalid_tokens)} invalid tokens)"
        )
        return DispatchResult(
            invalid_tokens=invalid_tokens,
            errors=list(dict.fromkeys(errors)),
        )

    async def _send_messages(
        self,
        store: RelayStore,
        device: Device,
        messages: List[PushMessage],
        errors: List[str],
    ) -> int:
        """Send messages to one device in order; returns how many were attempted."""
        attempted = 0
        for message in messages:
            attempted += 1
            try:
                await self._send_message(store, device, message)
            except DependencyUnavailable:
                raise
            except DeliveryError as e:
                logger.warning(f"Delivery to device {device.id} failed: {e}")
                errors.append(str(e))
            except Exception as e:
                logger.exception(f"Unexpected error delivering to device {device.id}")
                errors.append(str(e) or type(e).__name__)
        return attempted

    async def _send_message(self, store: RelayStore, device: Device, message: PushMessage) -> str:
        network = Network(device.network)
        payload = message.payload_for(network)
        if payload is None:
            raise DeliveryError(f"Missing payload for push network: {network.value}")

        endpoint_arn = await self.provisioner.ensure_endpoint(store, device)
        return await self.broker.publish(
            endpoint_arn,
            self.provisioner.applications.protocol_for(network),
            payload.serialized_body(),
            payload.attributes,
        )
