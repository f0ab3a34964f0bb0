"""Endpoint provisioner - lazily creates a broker endpoint per device."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy.orm.attributes import set_committed_value

from ..config import Settings
from ..errors import DeliveryError
from ..models import Device, Network
from .broker import Broker
from .store import RelayStore

logger = logging.getLogger(__name__)


@dataclass
class PlatformApplications:
    """SNS platform application ARN for each push network."""
    fcm_arn: Optional[str] = None
    apns_arn: Optional[str] = None
    wns_arn: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PlatformApplications":
        return cls(
            fcm_arn=settings.fcm_arn,
            apns_arn=settings.apns_arn,
            wns_arn=settings.wns_arn,
        )

    def arn_for(self, network: Network) -> str:
        """Application a device of this network is registered under."""
        if network is Network.FCM:
            arn = self.fcm_arn
        elif network is Network.APNS:
            arn = self.apns_arn
        else:
            arn = self.wns_arn
        if not arn:
            raise DeliveryError(f"No platform application configured for push network: {network.value}")
        return arn

    def protocol_for(self, network: Network) -> str:
        """Key SNS expects for the network's message in a JSON-structured publish."""
        if network is Network.FCM:
            return "GCM"
        if network is Network.APNS:
            # Sandbox applications only accept sandbox messages
            if self.apns_arn and "SANDBOX" in self.apns_arn:
                return "APNS_SANDBOX"
            return "APNS"
        return "WNS"


class EndpointProvisioner:
    """Returns a device's endpoint ARN, creating it on first use.

    Concurrent first-time calls for one device in this process share a lock,
    so the broker is asked only once.
    """

    def __init__(self, broker: Broker, applications: PlatformApplications):
        self.broker = broker
        self.applications = applications
        self._locks: Dict[int, asyncio.Lock] = {}
        self._waiting: Dict[int, int] = {}

    async def ensure_endpoint(self, store: RelayStore, device: Device) -> str:
        """Get the endpoint ARN of a device, provisioning one if it has none."""
        if device.endpoint_arn:
            return device.endpoint_arn

        lock = self._locks.get(device.id)
        if lock is None:
            lock = self._locks[device.id] = asyncio.Lock()
        self._waiting[device.id] = self._waiting.get(device.id, 0) + 1
        try:
            async with lock:
                endpoint_arn = await store.get_device_endpoint(device.id)
                if not endpoint_arn:
                    application_arn = self.applications.arn_for(Network(device.network))
                    endpoint_arn = await self.broker.create_platform_endpoint(
                        application_arn, device.registration_id
                    )
                    await store.update_device_endpoint(device.id, endpoint_arn)
                    logger.info(f"Created {device.network} endpoint for device {device.id}")
        finally:
            self._waiting[device.id] -= 1
            if not self._waiting[device.id]:
                del self._waiting[device.id]
                del self._locks[device.id]

        # Already persisted, so don't let the session flush it again
        set_committed_value(device, "endpoint_arn", endpoint_arn)
        return endpoint_arn
