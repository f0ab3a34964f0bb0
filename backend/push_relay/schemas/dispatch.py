"""Dispatch schemas for API."""
import json
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from ..models.device import Network


class NetworkPayload(BaseModel):
    """Message body and SNS message attributes for one push network."""
    body: Any = None
    attributes: Optional[Dict[str, Any]] = None

    def serialized_body(self) -> str:
        """Strings pass through unchanged; anything else is sent as JSON."""
        if isinstance(self.body, str):
            return self.body
        return json.dumps(self.body)


class FcmPayload(NetworkPayload):
    """Firebase Cloud Messaging payload."""


class ApnsPayload(NetworkPayload):
    """Apple Push Notification service payload."""


class WnsPayload(NetworkPayload):
    """Windows Push Notification Services payload."""


class PushMessage(BaseModel):
    """One message addressed to a list of dispatch tokens."""
    tokens: List[str] = Field(default_factory=list)
    fcm: Optional[FcmPayload] = None
    apns: Optional[ApnsPayload] = None
    wns: Optional[WnsPayload] = None

    def payload_for(self, network: Network) -> Optional[NetworkPayload]:
        """Pick the payload meant for a device's network."""
        if network is Network.FCM:
            return self.fcm
        if network is Network.APNS:
            return self.apns
        if network is Network.WNS:
            return self.wns
        return None


class DispatchRequest(BaseModel):
    """Schema for a dispatch request from an origin."""
    signature: Optional[str] = None
    address: Optional[str] = None
    messages: Optional[List[PushMessage]] = None


class DispatchResponse(BaseModel):
    """Outcome of a dispatch; both fields are left out when empty."""
    invalid_tokens: Optional[List[str]] = None
    errors: Optional[List[str]] = None
