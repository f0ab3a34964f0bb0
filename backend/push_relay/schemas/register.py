"""Registration schemas for API."""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pydantic import BaseModel, field_validator


class RegisterRequest(BaseModel):
    """Schema for a device registration request."""
    network: Optional[str] = None  # fcm, apns, wns
    registration_id: Optional[str] = None  # issued by the push network
    details: Optional[Dict[str, Any]] = None
    address: Optional[str] = None  # origin the device listens to


class RegisterResponse(BaseModel):
    """Schema for a registration result."""
    token: str
    ctime: datetime
    atime: datetime
    message_count: int

    @field_validator("ctime", "atime")
    @classmethod
    def as_utc(cls, value: datetime) -> datetime:
        # Stored times are naive UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
