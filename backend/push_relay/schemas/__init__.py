"""Pydantic schemas for API request/response models."""
from .register import (
    RegisterRequest,
    RegisterResponse,
)
from .dispatch import (
    NetworkPayload,
    FcmPayload,
    ApnsPayload,
    WnsPayload,
    PushMessage,
    DispatchRequest,
    DispatchResponse,
)

__all__ = [
    "RegisterRequest",
    "RegisterResponse",
    "NetworkPayload",
    "FcmPayload",
    "ApnsPayload",
    "WnsPayload",
    "PushMessage",
    "DispatchRequest",
    "DispatchResponse",
]
