"""Database models."""
from .origin import Origin
from .device import Device, Network

__all__ = ["Origin", "Device", "Network"]
