"""Device model - one row per push-network registration token."""
import enum
from datetime import datetime
from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, JSON, String, UniqueConstraint

from ..database import Base


class Network(str, enum.Enum):
    """Push networks a device can register from."""
    FCM = "fcm"
    APNS = "apns"
    WNS = "wns"


class Device(Base):
    """Registered device and its current listening address."""

    __tablename__ = "device"
    __table_args__ = (
        UniqueConstraint("network", "registration_id", name="uq_device_network_registration_id"),
        Index("ix_device_current_address_token", "current_address", "current_token"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    ctime = Column(DateTime, default=datetime.utcnow, nullable=False)
    atime = Column(DateTime, default=datetime.utcnow, nullable=False)
    network = Column(String(16), nullable=False)  # fcm, apns, wns
    registration_id = Column(String(1024), nullable=False)
    details = Column(JSON, nullable=False, default=dict)
    endpoint_arn = Column(String(2048), nullable=True)  # set on first delivery
    current_address = Column(String(256), nullable=True)
    current_token = Column(String(32), nullable=True)
    message_count = Column(BigInteger, default=0, nullable=False)
