"""Origin model - usage statistics per sending address."""
from datetime import datetime
from sqlalchemy import BigInteger, Column, DateTime, Integer, String

from ..database import Base


class Origin(Base):
    """A domain or address that dispatches messages."""

    __tablename__ = "origin"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ctime = Column(DateTime, default=datetime.utcnow, nullable=False)
    atime = Column(DateTime, default=datetime.utcnow, nullable=False)
    address = Column(String(256), unique=True, nullable=False, index=True)
    message_count = Column(BigInteger, default=0, nullable=False)
