"""Relay store - parameterized statements against the origin and device tables.

Every mutation is a single statement so concurrent registrations and
dispatches for the same key cannot lose updates.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import OperationalError, InterfaceError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import DependencyUnavailable
from ..models import Device, Origin
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)


@dataclass
class RegistrationRow:
    """Columns returned by a device upsert."""
    id: int
    current_token: str
    ctime: datetime
    atime: datetime
    message_count: int


class RelayStore:
    """Executes the relay's queries and commands in one session."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _insert(self):
        # ON CONFLICT support lives in the dialect-specific insert constructs
        if self._session.bind.dialect.name == "postgresql":
            return postgresql.insert
        return sqlite.insert

    async def _execute(self, statement):
        try:
            return await self._session.execute(statement)
        except (OperationalError, InterfaceError, OSError) as e:
            await self._session.rollback()
            raise DependencyUnavailable(f"Database error: {e}") from e

    async def _write(self, statement, fetch=None):
        """Execute and commit one statement, retrying both on lock contention.

        `fetch` reads what is needed from the result before the commit.
        """
        async def attempt():
            result = await self._session.execute(statement)
            rows = fetch(result) if fetch is not None else None
            await self._session.commit()
            return rows

        return await retry_on_lock(attempt, rollback=self._session.rollback)

    async def upsert_device(
        self,
        network: str,
        registration_id: str,
        details: Optional[dict],
        address: Optional[str],
        token: str,
    ) -> RegistrationRow:
        """Bind a device to a new listening address, creating it if needed.

        Existing details are kept unless new ones are given; the endpoint
        ARN is never touched here.
        """
        insert = self._insert()
        now = datetime.utcnow()
        stmt = insert(Device).values(
            network=network,
            registration_id=registration_id,
            details=details if details is not None else {},
            current_address=address,
            current_token=token,
            message_count=0,
            ctime=now,
            atime=now,
        )
        changes = {
            "current_address": stmt.excluded.current_address,
            "current_token": stmt.excluded.current_token,
            "atime": now,
        }
        if details is not None:
            changes["details"] = stmt.excluded.details
        stmt = stmt.on_conflict_do_update(
            index_elements=["network", "registration_id"],
            set_=changes,
        ).returning(
            Device.id,
            Device.current_token,
            Device.ctime,
            Device.atime,
            Device.message_count,
        )
        row = await self._write(stmt, fetch=lambda result: result.one())
        return RegistrationRow(
            id=row.id,
            current_token=row.current_token,
            ctime=row.ctime,
            atime=row.atime,
            message_count=row.message_count,
        )

    async def find_listening_devices(self, address: str, tokens: List[str]) -> List[Device]:
        """Find devices currently bound to the address with one of the tokens."""
        if not tokens:
            return []
        result = await self._execute(
            select(Device)
            .where(Device.current_address == address, Device.current_token.in_(tokens))
            .order_by(Device.id)
        )
        devices = list(result.scalars().all())
        # Detached copies survive a rollback of a later write in this session
        for device in devices:
            self._session.expunge(device)
        return devices

    async def get_device_endpoint(self, device_id: int) -> Optional[str]:
        """Read the stored endpoint ARN of a device."""
        result = await self._execute(
            select(Device.endpoint_arn).where(Device.id == device_id)
        )
        return result.scalar_one_or_none()

    async def update_device_endpoint(self, device_id: int, endpoint_arn: str) -> None:
        """Store the broker endpoint created for a device."""
        await self._write(
            update(Device)
            .where(Device.id == device_id)
            .values(endpoint_arn=endpoint_arn)
            .execution_options(synchronize_session=False)
        )

    async def increment_origin_count(self, address: str, count: int) -> None:
        """Add to an origin's message count, creating the origin if absent."""
        insert = self._insert()
        now = datetime.utcnow()
        stmt = insert(Origin).values(
            address=address,
            message_count=count,
            ctime=now,
            atime=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["address"],
            set_={
                "message_count": Origin.message_count + stmt.excluded.message_count,
                "atime": now,
            },
        )
        await self._write(stmt)

    async def increment_device_counts(self, count: int, device_ids: List[int]) -> None:
        """Add the same amount to the message count of several devices."""
        if not device_ids:
            return
        await self._write(
            update(Device)
            .where(Device.id.in_(device_ids))
            .values(message_count=Device.message_count + count, atime=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
