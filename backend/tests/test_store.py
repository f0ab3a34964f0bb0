import pytest
from sqlalchemy import event, select
from sqlalchemy.exc import OperationalError

from push_relay.errors import DependencyUnavailable
from push_relay.models import Device, Origin


class LockedCommits:
    """Engine commit hook that fails the first `times` commits as a locked database."""

    def __init__(self, engine, times: int):
        self.engine = engine.sync_engine
        self.remaining = times
        self.failed = 0

    def __call__(self, conn):
        if self.remaining:
            self.remaining -= 1
            self.failed += 1
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

    def __enter__(self):
        event.listen(self.engine, "commit", self)
        return self

    def __exit__(self, *exc):
        event.remove(self.engine, "commit", self)


@pytest.mark.asyncio
async def test_locked_commit_is_retried_with_the_statement(engine, registration, store, session):
    with LockedCommits(engine, times=1) as locked:
        row = await registration.register(store, "fcm", "fcm-1", {"app": "news"}, "example.com")

    assert locked.failed == 1
    device = (await session.execute(select(Device))).scalar_one()
    assert device.id == row.id
    assert device.current_token == row.current_token
    assert device.details == {"app": "news"}


@pytest.mark.asyncio
async def test_locked_counter_update_is_applied_once(engine, store, session):
    await store.increment_origin_count("example.com", 2)

    with LockedCommits(engine, times=2) as locked:
        await store.increment_origin_count("example.com", 3)

    assert locked.failed == 2
    count = (await session.execute(select(Origin.message_count))).scalar_one()
    assert count == 5


@pytest.mark.asyncio
async def test_lock_outlasting_retries_leaves_session_usable(engine, registration, store, session):
    with LockedCommits(engine, times=10):
        with pytest.raises(DependencyUnavailable):
            await registration.register(store, "fcm", "fcm-1", None, "example.com")

    assert (await session.execute(select(Device))).scalars().all() == []
    row = await registration.register(store, "fcm", "fcm-1", None, "example.com")
    assert row.message_count == 0


@pytest.mark.asyncio
async def test_listening_devices_survive_a_failed_write(engine, registration, store, session):
    first = await registration.register(store, "fcm", "fcm-1", None, "example.com")
    devices = await store.find_listening_devices("example.com", [first.current_token])

    with LockedCommits(engine, times=10):
        with pytest.raises(DependencyUnavailable):
            await store.update_device_endpoint(first.id, "arn:aws:sns:us-east-1:123456789012:endpoint/fcm-1")

    # Loaded attributes are still readable after the rollback
    assert devices[0].current_token == first.current_token
    assert devices[0].endpoint_arn is None
