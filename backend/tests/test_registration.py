import re

import pytest
from sqlalchemy import func, select

from push_relay.errors import ValidationError
from push_relay.models import Device
from push_relay.services.registration import generate_token


def test_generate_token_is_32_hex_characters():
    token = generate_token()
    assert re.fullmatch(r"[0-9a-f]{32}", token)
    assert generate_token() != token


@pytest.mark.asyncio
async def test_register_creates_device(registration, store, session):
    row = await registration.register(
        store,
        network="fcm",
        registration_id="fcm-registration-1",
        details={"app": "news"},
        address="example.com",
    )

    assert re.fullmatch(r"[0-9a-f]{32}", row.current_token)
    assert row.message_count == 0
    assert row.ctime is not None and row.atime is not None

    device = (await session.execute(select(Device))).scalar_one()
    assert device.network == "fcm"
    assert device.registration_id == "fcm-registration-1"
    assert device.details == {"app": "news"}
    assert device.current_address == "example.com"
    assert device.current_token == row.current_token
    assert device.endpoint_arn is None


@pytest.mark.asyncio
async def test_reregistration_rotates_binding(registration, store, session):
    first = await registration.register(store, "apns", "apns-token", None, "first.example.com")
    second = await registration.register(store, "apns", "apns-token", None, "second.example.com")

    assert first.current_token != second.current_token
    assert first.id == second.id

    count = (await session.execute(select(func.count()).select_from(Device))).scalar_one()
    assert count == 1
    result = await session.execute(select(Device.current_address, Device.current_token))
    address, token = result.one()
    assert address == "second.example.com"
    assert token == second.current_token


@pytest.mark.asyncio
async def test_reregistration_keeps_details_and_endpoint(registration, store, session):
    row = await registration.register(store, "wns", "wns-channel", {"locale": "fr"}, "example.com")
    await store.update_device_endpoint(row.id, "arn:aws:sns:us-east-1:123456789012:endpoint/WNS/relay/1")

    await registration.register(store, "wns", "wns-channel", None, "example.com")

    result = await session.execute(select(Device.details, Device.endpoint_arn))
    details, endpoint_arn = result.one()
    assert details == {"locale": "fr"}
    assert endpoint_arn == "arn:aws:sns:us-east-1:123456789012:endpoint/WNS/relay/1"


@pytest.mark.asyncio
async def test_reregistration_replaces_details_when_given(registration, store, session):
    await registration.register(store, "fcm", "fcm-registration", {"locale": "fr"}, "example.com")
    await registration.register(store, "fcm", "fcm-registration", {"locale": "de"}, "example.com")

    details = (await session.execute(select(Device.details))).scalar_one()
    assert details == {"locale": "de"}


@pytest.mark.asyncio
async def test_same_registration_id_on_other_network_is_another_device(registration, store, session):
    await registration.register(store, "fcm", "shared-id", None, "example.com")
    await registration.register(store, "wns", "shared-id", None, "example.com")

    count = (await session.execute(select(func.count()).select_from(Device))).scalar_one()
    assert count == 2


@pytest.mark.asyncio
async def test_network_name_is_case_insensitive(registration, store, session):
    await registration.register(store, "APNS", "apns-token", None, None)

    network, address = (await session.execute(select(Device.network, Device.current_address))).one()
    assert network == "apns"
    assert address is None


@pytest.mark.asyncio
@pytest.mark.parametrize("network, registration_id", [
    ("fcm", None),
    ("fcm", ""),
    ("gcm", "some-token"),
    (None, "some-token"),
])
async def test_register_rejects_invalid_input(registration, store, session, network, registration_id):
    with pytest.raises(ValidationError):
        await registration.register(store, network, registration_id, None, "example.com")

    count = (await session.execute(select(func.count()).select_from(Device))).scalar_one()
    assert count == 0
