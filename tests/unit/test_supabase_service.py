"""Unit tests for the Supabase-backed session store with a mocked client."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from playsync.core.exceptions import SessionNotFoundException, VersionConflictException
from playsync.models import DeviceInfo
from playsync.services.supabase_service import (
    MAX_WRITE_ATTEMPTS,
    REGISTER_DEVICE_FUNCTION,
    SESSION_TABLE,
    SupabaseSessionStore,
)


def _result(data):
    return MagicMock(data=data)


@pytest.fixture
def supabase_store(mock_supabase_client):
    return SupabaseSessionStore(mock_supabase_client)


@pytest.fixture
def query(mock_supabase_client):
    """The shared query builder returned by client.table()."""
    return mock_supabase_client.table.return_value


def _select_execute(query):
    return query.select.return_value.eq.return_value.limit.return_value.execute


def _update_execute(query):
    return query.update.return_value.eq.return_value.eq.return_value.execute


@pytest.mark.asyncio
async def test_get_or_create_inserts_ignoring_duplicates(supabase_store, mock_supabase_client, query, session_row):
    """Creation is an upsert that leaves an existing row alone."""
    _select_execute(query).return_value = _result([session_row()])

    session = await supabase_store.get_or_create("s1", owner_id="1")

    mock_supabase_client.table.assert_any_call(SESSION_TABLE)
    row = query.upsert.call_args.args[0]
    assert row["session_id"] == "s1"
    assert row["volume"] == 0.7
    assert query.upsert.call_args.kwargs == {"on_conflict": "session_id", "ignore_duplicates": True}
    assert session.session_id == "s1"


@pytest.mark.asyncio
async def test_get_or_create_returns_stored_row(supabase_store, query, session_row):
    """The stored row wins over the defaults that were offered for insert."""
    _select_execute(query).return_value = _result([session_row(volume=0.25, is_playing=True)])

    session = await supabase_store.get_or_create("s1")

    assert session.volume == 0.25
    assert session.is_playing is True


@pytest.mark.asyncio
async def test_get_or_create_generates_id(supabase_store, query, session_row):
    """Without an id a fresh one is inserted."""
    _select_execute(query).return_value = _result([session_row()])

    await supabase_store.get_or_create(None)

    row = query.upsert.call_args.args[0]
    assert row["session_id"]
    assert row["session_id"] != "s1"


@pytest.mark.asyncio
async def test_find_missing_row_raises(supabase_store, query):
    """An empty select result means the session does not exist."""
    _select_execute(query).return_value = _result([])

    with pytest.raises(SessionNotFoundException):
        await supabase_store.find("missing")


@pytest.mark.asyncio
async def test_find_tolerates_null_devices(supabase_store, query, session_row):
    """A null connected_devices column reads as no devices."""
    row = session_row()
    row["connected_devices"] = None
    _select_execute(query).return_value = _result([row])

    session = await supabase_store.find("s1")

    assert session.connected_devices == {}


@pytest.mark.asyncio
async def test_save_upserts_full_row(supabase_store, query, session_row):
    """save() upserts every column keyed by session_id."""
    _select_execute(query).return_value = _result([session_row()])
    session = await supabase_store.find("s1")

    await supabase_store.save(session)

    assert query.upsert.call_args.args[0]["session_id"] == "s1"
    assert query.upsert.call_args.kwargs == {"on_conflict": "session_id"}


@pytest.mark.asyncio
async def test_update_fields_writes_only_given_columns(supabase_store, query, session_row):
    """Only present fields and the bumped version are sent, guarded by the read version."""
    _select_execute(query).return_value = _result([session_row(version=3)])
    _update_execute(query).return_value = _result([session_row(version=4, volume=0.3)])
    synced_at = datetime(2025, 12, 12, 10, 0, tzinfo=timezone.utc)

    session = await supabase_store.update_fields("s1", {"volume": 0.3, "last_sync_at": synced_at})

    assert query.update.call_args.args[0] == {
        "volume": 0.3,
        "last_sync_at": synced_at.isoformat(),
        "version": 4,
    }
    query.update.return_value.eq.assert_called_with("session_id", "s1")
    query.update.return_value.eq.return_value.eq.assert_called_with("version", 3)
    assert session.version == 4
    assert session.volume == 0.3


@pytest.mark.asyncio
async def test_update_fields_retries_lost_race(supabase_store, query, session_row):
    """Without an expected version a concurrent write is retried on the fresh version."""
    _select_execute(query).side_effect = [
        _result([session_row(version=1)]),
        _result([session_row(version=2)]),
    ]
    _update_execute(query).side_effect = [
        _result([]),
        _result([session_row(version=3, volume=0.3)]),
    ]

    session = await supabase_store.update_fields("s1", {"volume": 0.3})

    assert session.version == 3
    assert query.update.call_count == 2


@pytest.mark.asyncio
async def test_update_fields_gives_up_after_max_attempts(supabase_store, query, session_row):
    """Persistent contention surfaces as a conflict."""
    _select_execute(query).return_value = _result([session_row(version=1)])
    _update_execute(query).return_value = _result([])

    with pytest.raises(VersionConflictException):
        await supabase_store.update_fields("s1", {"volume": 0.3})

    assert query.update.call_count == MAX_WRITE_ATTEMPTS


@pytest.mark.asyncio
async def test_update_fields_stale_expected_version(supabase_store, query, session_row):
    """A stale expected version is rejected before writing."""
    _select_execute(query).return_value = _result([session_row(version=5)])

    with pytest.raises(VersionConflictException) as exc_info:
        await supabase_store.update_fields("s1", {"volume": 0.3}, expected_version=4)

    assert exc_info.value.actual_version == 5
    query.update.assert_not_called()


@pytest.mark.asyncio
async def test_update_fields_unknown_session(supabase_store, query):
    """Updating a missing row raises SessionNotFoundException without writing."""
    _select_execute(query).return_value = _result([])

    with pytest.raises(SessionNotFoundException):
        await supabase_store.update_fields("missing", {"volume": 0.3})

    query.update.assert_not_called()


@pytest.mark.asyncio
async def test_put_device_calls_register_function(supabase_store, mock_supabase_client):
    """Device upsert goes through the register_playback_device SQL function."""
    device = DeviceInfo(device_id="devA", display_name="Desktop", device_type="web")
    mock_supabase_client.rpc.return_value.execute.return_value = _result(
        {"devA": device.model_dump(mode="json")}
    )

    devices = await supabase_store.put_device("s1", device)

    name, params = mock_supabase_client.rpc.call_args.args
    assert name == REGISTER_DEVICE_FUNCTION
    assert params["p_session_id"] == "s1"
    assert params["p_device_id"] == "devA"
    assert params["p_device"]["display_name"] == "Desktop"
    assert devices["devA"].display_name == "Desktop"


@pytest.mark.asyncio
async def test_put_device_unknown_session(supabase_store, mock_supabase_client):
    """The SQL function returns null when no row matched."""
    mock_supabase_client.rpc.return_value.execute.return_value = _result(None)

    with pytest.raises(SessionNotFoundException):
        await supabase_store.put_device(
            "missing", DeviceInfo(device_id="devA", display_name="Desktop", device_type="web")
        )
