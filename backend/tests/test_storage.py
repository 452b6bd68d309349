"""Tests for the key-value activity store."""

import pytest

from stridesync.models import StoreEntry
from stridesync.services.normalizer import normalize_activity
from stridesync.services.storage import ActivityStore


@pytest.fixture
def stored_activities(raw_activity):
    activities = [normalize_activity(raw_activity(i)) for i in (3, 1, 2)]
    activities[1]["average_heartrate"] = None
    return activities


def test_activities_round_trip(store, stored_activities):
    store.set_activities(stored_activities)

    assert store.get_activities() == stored_activities


def test_empty_list_round_trip(store):
    store.set_activities([])

    assert store.get_activities() == []


def test_overwrite_replaces_previous_list(store, stored_activities):
    store.set_activities(stored_activities)
    store.set_activities(stored_activities[:1])

    assert store.get_activities() == stored_activities[:1]


def test_defaults_when_nothing_stored(store):
    assert store.get_activities() == []
    assert store.get_sync_timestamp() is None
    assert store.get_auth_token() is None
    assert store.get_storage_size() == "0.00 KB"


def test_timestamp_and_token(store):
    store.set_sync_timestamp(1736150400000)
    store.set_auth_token("tok")

    assert store.get_sync_timestamp() == 1736150400000
    assert store.get_auth_token() == "tok"


def test_clear_all(store, stored_activities):
    store.set_activities(stored_activities)
    store.set_sync_timestamp(1)
    store.set_auth_token("tok")

    store.clear_all()

    assert store.get_activities() == []
    assert store.get_sync_timestamp() is None
    assert store.get_auth_token() is None


def test_corrupt_activities_read_as_empty(store, session_factory):
    db = session_factory()
    db.add(StoreEntry(key=ActivityStore.ACTIVITIES_KEY, value="{not json"))
    db.commit()
    db.close()

    assert store.get_activities() == []


def test_storage_size(store):
    store.set_activities([{"id": 1, "name": "x" * 2048}])

    size = store.get_storage_size()

    assert size.endswith(" KB")
    assert float(size.split()[0]) > 2.0


def test_unavailable_store_is_a_no_op(stored_activities):
    store = ActivityStore()

    store.set_activities(stored_activities)
    store.set_sync_timestamp(5)
    store.set_auth_token("tok")
    store.clear_all()

    assert not store.available
    assert store.get_activities() == []
    assert store.get_sync_timestamp() is None
    assert store.get_auth_token() is None
    assert store.get_storage_size() == "0 KB"


def test_database_errors_are_swallowed(broken_store, stored_activities):
    broken_store.set_activities(stored_activities)
    broken_store.set_auth_token("tok")
    broken_store.set_sync_timestamp(1)
    broken_store.clear_all()

    assert broken_store.get_activities() == []
    assert broken_store.get_auth_token() is None
    assert broken_store.get_sync_timestamp() is None
    assert broken_store.get_storage_size() == "0 KB"
