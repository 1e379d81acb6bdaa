from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from recordlock.locks.models import LockRecord, as_utc
from recordlock.locks.store import LockStore, LockStoreError
from recordlock.shared.db import init_db

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def make_lock(resource_id="001xyz", holder_name="Ana", minutes=30):
    return LockRecord(
        resource_id=resource_id,
        holder_name=holder_name,
        holder_group="QA",
        acquired_at=NOW,
        expires_at=NOW + timedelta(minutes=minutes),
    )


def test_get_absent_returns_none(store):
    assert store.get("nope") is None


def test_put_then_get(store):
    store.put(make_lock())

    lock = store.get("001xyz")
    assert lock.holder_name == "Ana"
    assert as_utc(lock.expires_at) == NOW + timedelta(minutes=30)


def test_put_overwrites_same_key(store, db):
    store.put(make_lock(holder_name="Ana"))
    store.put(make_lock(holder_name="Luis", minutes=5))

    assert db.query(LockRecord).count() == 1
    lock = store.get("001xyz")
    assert lock.holder_name == "Luis"
    assert as_utc(lock.expires_at) == NOW + timedelta(minutes=5)


def test_get_ignores_expiry(store):
    store.put(make_lock(minutes=-10))
    assert store.get("001xyz") is not None


def test_delete_is_idempotent(store):
    store.put(make_lock())
    store.delete("001xyz")
    store.delete("001xyz")
    assert store.get("001xyz") is None


def test_store_faults_surface_as_store_error():
    engine = create_engine("sqlite://")  # no tables
    with Session(engine) as db:
        broken = LockStore(db)
        with pytest.raises(LockStoreError):
            broken.get("001xyz")
        with pytest.raises(LockStoreError):
            broken.put(make_lock())
        with pytest.raises(LockStoreError):
            broken.delete("001xyz")
    engine.dispose()


def test_as_utc_attaches_timezone_to_naive_values():
    naive = datetime(2026, 1, 1, 12, 0)
    assert as_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_interleaved_puts_on_new_key_last_writer_wins(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'locks.db'}")
    init_db(engine)
    first, second = Session(engine), Session(engine)
    try:
        # both acquirers see the key free before either writes
        assert LockStore(first).get("001xyz") is None
        assert LockStore(second).get("001xyz") is None

        LockStore(first).put(make_lock(holder_name="Ana"))
        stored = LockStore(second).put(make_lock(holder_name="Luis"))

        assert stored.holder_name == "Luis"
        assert LockStore(first).get("001xyz").holder_name == "Luis"
        assert first.query(LockRecord).count() == 1
    finally:
        first.close()
        second.close()
        engine.dispose()


def test_put_returns_the_stored_row(store):
    stored = store.put(make_lock(minutes=45))
    assert stored.holder_name == "Ana"
    assert as_utc(stored.expires_at) == NOW + timedelta(minutes=45)


def test_delete_expired_only_removes_expired_rows(store):
    store.put(make_lock(minutes=-1))
    assert store.delete_expired("001xyz", NOW) is True
    assert store.get("001xyz") is None

    store.put(make_lock(minutes=30))
    assert store.delete_expired("001xyz", NOW) is False
    assert store.get("001xyz") is not None

    assert store.delete_expired("absent", NOW) is False
