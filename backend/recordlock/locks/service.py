# backend/recordlock/locks/service.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable
from .models import LockRecord, as_utc
from .schemas import LockAcquireIn, LockOut
from .store import LockStore

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class LockService:
    """Lock state machine over a LockStore.

    A resource is Free when no live row exists and Locked otherwise. Expired
    rows are reaped lazily by ``check``; there is no background sweeper, so a
    row that is never read again stays in storage.
    """

    def __init__(self, store: LockStore, clock: Callable[[], datetime] = _now):
        self.store = store
        self.clock = clock

    def check(self, resource_id: str) -> LockRecord | None:
        now = self.clock()
        lock = self.store.get(resource_id)
        if lock is None:
            return None
        if lock.is_live(now):
            return lock
        # a stale row must never be reported as Locked
        holder = lock.holder_name
        if self.store.delete_expired(resource_id, now):
            logger.info("expired lock evicted for %s (held by %s)", resource_id, holder)
            return None
        # re-acquired between our read and the eviction
        lock = self.store.get(resource_id)
        if lock is not None and lock.is_live(now):
            return lock
        return None

    def acquire(self, req: LockAcquireIn) -> LockRecord:
        # last acquire wins, even over a live lock held by someone else
        now = self.clock()
        previous = self.store.get(req.resource_id)
        if previous is not None and previous.is_live(now) and previous.holder_name != req.holder_name:
            logger.info(
                "lock on %s taken over from %s by %s",
                req.resource_id,
                previous.holder_name,
                req.holder_name,
            )

        lock = LockRecord(
            resource_id=req.resource_id,
            holder_name=req.holder_name,
            holder_group=req.holder_group,
            acquired_at=now,
            expires_at=now + timedelta(minutes=req.duration_minutes),
        )
        stored = self.store.put(lock)
        logger.info(
            "lock acquired on %s by %s (%s) for %d min",
            req.resource_id,
            req.holder_name,
            req.holder_group,
            req.duration_minutes,
        )
        return stored

    def release(self, resource_id: str) -> None:
        self.store.delete(resource_id)
        logger.info("lock released on %s", resource_id)

    def to_out(self, lock: LockRecord) -> LockOut:
        expires_at = as_utc(lock.expires_at)
        rem = int((expires_at - self.clock()).total_seconds())
        return LockOut(
            resource_id=lock.resource_id,
            holder_name=lock.holder_name,
            holder_group=lock.holder_group,
            acquired_at=as_utc(lock.acquired_at),
            expires_at=expires_at,
            remaining_sec=max(rem, 0),
        )
