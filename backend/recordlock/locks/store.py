# backend/recordlock/locks/store.py
import logging
from datetime import datetime
from sqlalchemy import delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from .models import LockRecord

logger = logging.getLogger(__name__)

# dialects with a native INSERT ... ON CONFLICT DO UPDATE
_UPSERTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


class LockStoreError(Exception):
    """Backing store failed; surfaced to callers as an internal error."""


class LockStore:
    """Keyed persistence for lock rows. Knows nothing about expiry.

    Writes are last-writer-wins: ``put`` is a single upsert on the primary key
    with no version check, ``delete`` is a no-op for an absent key.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, resource_id: str) -> LockRecord | None:
        try:
            return self.db.get(LockRecord, resource_id, populate_existing=True)
        except SQLAlchemyError as exc:
            self._fail("get", resource_id, exc)

    def put(self, record: LockRecord) -> LockRecord:
        values = {c.key: getattr(record, c.key) for c in LockRecord.__table__.columns}
        try:
            insert = _UPSERTS.get(self.db.get_bind().dialect.name)
            if insert is None:
                self.db.merge(record)
            else:
                stmt = insert(LockRecord.__table__).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=["resource_id"],
                    set_={k: stmt.excluded[k] for k in values if k != "resource_id"},
                )
                self.db.execute(stmt)
            self.db.commit()
            return self.db.get(LockRecord, record.resource_id, populate_existing=True)
        except SQLAlchemyError as exc:
            self._fail("put", record.resource_id, exc)

    def delete(self, resource_id: str) -> None:
        try:
            self.db.execute(delete(LockRecord).where(LockRecord.resource_id == resource_id))
            self.db.commit()
        except SQLAlchemyError as exc:
            self._fail("delete", resource_id, exc)

    def delete_expired(self, resource_id: str, cutoff: datetime) -> bool:
        """Delete the row only if it expired at or before ``cutoff``.

        A row rewritten by a concurrent put after the caller read it is left alone.
        """
        stmt = (
            delete(LockRecord)
            .where(LockRecord.resource_id == resource_id, LockRecord.expires_at <= cutoff)
            .execution_options(synchronize_session="fetch")
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as exc:
            self._fail("delete", resource_id, exc)
        return result.rowcount > 0

    def _fail(self, op: str, resource_id: str, exc: SQLAlchemyError):
        self.db.rollback()
        logger.error("lock store %s failed for %s: %s", op, resource_id, exc)
        raise LockStoreError(f"lock store {op} failed") from exc
