# backend/recordlock/deps.py
from typing import Iterator
from fastapi import Depends
from sqlalchemy.orm import Session
from .shared.db import SessionLocal
from .locks.service import LockService
from .locks.store import LockStore


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_lock_service(db: Session = Depends(get_db)) -> LockService:
    return LockService(LockStore(db))
