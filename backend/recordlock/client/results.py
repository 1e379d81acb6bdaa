# backend/recordlock/client/results.py
from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Optional, Union
from ..locks.schemas import LockOut


class FailureKind(str, enum.Enum):
    VALIDATION = "validation"
    COMMUNICATION = "communication"
    INTERNAL = "internal"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class LockFree:
    pass


@dataclass(frozen=True)
class LockHeld:
    lock: LockOut


@dataclass(frozen=True)
class Acquired:
    lock: LockOut


@dataclass(frozen=True)
class Released:
    pass


@dataclass(frozen=True)
class LockFailure:
    kind: FailureKind
    message: str
    status_code: Optional[int] = None


CheckResult = Union[LockFree, LockHeld, LockFailure]
AcquireResult = Union[Acquired, LockFailure]
ReleaseResult = Union[Released, LockFailure]
