# backend/recordlock/locks/schemas.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from ..shared.config import settings

# body of the 404 that means "no live lock", as opposed to an unknown route
FREE_MESSAGE = "Resource is free"


class LockAcquireIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    resource_id: str = Field(min_length=1, max_length=64)
    holder_name: str = Field(min_length=1, max_length=255)
    holder_group: str = Field(min_length=1, max_length=255)
    duration_minutes: int = Field(
        default=settings.LOCK_DEFAULT_MINUTES, ge=1, le=settings.LOCK_MAX_MINUTES
    )


class LockOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    resource_id: str
    holder_name: str
    holder_group: str
    acquired_at: datetime
    expires_at: datetime
    remaining_sec: int = 0


class LockCreatedOut(BaseModel):
    message: str
    lock: LockOut


class MessageOut(BaseModel):
    message: str
