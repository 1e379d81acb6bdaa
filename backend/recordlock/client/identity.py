# backend/recordlock/client/identity.py
import logging
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from ..shared.config import settings

logger = logging.getLogger(__name__)


class ClientIdentity(BaseModel):
    """Who is asking for locks. Self-reported, never verified."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str
    group: str
    duration_minutes: int = Field(default=settings.LOCK_DEFAULT_MINUTES, ge=1)


class IdentityCache:
    """Last-used identity on local disk, used only to prefill the acquire form."""

    def __init__(self, path: str | Path = settings.IDENTITY_CACHE_PATH):
        self.path = Path(path)

    def load(self) -> ClientIdentity | None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("could not read identity cache %s: %s", self.path, exc)
            return None
        try:
            return ClientIdentity.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("ignoring unreadable identity cache %s: %s", self.path, exc)
            return None

    def save(self, identity: ClientIdentity) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(identity.model_dump_json(), encoding="utf-8")
