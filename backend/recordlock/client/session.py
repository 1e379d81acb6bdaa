# backend/recordlock/client/session.py
"""Client-side lock flow for one UI host.

The host tells the session which resource is on screen, answers prompts and
renders ``LockView`` values. The session talks to the service through a
``LockApiClient`` and never updates displayed lock fields optimistically:
after every successful acquire or release it checks again.

Navigation is the only form of cancellation. Each call remembers the resource
it started for; if the host has moved on by the time the response arrives,
the response is dropped.
"""
from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from ..locks.schemas import LockOut
from .identity import ClientIdentity, IdentityCache
from .results import FailureKind, LockFailure, LockFree, LockHeld
from .transport import LockApiClient

logger = logging.getLogger(__name__)


class ViewState(str, enum.Enum):
    CHECKING = "checking"
    FREE = "free"
    LOCKED = "locked"
    BUSY = "busy"
    ERROR = "error"


class ViewAction(str, enum.Enum):
    ACQUIRE = "acquire"
    RELEASE = "release"
    RETRY_CHECK = "retry_check"
    RETRY_ACQUIRE = "retry_acquire"
    RETRY_RELEASE = "retry_release"


@dataclass(frozen=True)
class LockView:
    resource_id: str
    state: ViewState
    lock: Optional[LockOut] = None
    message: Optional[str] = None
    action: Optional[ViewAction] = None


class LockHost(Protocol):
    def ask_identity(
        self, resource_id: str, defaults: Optional[ClientIdentity]
    ) -> Optional[ClientIdentity]:
        """Show the acquire form. None means the user cancelled."""
        ...

    def confirm(self, message: str) -> bool:
        ...

    def render(self, view: LockView) -> None:
        ...


def describe_failure(failure: LockFailure) -> str:
    if failure.kind == FailureKind.VALIDATION:
        return failure.message
    if failure.kind == FailureKind.COMMUNICATION:
        return f"Could not reach the lock service: {failure.message}"
    if failure.kind == FailureKind.INTERNAL:
        return f"Lock service error ({failure.status_code}): {failure.message}"
    return f"Unexpected response ({failure.status_code}): {failure.message}"


class LockSession:
    def __init__(
        self,
        client: LockApiClient,
        host: LockHost,
        identity: Optional[ClientIdentity] = None,
        cache: Optional[IdentityCache] = None,
    ):
        self.client = client
        self.host = host
        self.identity = identity
        self.cache = cache
        self.active_resource_id: Optional[str] = None
        self.view: Optional[LockView] = None
        self._pending_identity: Optional[ClientIdentity] = None

    @classmethod
    def from_cache(cls, client: LockApiClient, host: LockHost, cache: IdentityCache) -> "LockSession":
        """Start a session with the identity last used on this machine."""
        return cls(client, host, identity=cache.load(), cache=cache)

    # -- navigation -------------------------------------------------------

    def set_active(self, resource_id: Optional[str]) -> None:
        if resource_id != self.active_resource_id:
            self.view = None
            self._pending_identity = None
        self.active_resource_id = resource_id

    async def navigate(self, resource_id: Optional[str]) -> Optional[LockView]:
        self.set_active(resource_id)
        return await self.refresh()

    def _show(self, view: LockView) -> LockView:
        self.view = view
        self.host.render(view)
        return view

    def _is_stale(self, resource_id: str, op: str) -> bool:
        if self.active_resource_id != resource_id:
            logger.debug(
                "dropping %s response for %s (now showing %s)", op, resource_id, self.active_resource_id
            )
            return True
        return False

    def _show_failure(
        self,
        resource_id: str,
        failure: LockFailure,
        action: ViewAction,
        lock: Optional[LockOut] = None,
    ) -> LockView:
        logger.warning("%s on %s failed: %s", action.value, resource_id, failure.message)
        return self._show(
            LockView(resource_id, ViewState.ERROR, lock=lock, message=describe_failure(failure), action=action)
        )

    # -- operations -------------------------------------------------------

    async def refresh(self) -> Optional[LockView]:
        resource_id = self.active_resource_id
        if resource_id is None:
            return None

        self._show(LockView(resource_id, ViewState.CHECKING, message="Checking lock status..."))
        result = await self.client.check(resource_id)
        if self._is_stale(resource_id, "check"):
            return None

        if isinstance(result, LockHeld):
            return self._show(
                LockView(resource_id, ViewState.LOCKED, lock=result.lock, action=ViewAction.RELEASE)
            )
        if isinstance(result, LockFree):
            return self._show(LockView(resource_id, ViewState.FREE, action=ViewAction.ACQUIRE))
        return self._show_failure(resource_id, result, ViewAction.RETRY_CHECK)

    async def request_acquire(self) -> Optional[LockView]:
        view = self.view
        if view is None or view.action not in (ViewAction.ACQUIRE, ViewAction.RETRY_ACQUIRE):
            logger.debug("acquire requested while not free; ignored")
            return None

        resource_id = view.resource_id
        identity = self.host.ask_identity(resource_id, self._pending_identity or self.identity)
        if identity is None:
            return self._show(view)

        self._pending_identity = identity
        self._show(LockView(resource_id, ViewState.BUSY, message="Acquiring lock..."))
        result = await self.client.acquire(
            resource_id, identity.name, identity.group, identity.duration_minutes
        )
        if self._is_stale(resource_id, "acquire"):
            return None
        if isinstance(result, LockFailure):
            return self._show_failure(resource_id, result, ViewAction.RETRY_ACQUIRE)

        self._pending_identity = None
        self.identity = identity
        self._remember(identity)
        return await self.refresh()

    async def request_release(self) -> Optional[LockView]:
        view = self.view
        if (
            view is None
            or view.lock is None
            or view.action not in (ViewAction.RELEASE, ViewAction.RETRY_RELEASE)
        ):
            logger.debug("release requested while not locked; ignored")
            return None

        resource_id, lock = view.resource_id, view.lock
        me = self.identity.name if self.identity else None
        if me == lock.holder_name:
            question = f"Release the lock on {resource_id}?"
        else:
            # social safeguard only: the service does not check ownership
            question = (
                f"WARNING: {resource_id} is locked by {lock.holder_name} ({lock.holder_group}). "
                "Force the release?"
            )
        if not self.host.confirm(question):
            return view

        self._show(LockView(resource_id, ViewState.BUSY, lock=lock, message="Releasing lock..."))
        result = await self.client.release(resource_id)
        if self._is_stale(resource_id, "release"):
            return None
        if isinstance(result, LockFailure):
            return self._show_failure(resource_id, result, ViewAction.RETRY_RELEASE, lock=lock)
        return await self.refresh()

    async def retry(self) -> Optional[LockView]:
        view = self.view
        if view is None or view.state != ViewState.ERROR:
            return None
        if view.action == ViewAction.RETRY_ACQUIRE:
            return await self.request_acquire()
        if view.action == ViewAction.RETRY_RELEASE:
            return await self.request_release()
        return await self.refresh()

    def _remember(self, identity: ClientIdentity) -> None:
        if self.cache is None:
            return
        try:
            self.cache.save(identity)
        except OSError as exc:
            logger.warning("could not write identity cache %s: %s", self.cache.path, exc)
