# backend/recordlock/client/transport.py
"""HTTP client for the lock service.

Every logical operation is one request. Transport failures (connect errors,
timeouts, broken connections) are retried with exponential backoff; any HTTP
response, whatever its status, is a business outcome and is returned as-is.
Release and Check are idempotent. Acquire is an overwrite, so retrying a failed
acquire may re-apply the same duration; that is accepted.
"""
from __future__ import annotations
import logging
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import quote

import anyio
import httpx
from pydantic import ValidationError

from ..locks.schemas import FREE_MESSAGE, LockAcquireIn, LockCreatedOut, LockOut
from ..shared.config import settings
from .results import (
    AcquireResult,
    Acquired,
    CheckResult,
    FailureKind,
    LockFailure,
    LockFree,
    LockHeld,
    ReleaseResult,
    Released,
)

logger = logging.getLogger(__name__)


class CommunicationError(Exception):
    def __init__(self, method: str, url: str, attempts: int, last_error: Exception):
        super().__init__(f"{method} {url} failed after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def _is_free(response: httpx.Response) -> bool:
    # a bare 404 from a wrong base URL or proxy must not read as "free"
    if response.status_code != 404:
        return False
    try:
        body = response.json()
    except ValueError:
        return False
    return isinstance(body, dict) and body.get("message") == FREE_MESSAGE


def _message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


class LockApiClient:
    def __init__(
        self,
        base_url: str = settings.LOCK_API_URL,
        *,
        attempts: int = settings.CLIENT_ATTEMPTS,
        base_delay: float = settings.CLIENT_BASE_DELAY,
        timeout: float = settings.CLIENT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = anyio.sleep,
    ):
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.base_url = base_url.rstrip("/")
        self.attempts = attempts
        self.base_delay = base_delay
        self._sleep = sleep
        self._http = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "LockApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _url(self, resource_id: Optional[str] = None) -> str:
        # collection for POST, item for GET/DELETE
        if resource_id is None:
            return self.base_url
        return f"{self.base_url}/{quote(resource_id, safe='')}"

    async def _send(self, method: str, url: str, json: Optional[dict] = None) -> httpx.Response:
        last_error: Optional[Exception] = None
        for attempt in range(self.attempts):
            try:
                return await self._http.request(method, url, json=json)
            except httpx.TransportError as exc:
                last_error = exc
                if attempt < self.attempts - 1:
                    delay = self.base_delay * 2**attempt
                    logger.warning(
                        "%s %s failed (attempt %d/%d): %s; retrying in %.1fs",
                        method,
                        url,
                        attempt + 1,
                        self.attempts,
                        exc,
                        delay,
                    )
                    await self._sleep(delay)
        logger.error("%s %s failed after %d attempts: %s", method, url, self.attempts, last_error)
        raise CommunicationError(method, url, self.attempts, last_error)

    def _failure(self, response: httpx.Response) -> LockFailure:
        if response.status_code in (400, 422):
            kind = FailureKind.VALIDATION
        elif response.status_code >= 500:
            kind = FailureKind.INTERNAL
        else:
            kind = FailureKind.UNEXPECTED
        return LockFailure(kind, _message(response), response.status_code)

    async def check(self, resource_id: str) -> CheckResult:
        try:
            response = await self._send("GET", self._url(resource_id))
        except CommunicationError as exc:
            return LockFailure(FailureKind.COMMUNICATION, str(exc))

        if _is_free(response):
            return LockFree()
        if response.status_code == 200:
            try:
                return LockHeld(LockOut.model_validate(response.json()))
            except (ValueError, ValidationError) as exc:
                return LockFailure(FailureKind.UNEXPECTED, f"malformed lock payload: {exc}", 200)
        return self._failure(response)

    async def acquire(
        self, resource_id: str, holder_name: str, holder_group: str, duration_minutes: int
    ) -> AcquireResult:
        try:
            req = LockAcquireIn(
                resource_id=resource_id,
                holder_name=holder_name,
                holder_group=holder_group,
                duration_minutes=duration_minutes,
            )
        except ValidationError as exc:
            errors = "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors())
            return LockFailure(FailureKind.VALIDATION, f"Invalid lock request: {errors}")

        try:
            response = await self._send("POST", self._url(), json=req.model_dump())
        except CommunicationError as exc:
            return LockFailure(FailureKind.COMMUNICATION, str(exc))

        if response.status_code == 201:
            try:
                return Acquired(LockCreatedOut.model_validate(response.json()).lock)
            except (ValueError, ValidationError) as exc:
                return LockFailure(FailureKind.UNEXPECTED, f"malformed lock payload: {exc}", 201)
        return self._failure(response)

    async def release(self, resource_id: str) -> ReleaseResult:
        try:
            response = await self._send("DELETE", self._url(resource_id))
        except CommunicationError as exc:
            return LockFailure(FailureKind.COMMUNICATION, str(exc))

        # releasing a free resource is still a release
        if response.status_code in (200, 204) or _is_free(response):
            return Released()
        return self._failure(response)
