"""Session context, session checks and the periodic session monitor."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TYPE_CHECKING

from .cache import USER_KEY, CacheStore
from .config import settings

if TYPE_CHECKING:
    from .api.client import AdminClient

logger = logging.getLogger(__name__)


class SessionContext:
    """The logged-in user, persisted under the ``user`` cache key.

    Passed explicitly to every list controller instead of living in a global.
    """

    def __init__(self, cache: CacheStore | None = None, user: dict[str, Any] | None = None):
        self._cache = cache
        self.user = user
        if user is None and cache is not None:
            stored = cache.get(USER_KEY)
            self.user = stored if isinstance(stored, dict) else None

    @property
    def is_authorized(self) -> bool:
        return bool(self.user) and self.user.get("isVerified") is not False

    @property
    def email(self) -> str | None:
        return self.user.get("email") if self.user else None

    def login(self, user: dict[str, Any]) -> None:
        self.user = dict(user)
        if self._cache is not None:
            self._cache.set(USER_KEY, self.user)

    def clear(self) -> None:
        self.user = None
        if self._cache is not None:
            self._cache.delete(USER_KEY)


class SessionService:
    """Checks and ends the session against ``/api/auth``."""

    def __init__(self, client: "AdminClient", context: SessionContext):
        self._client = client
        self.context = context

    async def check(self) -> bool:
        """Revalidate the stored user. Any failure clears the session."""
        user = self.context.user
        if not user or not user.get("isVerified") or not user.get("email"):
            self.context.clear()
            return False
        try:
            data = await self._client.auth.check_session(user["email"])
        except Exception as e:
            logger.warning("Session check failed: %s", e)
            self.context.clear()
            return False
        if data and data.get("valid"):
            self.context.login(data.get("user") or user)
            return self.context.is_authorized
        self.context.clear()
        return False

    async def logout(self) -> None:
        """Tell the backend, then clear locally whatever it answered."""
        email = self.context.email
        try:
            if email:
                await self._client.auth.logout(email)
        except Exception as e:
            logger.warning("Logout request failed: %s", e)
        finally:
            self.context.clear()


class SessionMonitor:
    """Re-checks the session on a fixed interval; calls back when it is gone."""

    def __init__(
        self,
        service: SessionService,
        on_invalidated: Callable[[], Awaitable[None] | None],
        interval_seconds: float | None = None,
    ) -> None:
        self._service = service
        self._on_invalidated = on_invalidated
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else settings.session_check_interval_seconds
        )
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop(), name="geoadmin-session-monitor")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None

    async def check_once(self) -> bool:
        valid = await self._service.check()
        if not valid:
            result = self._on_invalidated()
            if asyncio.iscoroutine(result):
                await result
        return valid

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
                break
            except asyncio.TimeoutError:
                pass
            try:
                if not await self.check_once():
                    break
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("Session monitor check failed", exc_info=True)
