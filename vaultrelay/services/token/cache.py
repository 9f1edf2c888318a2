"""Optional in-process cache for the app-level access token."""

import asyncio
import time
from collections.abc import Awaitable, Callable

from vaultrelay.common.metrics import access_token_cache_hits_total


class AccessTokenCache:
    """Holds one client-credentials token until shortly before it expires.

    `clock` returns seconds (monotonic by default) so tests can drive expiry
    without sleeping. Only the app-level token belongs here; identity tokens
    are bound to a shopper and are always minted fresh.
    """

    def __init__(self, refresh_margin_seconds: int = 60, clock: Callable[[], float] = time.monotonic) -> None:
        self.refresh_margin_seconds = refresh_margin_seconds
        self.clock = clock
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    def peek(self) -> str | None:
        """Return the cached token if it is still usable."""

        if self._token and self.clock() < self._expires_at - self.refresh_margin_seconds:
            return self._token
        return None

    def store(self, token: str, expires_in: float) -> None:
        self._token = token
        self._expires_at = self.clock() + expires_in

    def clear(self) -> None:
        self._token = None
        self._expires_at = 0.0

    async def get_or_fetch(self, fetch: Callable[[], Awaitable[tuple[str, float]]]) -> str:
        """Return a valid token, calling `fetch` at most once per refresh."""

        token = self.peek()
        if token:
            access_token_cache_hits_total.inc()
            return token
        async with self._lock:
            # Another request may have refreshed while we waited.
            token = self.peek()
            if token:
                access_token_cache_hits_total.inc()
                return token
            token, expires_in = await fetch()
            self.store(token, expires_in)
            return token
