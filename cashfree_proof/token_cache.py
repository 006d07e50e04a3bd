"""
In-memory bearer token cache.

Holds the current Cashfree bearer token and the local instant after which it
must not be used. Cashfree tokens live for five minutes; the cache expires
them earlier so a token is never sent while its server-side expiry races the
local clock.

Concurrent callers that find no fresh token share a single in-flight
authorization instead of each calling the authorize endpoint.
"""

import time
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

from cashfree_proof.models import CachedToken

logger = logging.getLogger(__name__)

# Cashfree tokens are valid for 300 seconds
TOKEN_LIFETIME_SECONDS = 300
DEFAULT_TTL_SECONDS = 240
# Issuance time of a pre-obtained token is unknown
DEFAULT_SEEDED_TTL_SECONDS = 120

Authorize = Callable[[], Awaitable[str]]


class TokenCache:
    """
    Token holder with refresh-on-stale semantics.

    Example:
        >>> cache = TokenCache(ttl_seconds=240)
        >>> token = await cache.ensure_fresh(lambda: authority.authorize(...))
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Local lifetime of a freshly authorized token. Must be
                positive and should stay below the real token lifetime.
            clock: Returns the current time in seconds. Defaults to time.time.
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if ttl_seconds >= TOKEN_LIFETIME_SECONDS:
            logger.warning(
                f"Token TTL of {ttl_seconds}s leaves no safety margin below "
                f"the {TOKEN_LIFETIME_SECONDS}s token lifetime"
            )

        self._ttl = ttl_seconds
        self._clock = clock or time.time
        self._current: Optional[CachedToken] = None
        self._inflight: Optional["asyncio.Task[str]"] = None
        self._stats = {"hits": 0, "refreshes": 0, "coalesced": 0, "failures": 0}

    def seed(self, token: str, ttl_seconds: float = DEFAULT_SEEDED_TTL_SECONDS) -> None:
        """Store a token obtained elsewhere, assuming ``ttl_seconds`` of remaining life."""
        if not token:
            raise ValueError("Cannot seed an empty token")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._current = CachedToken(token=token, expires_at=self._clock() + ttl_seconds)
        logger.debug(f"Seeded bearer token valid for {ttl_seconds}s")

    def peek(self) -> Optional[str]:
        """The cached token if it is still fresh, without refreshing."""
        if self._current and self._current.is_fresh(self._clock()):
            return self._current.token
        return None

    def invalidate(self) -> None:
        """Forget the cached token; the next ensure_fresh() authorizes again."""
        self._current = None

    async def ensure_fresh(self, authorize: Authorize) -> str:
        """
        Return a fresh token, calling ``authorize`` only when none is cached.

        Args:
            authorize: Coroutine function returning a new bearer token.

        Returns:
            A token that is fresh at the time of return.

        Raises:
            Whatever ``authorize`` raises. A failed refresh leaves the cache
            unchanged and is re-raised to every caller waiting on it.
        """
        token = self.peek()
        if token is not None:
            self._stats["hits"] += 1
            return token

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh(authorize))
            # Retrieved here so an abandoned failure is not reported as unhandled
            self._inflight.add_done_callback(lambda t: t.cancelled() or t.exception())
        else:
            self._stats["coalesced"] += 1
            logger.debug("Joining in-flight token refresh")

        # One waiter being cancelled must not cancel the shared refresh
        return await asyncio.shield(self._inflight)

    async def _refresh(self, authorize: Authorize) -> str:
        try:
            token = await authorize()
            if not token:
                raise ValueError("authorize() returned an empty token")
            self._current = CachedToken(token=token, expires_at=self._clock() + self._ttl)
            self._stats["refreshes"] += 1
            logger.info(f"Bearer token refreshed, cached for {self._ttl}s")
            return token
        except BaseException:
            self._stats["failures"] += 1
            raise
        finally:
            self._inflight = None

    @property
    def expires_at(self) -> Optional[float]:
        return self._current.expires_at if self._current else None

    @property
    def stats(self) -> Dict[str, int]:
        return self._stats.copy()
