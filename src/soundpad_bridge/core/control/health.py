"""Cached liveness of the Soundpad control channel."""

import time
from collections.abc import Awaitable, Callable

Probe = Callable[[], Awaitable[bool]]


class ConnectionHealthMonitor:
    """Answer "is Soundpad up?" without probing more than once per TTL.

    The probe itself is expected to be fast and never raise; its timeout is
    much shorter than the TTL.
    """

    def __init__(
        self,
        probe: Probe,
        *,
        ttl: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._probe = probe
        self.ttl = ttl
        self._clock = clock
        self._state: bool | None = None
        self._checked_at: float | None = None

    @property
    def cached_state(self) -> bool | None:
        return self._state

    async def is_connected(self) -> bool:
        """Cached liveness; re-probes only once the TTL has expired."""
        now = self._clock()
        if (
            self._state is not None
            and self._checked_at is not None
            and now - self._checked_at < self.ttl
        ):
            return self._state
        state = await self._probe()
        self.record(state, at=now)
        return state

    async def check_now(self) -> bool:
        """Probe without reading or writing the cache."""
        return await self._probe()

    def record(self, state: bool, *, at: float | None = None) -> None:
        self._state = state
        self._checked_at = self._clock() if at is None else at

    def mark_connected(self) -> None:
        self.record(True)

    def invalidate(self) -> None:
        """Forget the cached state so the next read probes again."""
        self._state = None
        self._checked_at = None
