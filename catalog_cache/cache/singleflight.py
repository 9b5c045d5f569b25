"""Per-key collapsing of concurrent asynchronous work.

``SingleFlight.do(key, fn)`` runs ``fn`` at most once at a time per key.
Callers arriving while a run is in flight await the same task and receive the
same value, or the same exception object.

The flight is registered synchronously in the first caller's coroutine,
before it suspends, so on a single event loop there is no window between
"no flight for this key" and "flight registered".
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Flight(Generic[T]):
    """One in-flight run. ``stale`` flights deliver their result but do not commit it."""

    __slots__ = ("key", "task", "stale")

    def __init__(self, key: Hashable) -> None:
        self.key = key
        self.task: asyncio.Task[T] | None = None
        self.stale = False


def _retrieve_exception(task: asyncio.Task[Any]) -> None:
    # A failed run whose callers were all cancelled has nobody left to read
    # its exception; reading it here keeps asyncio from logging it as lost.
    if not task.cancelled():
        task.exception()


class SingleFlight:
    """Registry of in-flight runs keyed by an arbitrary hashable key."""

    def __init__(self) -> None:
        self._flights: dict[Hashable, Flight[Any]] = {}

    def __len__(self) -> int:
        return len(self._flights)

    def __contains__(self, key: object) -> bool:
        return key in self._flights

    def keys(self) -> list[Hashable]:
        return list(self._flights)

    async def do(
        self,
        key: Hashable,
        fn: Callable[[], Awaitable[T]],
        commit: Callable[[T], Awaitable[None]] | None = None,
    ) -> T:
        """Run *fn* for *key*, or join the run already in flight.

        *commit* is awaited with the result after *fn* succeeds and before the
        flight is cleared, unless the flight was marked stale meanwhile.
        Cancelling a caller only cancels that caller's wait.
        """
        flight = self._flights.get(key)
        if flight is None:
            flight = Flight(key)
            flight.task = asyncio.ensure_future(self._run(flight, fn, commit))
            flight.task.add_done_callback(_retrieve_exception)
            self._flights[key] = flight
        return await asyncio.shield(flight.task)

    async def _run(
        self,
        flight: Flight[T],
        fn: Callable[[], Awaitable[T]],
        commit: Callable[[T], Awaitable[None]] | None,
    ) -> T:
        try:
            value = await fn()
            if commit is not None and not flight.stale:
                await commit(value)
            return value
        finally:
            if self._flights.get(flight.key) is flight:
                del self._flights[flight.key]

    def mark_stale(self, predicate: Callable[[Hashable], bool]) -> int:
        """Stop matching flights from committing their results.

        The flights stay registered until they settle, so joiners still share
        them and at most one run per key is ever in flight.
        """
        marked = 0
        for flight in self._flights.values():
            if not flight.stale and predicate(flight.key):
                flight.stale = True
                marked += 1
        return marked
