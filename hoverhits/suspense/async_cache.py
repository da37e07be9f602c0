"""Suspense-style read-through cache for backend-fetched values.

Each key is in one of three states: no entry, ``PENDING`` (a fetch is in
flight and its future is shared by every caller) or ``RESOLVED``. The
``EMPTY -> PENDING`` transition is made without yielding to the event loop,
so the first caller to touch a key is the only one that fetches it.

Failures are delivered to every waiter and then forgotten: the entry is
dropped and the next call fetches again. Successes are kept until a
collaborator explicitly evicts them.

Accessors:

``peek(key)``
    Non-blocking. ``has_value`` is false for keys never requested and for
    keys still loading.
``await get_or_fetch(key)``
    Returns a resolved value without suspending, otherwise waits for the
    shared fetch.
``get_async(key)``
    Returns a future without ever suspending the caller.
``read(key)``
    Synchronous suspense reader: the value, or :class:`ValueNotReady`
    carrying the future to wait on.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from enum import Enum
from enum import auto
import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import Callable
from typing import Generic
from typing import TypeVar

from hoverhits.errors import ValueNotReady
from hoverhits.errors import handle_error
from hoverhits.protocol.structures import CachedValue

if TYPE_CHECKING:
    from collections.abc import Awaitable

K = TypeVar("K")
V = TypeVar("V")

logger = logging.getLogger(__name__)


class EntryStatus(Enum):
    PENDING = auto()
    RESOLVED = auto()


@dataclass
class _Entry(Generic[V]):
    status: EntryStatus
    future: asyncio.Future[V]
    value: V | None = None


def _consume_future_error(done_future: asyncio.Future[Any]) -> None:
    # Mark the exception as retrieved; callers that care get it from their await.
    if not done_future.cancelled():
        with contextlib.suppress(Exception):
            done_future.exception()


class AsyncCache(Generic[K, V]):
    """Keyed single-flight cache over an async ``fetch`` function."""

    def __init__(
        self,
        fetch: Callable[[K], Awaitable[V]],
        *,
        key_fn: Callable[[K], str] = str,
        name: str = "cache",
    ) -> None:
        self._fetch = fetch
        self._key_fn = key_fn
        self._name = name
        self._entries: dict[str, _Entry[V]] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self.fetch_count = 0

    def __contains__(self, key: K) -> bool:
        entry = self._entries.get(self._key_fn(key))
        return entry is not None and entry.status is EntryStatus.RESOLVED

    def status(self, key: K) -> EntryStatus | None:
        """Return the entry status, or ``None`` when the key has no entry."""
        entry = self._entries.get(self._key_fn(key))
        return entry.status if entry is not None else None

    def peek(self, key: K) -> CachedValue[V]:
        entry = self._entries.get(self._key_fn(key))
        if entry is not None and entry.status is EntryStatus.RESOLVED:
            return CachedValue(has_value=True, value=entry.value)
        return CachedValue(has_value=False)

    async def get_or_fetch(self, key: K) -> V:
        entry = self._entries.get(self._key_fn(key))
        if entry is not None and entry.status is EntryStatus.RESOLVED:
            return entry.value  # type: ignore[return-value]
        if entry is None:
            entry = self._start_fetch(key)
        # Shielded so one cancelled waiter does not cancel the fetch shared with others.
        return await asyncio.shield(entry.future)

    def get_async(self, key: K) -> asyncio.Future[V]:
        entry = self._entries.get(self._key_fn(key))
        if entry is None:
            entry = self._start_fetch(key)
        if entry.status is EntryStatus.RESOLVED:
            return entry.future
        return self._waiter_for(entry.future)

    def read(self, key: K) -> V:
        cache_key = self._key_fn(key)
        entry = self._entries.get(cache_key)
        if entry is not None and entry.status is EntryStatus.RESOLVED:
            return entry.value  # type: ignore[return-value]
        if entry is None:
            entry = self._start_fetch(key)
        raise ValueNotReady(cache_key, self._waiter_for(entry.future))

    def add_value(self, key: K, value: V) -> bool:
        """Seed a value fetched elsewhere.

        Returns ``False`` and leaves the entry alone if the key is already
        resolved. A pending fetch for the key is superseded: its waiters
        receive ``value``.
        """
        cache_key = self._key_fn(key)
        entry = self._entries.get(cache_key)
        if entry is not None and entry.status is EntryStatus.RESOLVED:
            return False
        if entry is None:
            loop = asyncio.get_running_loop()
            entry = _Entry(status=EntryStatus.PENDING, future=loop.create_future())
            self._entries[cache_key] = entry
        self._resolve(entry, value)
        return True

    def evict(self, key: K) -> None:
        """Forget a resolved value. In-flight fetches are left alone."""
        cache_key = self._key_fn(key)
        entry = self._entries.get(cache_key)
        if entry is not None and entry.status is EntryStatus.RESOLVED:
            del self._entries[cache_key]

    def clear(self) -> None:
        """Forget every resolved value."""
        for cache_key in [k for k, e in self._entries.items() if e.status is EntryStatus.RESOLVED]:
            del self._entries[cache_key]

    async def wait_idle(self) -> None:
        """Wait for every in-flight fetch to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _start_fetch(self, key: K) -> _Entry[V]:
        cache_key = self._key_fn(key)
        loop = asyncio.get_running_loop()
        entry: _Entry[V] = _Entry(status=EntryStatus.PENDING, future=loop.create_future())
        entry.future.add_done_callback(_consume_future_error)
        self._entries[cache_key] = entry
        self.fetch_count += 1
        logger.debug("%s: fetching %s", self._name, cache_key)

        task = loop.create_task(self._run_fetch(key, cache_key, entry))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return entry

    async def _run_fetch(self, key: K, cache_key: str, entry: _Entry[V]) -> None:
        try:
            value = await self._fetch(key)
        except asyncio.CancelledError:
            self._forget(cache_key, entry)
            entry.future.cancel()
            raise
        except Exception as e:
            handle_error(
                e, log_level=logging.DEBUG, context={"cache": self._name, "key": cache_key}
            )
            self._forget(cache_key, entry)
            if not entry.future.done():
                entry.future.set_exception(e)
            return

        if entry.status is EntryStatus.PENDING:
            self._resolve(entry, value)

    def _resolve(self, entry: _Entry[V], value: V) -> None:
        entry.status = EntryStatus.RESOLVED
        entry.value = value
        if not entry.future.done():
            entry.future.set_result(value)

    def _forget(self, cache_key: str, entry: _Entry[V]) -> None:
        # A value seeded by add_value while the fetch was running stays.
        if entry.status is EntryStatus.PENDING and self._entries.get(cache_key) is entry:
            del self._entries[cache_key]

    @staticmethod
    def _waiter_for(shared: asyncio.Future[V]) -> asyncio.Future[V]:
        """Return a per-caller future mirroring ``shared``.

        Cancelling the returned future does not cancel the shared fetch.
        """
        waiter = shared.get_loop().create_future()
        waiter.add_done_callback(_consume_future_error)

        def _copy(done: asyncio.Future[V]) -> None:
            if waiter.done():
                return
            if done.cancelled():
                waiter.cancel()
            elif done.exception() is not None:
                waiter.set_exception(done.exception())  # type: ignore[arg-type]
            else:
                waiter.set_result(done.result())

        if shared.done():
            _copy(shared)
        else:
            shared.add_done_callback(_copy)
        return waiter
