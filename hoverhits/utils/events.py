"""Small event utilities shared by the result store and analysis tracker.

Provides a minimal synchronous emitter keyed by event name. Listeners run in
registration order on the emitting task; a failing listener is logged and
does not stop the others.
"""

from __future__ import annotations

from collections import defaultdict
import logging
from typing import Any
from typing import Callable

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class EventEmitter:
    """Tiny synchronous named-event emitter.

    API:
    - on(event, callable) -> unsubscribe callable
    - off(event, callable)
    - emit(event, *args, **kwargs)
    """

    def __init__(self) -> None:
        self._listeners: defaultdict[str, list[Listener]] = defaultdict(list)

    def on(self, event: str, fn: Listener) -> Callable[[], None]:
        self._listeners[event].append(fn)
        return lambda: self.off(event, fn)

    def off(self, event: str, fn: Listener) -> None:
        try:
            self._listeners[event].remove(fn)
        except ValueError:
            pass

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, *args: Any, **kwargs: Any) -> None:
        for fn in list(self._listeners.get(event, ())):
            try:
                fn(*args, **kwargs)
            except Exception:
                logger.exception("error in %r event listener", event)
