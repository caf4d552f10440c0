"""
Per-instance listener registry.

Every ``EventEmitter`` owns its own subscriber table, so registrations live
exactly as long as the object that holds them.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional, Set

import structlog

logger = structlog.get_logger(__name__)

INITIALIZED = "initialized"
TRANSCRIPTION = "transcription"
SESSION_STARTED = "session:started"
SESSION_STOPPED = "session:stopped"
SESSION_SHARED = "session:shared"
SESSION_CONNECTED = "session:connected"
SUMMARY_GENERATED = "summary:generated"
ERROR = "error"

Listener = Callable[..., Any]


class EventEmitter:
    """Register listeners by event name and notify them on ``emit``.

    Listeners may be plain callables or coroutine functions. Coroutines are
    scheduled on the running loop; a listener that raises is logged and does
    not prevent the remaining listeners from being called.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}
        self._pending: Set[asyncio.Task] = set()

    def on(self, event: str, callback: Listener) -> Listener:
        """Subscribe ``callback`` to ``event`` and return it."""
        self._listeners.setdefault(event, []).append(callback)
        logger.debug(
            "Listener registered",
            event_name=event,
            total_listeners=len(self._listeners[event]),
        )
        return callback

    def once(self, event: str, callback: Listener) -> Listener:
        """Subscribe ``callback`` for a single notification."""

        def wrapper(*args: Any) -> Any:
            self.off(event, wrapper)
            return callback(*args)

        wrapper.__wrapped__ = callback  # type: ignore[attr-defined]
        self.on(event, wrapper)
        return wrapper

    def off(self, event: str, callback: Listener) -> bool:
        """Unsubscribe ``callback``; return True if it was registered."""
        listeners = self._listeners.get(event)
        if not listeners:
            return False
        for registered in listeners:
            if registered is callback or getattr(registered, "__wrapped__", None) is callback:
                listeners.remove(registered)
                if not listeners:
                    del self._listeners[event]
                return True
        return False

    def emit(self, event: str, *args: Any) -> bool:
        """Notify every listener of ``event``; return True if any were called."""
        listeners = list(self._listeners.get(event, ()))
        if not listeners:
            return False

        for callback in listeners:
            try:
                result = callback(*args)
            except Exception as exc:
                logger.error(
                    "Listener failed to process event",
                    event_name=event,
                    callback=getattr(callback, "__name__", repr(callback)),
                    error=str(exc),
                )
                continue
            if inspect.isawaitable(result):
                self._schedule(event, result)
        return True

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def _schedule(self, event: str, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("Async listener needs a running event loop", event_name=event)
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        task = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(task)

        def _done(finished: asyncio.Task) -> None:
            self._pending.discard(finished)
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is not None:
                logger.error(
                    "Async listener failed to process event",
                    event_name=event,
                    error=str(exc),
                )

        task.add_done_callback(_done)
