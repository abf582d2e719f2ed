"""Single-threaded event loop serializing network, store and UI callbacks."""
from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Deque, Optional, Tuple

logger = logging.getLogger(__name__)

Callback = Tuple[Callable[..., Any], Tuple[Any, ...]]


class EventLoop:
    def __init__(self) -> None:
        self._queue: Deque[Callback] = deque()
        self._running = False

    @property
    def pending(self) -> int:
        return len(self._queue)

    def call_soon(self, fn: Callable[..., Any], *args: Any) -> None:
        self._queue.append((fn, args))

    def run_pending(self, limit: Optional[int] = None) -> int:
        """Run queued callbacks in FIFO order, including ones they enqueue.

        Each callback runs to completion before the next starts.
        """
        if self._running:
            raise RuntimeError("event loop is already running")
        self._running = True
        ran = 0
        try:
            while self._queue and (limit is None or ran < limit):
                fn, args = self._queue.popleft()
                fn(*args)
                ran += 1
        finally:
            self._running = False
        if ran:
            logger.debug("Ran %s callbacks, %s still queued", ran, len(self._queue))
        return ran
