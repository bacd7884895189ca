"""Cancellable debounce timer.

The owning component holds one ``Debouncer`` per input. Submitting a new value
cancels the pending one, so only the latest value ever reaches the callback.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Debouncer(Generic[T]):
    """Run ``callback(value)`` once input has been idle for ``delay_seconds``."""

    def __init__(self, delay_seconds: float, callback: Callable[[T], None]) -> None:
        self.delay_seconds = delay_seconds
        self._callback = callback
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._value: Optional[T] = None
        # bumped on every submit/cancel so a timer that already started firing
        # can tell it has been superseded
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def submit(self, value: T) -> None:
        with self._lock:
            self._cancel_locked()
            self._generation += 1
            self._value = value
            timer = threading.Timer(self.delay_seconds, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()
            self._generation += 1

    def flush(self) -> bool:
        """Run the pending callback immediately. Returns False if nothing was pending."""
        with self._lock:
            if self._timer is None:
                return False
            value = self._value
            self._cancel_locked()
            self._generation += 1
        self._callback(value)  # type: ignore[arg-type]
        return True

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._value = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._timer is None:
                logger.debug("Skipping superseded debounce callback")
                return
            value = self._value
            self._timer = None
            self._value = None
        self._callback(value)  # type: ignore[arg-type]
