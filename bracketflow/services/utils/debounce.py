"""
Coalescing debouncer for per-division pool completion checks

The first trigger for a key runs immediately. Triggers arriving inside the
window after a run are coalesced into one trailing run at the end of the
window, so the last state is always checked.
"""

import threading
import time
from typing import Any, Callable, Dict, Hashable
import logging

logger = logging.getLogger(__name__)


class CoalescingDebouncer:
    """
    Per-key debouncer with a single trailing timer

    Args:
        window: Window length in seconds
        callback: Called with the key on each run
        clock: Monotonic time source
        timer_factory: threading.Timer compatible factory (interval, function, args)
    """

    def __init__(self, window: float, callback: Callable[[Hashable], Any],
                 clock: Callable[[], float] = time.monotonic,
                 timer_factory: Callable[..., Any] = threading.Timer):
        self.window = window
        self.callback = callback
        self.clock = clock
        self.timer_factory = timer_factory
        self._last_run: Dict[Hashable, float] = {}
        self._pending: Dict[Hashable, Any] = {}
        self._lock = threading.Lock()

    def trigger(self, key: Hashable) -> bool:
        """
        Request a run for key

        Returns:
            True if the callback ran immediately, False if coalesced
        """
        with self._lock:
            now = self.clock()
            last_run = self._last_run.get(key)
            if last_run is not None and now - last_run < self.window:
                if key not in self._pending:
                    self._schedule(key, max(0.0, last_run + self.window - now))
                else:
                    logger.debug(f"Coalesced trigger for {key}")
                return False

            pending = self._pending.pop(key, None)
            if pending is not None:
                pending.cancel()
            self._last_run[key] = now

        self._run(key)
        return True

    def reschedule(self, key: Hashable) -> bool:
        """
        Arm a trailing run for key one window from now, e.g. after a failed run

        Returns:
            False if a run for key is already pending
        """
        with self._lock:
            if key in self._pending:
                return False
            self._schedule(key, self.window)
        return True

    def _schedule(self, key: Hashable, delay: float) -> None:
        # caller holds self._lock
        timer = self.timer_factory(delay, self._fire, args=[key])
        if hasattr(timer, 'daemon'):
            timer.daemon = True
        self._pending[key] = timer
        timer.start()
        logger.debug(f"Scheduled trailing run for {key} in {delay:.2f}s")

    def _fire(self, key: Hashable) -> None:
        with self._lock:
            self._pending.pop(key, None)
            self._last_run[key] = self.clock()
        self._run(key)

    def _run(self, key: Hashable) -> None:
        try:
            self.callback(key)
        except Exception as e:
            logger.error(f"Debounced run for {key} failed: {str(e)}")

    def has_pending(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._pending

    def cancel_all(self) -> None:
        with self._lock:
            for timer in self._pending.values():
                timer.cancel()
            self._pending.clear()
