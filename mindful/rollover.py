"""Day-change detection.

The store keeps a "today" projection for convenience flags. A timer asks
it to re-check once the local day may have changed: first at the next
midnight, then every 24 hours. Re-checking is idempotent and never touches
completion history.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable

from mindful.store import HabitStore

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60


def seconds_until_midnight(now: datetime) -> float:
    tomorrow = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return max(0.0, (tomorrow - now).total_seconds())


class DayRolloverWatcher:
    """Runs ``store.check_rollover()`` at midnight and daily afterwards."""

    def __init__(
        self,
        store: HabitStore,
        on_rollover: Callable[[], None] | None = None,
    ) -> None:
        self.store = store
        self.on_rollover = on_rollover
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._stopped = False

    def check(self) -> bool:
        changed = self.store.check_rollover()
        if changed and self.on_rollover is not None:
            try:
                self.on_rollover()
            except Exception:
                logger.exception("Rollover callback failed")
        return changed

    def _schedule(self, delay: float) -> None:
        with self._lock:
            if self._stopped:
                return
            self._timer = threading.Timer(delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        self.check()
        self._schedule(DAY_SECONDS)

    def start(self) -> None:
        self._stopped = False
        self.check()
        self._schedule(seconds_until_midnight(self.store.now()))

    def stop(self) -> None:
        with self._lock:
            self._stopped = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
