from __future__ import annotations

import logging
from threading import Event, Thread
from typing import Optional

from time_utils import seconds_until_midnight

from .manager import AlarmManager

logger = logging.getLogger(__name__)


class SchedulerLoop:
    """Drives an ``AlarmManager`` from two timers.

    The tick thread evaluates alarms every ``check_interval`` seconds; the
    midnight thread runs the daily adjustment at each local midnight. Both
    only call into the manager, which serialises them.
    """

    def __init__(self, manager: AlarmManager, check_interval: float = 60.0):
        self.manager = manager
        self.check_interval = max(1.0, check_interval)
        self._stop_event = Event()
        self._tick_thread: Optional[Thread] = None
        self._midnight_thread: Optional[Thread] = None

    def start(self) -> None:
        self._stop_event.clear()
        self.run_adjustment()
        self.run_tick()
        self._tick_thread = Thread(target=self._tick_loop, name="alarm-scheduler", daemon=True)
        self._midnight_thread = Thread(target=self._midnight_loop, name="alarm-midnight", daemon=True)
        self._tick_thread.start()
        self._midnight_thread.start()
        logger.info("Scheduler started (interval=%.0fs)", self.check_interval)

    def shutdown(self) -> None:
        self._stop_event.set()
        for thread in (self._tick_thread, self._midnight_thread):
            if thread:
                thread.join(timeout=2)
        self._tick_thread = None
        self._midnight_thread = None

    def run_tick(self) -> None:
        try:
            self.manager.tick()
        except Exception:
            logger.error("Alarm tick failed", exc_info=True)

    def run_adjustment(self) -> None:
        try:
            applied = self.manager.adjust_alarm_times()
            logger.info("Daily adjustment applied to %s alarms", len(applied))
        except Exception:
            logger.error("Daily adjustment failed", exc_info=True)

    def next_tick_delay(self) -> float:
        # Align to period boundaries so no wall-clock minute is skipped by drift.
        now = self.manager.clock()
        elapsed = (now.minute * 60 + now.second + now.microsecond / 1e6) % self.check_interval
        return self.check_interval - elapsed

    def _tick_loop(self) -> None:
        while not self._stop_event.wait(self.next_tick_delay()):
            self.run_tick()

    def _midnight_loop(self) -> None:
        while True:
            delay = seconds_until_midnight(self.manager.clock())
            # Land just past midnight so the run sees the new day.
            if self._stop_event.wait(delay + 1):
                return
            self.run_adjustment()
