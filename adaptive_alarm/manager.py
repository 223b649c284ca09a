from __future__ import annotations

import logging
import random
from datetime import datetime
from threading import Lock
from typing import Callable, List, Optional, Tuple

from .adjuster import DailyAdjuster
from .catalog import AlarmCatalog
from .history import HistoryLog
from .learning import LearningAgent
from .state_machine import AlarmRuntimeState, AlarmStateMachine
from .storage import Alarm, HistoryEntry

logger = logging.getLogger(__name__)


class AlarmManager:
    """Owns all mutable alarm state and applies commands one at a time.

    Timer threads and user commands both go through the same lock, so a
    snooze or dismiss never interleaves with a tick or an adjustment pass.
    """

    def __init__(
        self,
        store,
        agent: Optional[LearningAgent] = None,
        sound_player=None,
        clock: Optional[Callable[[], datetime]] = None,
        on_alarm_triggered: Optional[Callable[[Alarm], None]] = None,
    ):
        self.store = store
        self.clock = clock or datetime.now
        self.catalog = AlarmCatalog(store)
        self.history = HistoryLog(store)
        self.agent = agent or LearningAgent(store)
        self.adjuster = DailyAdjuster(self.catalog, self.agent)
        self.machine = AlarmStateMachine(
            self.history,
            self.agent,
            sound_player=sound_player,
            on_ring=on_alarm_triggered,
        )
        self._lock = Lock()

    def tick(self) -> bool:
        with self._lock:
            return self.machine.tick(self.clock(), self.catalog.list())

    def snooze(self) -> bool:
        with self._lock:
            return self.machine.snooze(self.clock())

    def dismiss(self) -> Optional[HistoryEntry]:
        with self._lock:
            return self.machine.dismiss(self.clock())

    def adjust_alarm_times(self) -> List[Tuple[str, int, str]]:
        with self._lock:
            return self.adjuster.run(self.clock())

    def add_alarm(self, **fields) -> Alarm:
        with self._lock:
            return self.catalog.add(**fields)

    def update_alarm(self, alarm_id: str, **changes) -> Optional[Alarm]:
        with self._lock:
            return self.catalog.update(alarm_id, **changes)

    def delete_alarm(self, alarm_id: str) -> Optional[Alarm]:
        with self._lock:
            return self.catalog.delete(alarm_id)

    def toggle_alarm(self, alarm_id: str) -> Optional[Alarm]:
        with self._lock:
            return self.catalog.toggle(alarm_id)

    def add_test_history(self, rng: Optional[random.Random] = None) -> List[HistoryEntry]:
        with self._lock:
            ids = [a.id for a in self.catalog.list()]
            return self.history.add_test_history(ids, self.clock(), rng=rng)

    def list_alarms(self) -> List[Alarm]:
        with self._lock:
            return self.catalog.list()

    def list_history(self) -> List[HistoryEntry]:
        with self._lock:
            return self.history.newest_first()

    def runtime_state(self) -> AlarmRuntimeState:
        with self._lock:
            state = self.machine.state
            return AlarmRuntimeState(
                current_alarm=state.current_alarm,
                status=state.status,
                snooze_count=state.snooze_count,
                next_snooze_time=state.next_snooze_time,
                last_fired=state.last_fired,
            )

    @property
    def episode_active(self) -> bool:
        with self._lock:
            return self.machine.state.active
