from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Tuple

from time_utils import day_index, format_hhmm, minutes_to_time, time_to_minutes

from .catalog import AlarmCatalog
from .learning import LearningAgent, QState

logger = logging.getLogger(__name__)


class DailyAdjuster:
    """Re-derives each alarm's effective time from the learned policy.

    The query state uses the wall-clock time of the run as its observed time,
    so a run just after midnight and a run at startup can look up different
    rows and pick different offsets for the same alarm.
    """

    def __init__(self, catalog: AlarmCatalog, agent: LearningAgent):
        self.catalog = catalog
        self.agent = agent

    def run(self, now: datetime) -> List[Tuple[str, int, str]]:
        today = day_index(now)
        current = format_hhmm(now)
        applied: List[Tuple[str, int, str]] = []
        for alarm in self.catalog.list():
            if not alarm.is_active_on(today):
                continue
            state = QState(current_time=current, target_time=alarm.original_time, day=today)
            action = self.agent.choose_action(state)
            new_time = minutes_to_time(time_to_minutes(alarm.original_time) + action)
            if new_time != alarm.time:
                self.catalog.set_effective_time(alarm.id, new_time)
            applied.append((alarm.id, action, new_time))
            logger.info("Adjusted %s: %s %+d min -> %s", alarm.id, alarm.original_time, action, new_time)
        return applied
