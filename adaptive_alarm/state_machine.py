"""Runtime state of the single active alarm episode.

An episode starts when a due alarm rings and ends when it is dismissed::

    IDLE -> RINGING <-> SNOOZED
               |           |
               +-> DISMISSED -> IDLE

The machine is not thread-safe on its own; ``AlarmManager`` serialises every
call through its lock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Optional, Tuple

from time_utils import add_minutes_hhmm, day_index, format_hhmm, time_to_minutes

from .history import HistoryLog
from .learning import LearningAgent, QState, calculate_reward, nearest_action
from .storage import Alarm, HistoryEntry

logger = logging.getLogger(__name__)


class AlarmStatus(Enum):
    IDLE = "idle"
    RINGING = "ringing"
    SNOOZED = "snoozed"
    DISMISSED = "dismissed"


@dataclass
class AlarmRuntimeState:
    current_alarm: Optional[Alarm] = None
    status: AlarmStatus = AlarmStatus.IDLE
    snooze_count: int = 0
    next_snooze_time: Optional[str] = None
    # (alarm id, date, HH:MM) of the last activation, so a dismissed alarm
    # does not ring again within the same minute.
    last_fired: Optional[Tuple[str, str, str]] = None

    @property
    def active(self) -> bool:
        return self.current_alarm is not None and self.status in (AlarmStatus.RINGING, AlarmStatus.SNOOZED)


class AlarmStateMachine:
    def __init__(
        self,
        history: HistoryLog,
        agent: LearningAgent,
        sound_player=None,
        on_ring: Optional[Callable[[Alarm], None]] = None,
    ):
        self.history = history
        self.agent = agent
        self.sound_player = sound_player
        self.on_ring = on_ring
        self.state = AlarmRuntimeState()

    def tick(self, now: datetime, alarms: Iterable[Alarm]) -> bool:
        """Advance on a timer tick. Returns True when an alarm starts ringing."""
        current = format_hhmm(now)
        if self.state.status is AlarmStatus.SNOOZED:
            if self.state.next_snooze_time == current:
                logger.info("Snooze over for %s, ringing again", self.state.current_alarm.id)
                self.state.status = AlarmStatus.RINGING
                self.state.next_snooze_time = None
                self._ring()
                return True
            return False
        if self.state.active:
            return False

        due = self.find_due_alarm(now, alarms)
        if due is None:
            return False
        logger.info("Alarm %s triggered at %s (label=%s)", due.id, current, due.label)
        self.state = AlarmRuntimeState(
            current_alarm=due,
            status=AlarmStatus.RINGING,
            last_fired=(due.id, now.date().isoformat(), current),
        )
        self._ring()
        return True

    def find_due_alarm(self, now: datetime, alarms: Iterable[Alarm]) -> Optional[Alarm]:
        current = format_hhmm(now)
        today = day_index(now)
        fired = self.state.last_fired
        matches = [
            alarm
            for alarm in alarms
            if alarm.is_active_on(today)
            and alarm.time == current
            and fired != (alarm.id, now.date().isoformat(), current)
        ]
        if not matches:
            return None
        if len(matches) > 1:
            logger.info("%s alarms due at %s, activating the first by id", len(matches), current)
        return min(matches, key=lambda a: a.id)

    def snooze(self, now: datetime) -> bool:
        alarm = self.state.current_alarm
        if not self.state.active:
            return False
        if not alarm.snooze_enabled or self.state.snooze_count >= alarm.snooze_limit:
            logger.info("Snooze ignored for %s (count=%s)", alarm.id, self.state.snooze_count)
            return False
        self.state.snooze_count += 1
        self.state.next_snooze_time = add_minutes_hhmm(now, alarm.snooze_interval)
        self.state.status = AlarmStatus.SNOOZED
        self._silence()
        logger.info(
            "Alarm %s snoozed until %s (%s/%s)",
            alarm.id,
            self.state.next_snooze_time,
            self.state.snooze_count,
            alarm.snooze_limit,
        )
        return True

    def dismiss(self, now: datetime) -> Optional[HistoryEntry]:
        """End the episode, record the wake-up and feed it to the learner."""
        if not self.state.active:
            return None
        alarm = self.state.current_alarm
        snooze_count = self.state.snooze_count
        wakeup_time = format_hhmm(now)
        today = day_index(now)

        entry = HistoryEntry(
            alarm_id=alarm.id,
            date=now.isoformat(),
            scheduled_time=alarm.time,
            actual_wakeup_time=wakeup_time,
            snooze_count=snooze_count,
            reward=calculate_reward(alarm.time, wakeup_time, snooze_count),
        )
        action = nearest_action(time_to_minutes(wakeup_time) - time_to_minutes(alarm.original_time))

        # The learner validates before mutating, so a rejected update leaves
        # both the history and the episode untouched.
        self.agent.update_q_values(
            QState(current_time=alarm.time, target_time=alarm.original_time, day=today),
            action,
            entry.reward,
            QState(current_time=wakeup_time, target_time=alarm.original_time, day=today),
        )
        self.history.append(entry)

        self.state.status = AlarmStatus.DISMISSED
        self._silence()
        logger.info("Alarm %s dismissed at %s (reward=%.2f)", alarm.id, wakeup_time, entry.reward)
        self.state = AlarmRuntimeState(last_fired=self.state.last_fired)
        return entry

    def _ring(self) -> None:
        if self.sound_player:
            self.sound_player.start_loop()
        if self.on_ring:
            try:
                self.on_ring(self.state.current_alarm)
            except Exception:  # pragma: no cover - callback safety
                logger.error("on_ring callback failed", exc_info=True)

    def _silence(self) -> None:
        if self.sound_player:
            self.sound_player.stop_loop()
