from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional

from time_utils import format_days

from .manager import AlarmManager
from .parser import parse_command
from .state_machine import AlarmStatus
from .storage import Alarm

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  add HH:MM [days] [label]     days: mon-fri, sat,sun, weekdays, weekends, daily
  edit <n|id> HH:MM            change the intended time
  set <n|id> label|days|interval|limit|snooze <value>
  toggle <n|id> | delete <n|id>
  list | history | status
  snooze | dismiss
  adjust                       re-run the learned adjustment now
  test-data                    add ten days of sample history"""


@dataclass
class IntentResult:
    handled: bool
    response_text: Optional[str] = None
    action: Optional[str] = None


class IntentRouter:
    def __init__(self, alarm_manager: AlarmManager, rng: Optional[random.Random] = None):
        self.alarm_manager = alarm_manager
        self.rng = rng

    def handle_text(self, text: str) -> IntentResult:
        parsed = parse_command(text)
        if not parsed:
            return IntentResult(handled=False)
        logger.debug("Command parsed: %s", parsed)

        if parsed.action == "unknown":
            return IntentResult(handled=True, response_text=parsed.error, action="unknown")

        if parsed.action == "help":
            return IntentResult(handled=True, response_text=HELP_TEXT, action="help")

        if parsed.action == "list":
            alarms = self.alarm_manager.list_alarms()
            if not alarms:
                resp = "No alarms yet."
            else:
                resp = "\n".join(f"{idx}) {format_alarm(alarm)}" for idx, alarm in enumerate(alarms, start=1))
            return IntentResult(handled=True, response_text=resp, action="list")

        if parsed.action == "history":
            entries = self.alarm_manager.list_history()
            if not entries:
                resp = "No wake-ups recorded yet."
            else:
                resp = "\n".join(
                    f"{e.date[:10]} {e.scheduled_time} -> {e.actual_wakeup_time} "
                    f"snoozes={e.snooze_count} reward={e.reward:.2f}"
                    for e in entries[:20]
                )
            return IntentResult(handled=True, response_text=resp, action="history")

        if parsed.action == "status":
            state = self.alarm_manager.runtime_state()
            if state.status is AlarmStatus.RINGING:
                resp = f"Ringing: {state.current_alarm.label} ({state.current_alarm.time})"
            elif state.status is AlarmStatus.SNOOZED:
                resp = (
                    f"Snoozed until {state.next_snooze_time} "
                    f"({state.snooze_count}/{state.current_alarm.snooze_limit})"
                )
            else:
                resp = "Nothing ringing."
            return IntentResult(handled=True, response_text=resp, action="status")

        if parsed.action == "snooze":
            if not self.alarm_manager.episode_active:
                resp = "Nothing is ringing, nothing to snooze."
            elif self.alarm_manager.snooze():
                state = self.alarm_manager.runtime_state()
                resp = f"Snoozed until {state.next_snooze_time}."
            else:
                resp = "Snooze not available for this alarm."
            return IntentResult(handled=True, response_text=resp, action="snooze")

        if parsed.action == "dismiss":
            entry = self.alarm_manager.dismiss()
            if entry:
                resp = f"Good morning. Woke at {entry.actual_wakeup_time}, reward {entry.reward:.2f}."
            else:
                resp = "Nothing is ringing."
            return IntentResult(handled=True, response_text=resp, action="dismiss")

        if parsed.action == "adjust":
            applied = self.alarm_manager.adjust_alarm_times()
            if not applied:
                resp = "No alarms active today."
            else:
                resp = "\n".join(f"{alarm_id}: {action:+d} min -> {new_time}" for alarm_id, action, new_time in applied)
            return IntentResult(handled=True, response_text=resp, action="adjust")

        if parsed.action == "test_data":
            added = self.alarm_manager.add_test_history(rng=self.rng)
            return IntentResult(handled=True, response_text=f"Added {len(added)} test entries.", action="test_data")

        if parsed.action == "add":
            try:
                alarm = self.alarm_manager.add_alarm(time=parsed.time, **parsed.changes)
            except ValueError as exc:
                return IntentResult(handled=True, response_text=str(exc), action="add")
            return IntentResult(handled=True, response_text=f"Alarm set: {format_alarm(alarm)}", action="add")

        alarm = self._resolve(parsed.ref)
        if alarm is None:
            return IntentResult(handled=True, response_text="No such alarm.", action=parsed.action)

        try:
            if parsed.action == "delete":
                self.alarm_manager.delete_alarm(alarm.id)
                resp = f"Removed alarm {alarm.original_time} ({alarm.label})."
            elif parsed.action == "toggle":
                updated = self.alarm_manager.toggle_alarm(alarm.id)
                if updated is None:
                    return IntentResult(handled=True, response_text="No such alarm.", action="toggle")
                resp = f"Alarm {updated.original_time} is now {'on' if updated.enabled else 'off'}."
            else:
                changes = {"time": parsed.time} if parsed.action == "edit" else parsed.changes
                updated = self.alarm_manager.update_alarm(alarm.id, **changes)
                resp = f"Alarm updated: {format_alarm(updated)}" if updated else "No such alarm."
        except ValueError as exc:
            resp = str(exc)
        return IntentResult(handled=True, response_text=resp, action=parsed.action)

    def _resolve(self, ref: Optional[str]) -> Optional[Alarm]:
        if not ref:
            return None
        alarms = self.alarm_manager.list_alarms()
        if ref.isdigit():
            index = int(ref)
            if 1 <= index <= len(alarms):
                return alarms[index - 1]
            return None
        for alarm in alarms:
            if alarm.id == ref:
                return alarm
        return None


def format_alarm(alarm: Alarm) -> str:
    when = alarm.time
    if alarm.time != alarm.original_time:
        when = f"{alarm.time} (set {alarm.original_time})"
    state = "on" if alarm.enabled else "off"
    snooze = f"snooze {alarm.snooze_interval}m x{alarm.snooze_limit}" if alarm.snooze_enabled else "no snooze"
    return f"{when} {format_days(alarm.days)} - {alarm.label} [{state}, {snooze}]"
