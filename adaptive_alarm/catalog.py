from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import List, Optional

from time_utils import is_valid_hhmm

from .storage import (
    SNOOZE_INTERVAL_RANGE,
    SNOOZE_LIMIT_RANGE,
    Alarm,
    clamp_setting,
    clean_days,
    load_alarms,
    save_alarms,
)

logger = logging.getLogger(__name__)

_EDITABLE = {"time", "original_time", "days", "enabled", "label", "snooze_enabled", "snooze_interval", "snooze_limit"}


def _check_time(value: str) -> str:
    if not is_valid_hhmm(value):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return value


class AlarmCatalog:
    def __init__(self, store):
        self.store = store
        self._alarms: List[Alarm] = load_alarms(store)
        logger.info("Loaded %s alarms", len(self._alarms))

    def __len__(self) -> int:
        return len(self._alarms)

    def list(self) -> List[Alarm]:
        return list(self._alarms)

    def get(self, alarm_id: str) -> Optional[Alarm]:
        for alarm in self._alarms:
            if alarm.id == alarm_id:
                return alarm
        return None

    def add(self, **fields) -> Alarm:
        unknown = set(fields) - _EDITABLE
        if unknown:
            raise ValueError(f"Unknown alarm fields: {', '.join(sorted(unknown))}")
        time_value = _check_time(fields.get("time") or fields.get("original_time") or "07:00")
        alarm = Alarm(
            id=f"al_{uuid.uuid4().hex[:8]}",
            time=time_value,
            original_time=_check_time(fields.get("original_time") or time_value),
            days=clean_days(fields.get("days", [1, 2, 3, 4, 5])),
            enabled=bool(fields.get("enabled", True)),
            label=str(fields.get("label") or "Wake up"),
            snooze_enabled=bool(fields.get("snooze_enabled", True)),
            snooze_interval=clamp_setting(fields.get("snooze_interval", 5), SNOOZE_INTERVAL_RANGE),
            snooze_limit=clamp_setting(fields.get("snooze_limit", 3), SNOOZE_LIMIT_RANGE),
        )
        self._alarms.append(alarm)
        self._save()
        logger.info("Alarm %s added for %s (label=%s)", alarm.id, alarm.time, alarm.label)
        return alarm

    def update(self, alarm_id: str, **changes) -> Optional[Alarm]:
        """Apply user edits. A new time replaces both the intended and effective time."""
        unknown = set(changes) - _EDITABLE
        if unknown:
            raise ValueError(f"Unknown alarm fields: {', '.join(sorted(unknown))}")
        alarm = self.get(alarm_id)
        if alarm is None:
            return None
        new_time = changes.pop("time", None) or changes.pop("original_time", None)
        changes.pop("original_time", None)
        if new_time is not None:
            _check_time(new_time)
            changes["time"] = new_time
            changes["original_time"] = new_time
        if "days" in changes:
            changes["days"] = clean_days(changes["days"])
        if "snooze_interval" in changes:
            changes["snooze_interval"] = clamp_setting(changes["snooze_interval"], SNOOZE_INTERVAL_RANGE)
        if "snooze_limit" in changes:
            changes["snooze_limit"] = clamp_setting(changes["snooze_limit"], SNOOZE_LIMIT_RANGE)
        return self._replace(alarm, **changes)

    def toggle(self, alarm_id: str) -> Optional[Alarm]:
        alarm = self.get(alarm_id)
        if alarm is None:
            return None
        return self._replace(alarm, enabled=not alarm.enabled)

    def set_effective_time(self, alarm_id: str, time_value: str) -> Optional[Alarm]:
        alarm = self.get(alarm_id)
        if alarm is None:
            return None
        return self._replace(alarm, time=_check_time(time_value))

    def delete(self, alarm_id: str) -> Optional[Alarm]:
        alarm = self.get(alarm_id)
        if alarm is None:
            return None
        self._alarms = [a for a in self._alarms if a.id != alarm_id]
        self._save()
        logger.info("Removed alarm %s", alarm_id)
        return alarm

    def _replace(self, alarm: Alarm, **changes) -> Alarm:
        updated = replace(alarm, **changes)
        self._alarms = [updated if a.id == alarm.id else a for a in self._alarms]
        self._save()
        return updated

    def _save(self) -> None:
        save_alarms(self.store, self._alarms)
