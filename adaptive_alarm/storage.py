from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from time_utils import is_valid_hhmm

logger = logging.getLogger(__name__)

ALARMS_KEY = "alarms"
HISTORY_KEY = "alarmHistory"
QTABLE_KEY = "alarmQTable"

SNOOZE_INTERVAL_RANGE = (1, 30)
SNOOZE_LIMIT_RANGE = (1, 10)


def clamp_setting(value, bounds) -> int:
    low, high = bounds
    return max(low, min(high, int(value)))


def clean_days(days: Iterable[int]) -> List[int]:
    return sorted({int(d) for d in days if 0 <= int(d) <= 6})


def _flag(value, default: bool) -> bool:
    return value if isinstance(value, bool) else default


class MemoryStore:
    """In-process key/value store with the same contract as ``JsonFileStore``."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """String key/value store persisted as a single JSON object on disk."""

    def __init__(self, path: Path, write_retries: int = 2):
        self.path = Path(path)
        self.write_retries = max(0, write_retries)
        self._data: Dict[str, str] = self._read()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError) as exc:
            logger.error("Failed to load store from %s: %s", self.path, exc)
            return {}
        if not isinstance(payload, dict):
            logger.error("Store file %s does not hold an object, ignoring it", self.path)
            return {}
        return {str(k): v for k, v in payload.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        for attempt in range(self.write_retries + 1):
            try:
                self._flush()
                return
            except OSError as exc:
                logger.warning("Store write to %s failed (attempt %s): %s", self.path, attempt + 1, exc)
        logger.error("Giving up writing %s to %s; value kept in memory", key, self.path)

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)


@dataclass
class Alarm:
    id: str
    time: str
    original_time: str
    days: List[int] = field(default_factory=lambda: [1, 2, 3, 4, 5])
    enabled: bool = True
    label: str = "Wake up"
    snooze_enabled: bool = True
    snooze_interval: int = 5
    snooze_limit: int = 3

    def is_active_on(self, day: int) -> bool:
        return self.enabled and day in self.days

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "time": self.time,
            "originalTime": self.original_time,
            "days": list(self.days),
            "enabled": self.enabled,
            "label": self.label,
            "snoozeEnabled": self.snooze_enabled,
            "snoozeInterval": self.snooze_interval,
            "snoozeLimit": self.snooze_limit,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Alarm":
        alarm_id = data.get("id")
        time_raw = data.get("time")
        if not alarm_id or not time_raw:
            raise ValueError("Alarm payload missing id/time fields")
        original_raw = data.get("originalTime") or time_raw
        for value in (time_raw, original_raw):
            if not is_valid_hhmm(value):
                raise ValueError(f"Alarm {alarm_id} has invalid time {value!r}")
        return cls(
            id=str(alarm_id),
            time=time_raw,
            original_time=original_raw,
            days=clean_days(data.get("days", [])),
            enabled=_flag(data.get("enabled"), True),
            label=str(data.get("label") or "Wake up"),
            snooze_enabled=_flag(data.get("snoozeEnabled"), True),
            snooze_interval=clamp_setting(data.get("snoozeInterval", 5), SNOOZE_INTERVAL_RANGE),
            snooze_limit=clamp_setting(data.get("snoozeLimit", 3), SNOOZE_LIMIT_RANGE),
        )


@dataclass(frozen=True)
class HistoryEntry:
    alarm_id: str
    date: str
    scheduled_time: str
    actual_wakeup_time: str
    snooze_count: int
    reward: float

    def to_dict(self) -> dict:
        return {
            "alarmId": self.alarm_id,
            "date": self.date,
            "scheduledTime": self.scheduled_time,
            "actualWakeupTime": self.actual_wakeup_time,
            "snoozeCount": self.snooze_count,
            "reward": self.reward,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryEntry":
        return cls(
            alarm_id=str(data["alarmId"]),
            date=str(data["date"]),
            scheduled_time=str(data["scheduledTime"]),
            actual_wakeup_time=str(data["actualWakeupTime"]),
            snooze_count=int(data.get("snoozeCount", 0)),
            reward=float(data["reward"]),
        )


def load_items(store, key: str) -> List[dict]:
    """Read a JSON list snapshot, treating anything unreadable as empty."""
    raw = store.get(key)
    if not raw:
        return []
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        logger.error("Failed to parse %s snapshot: %s", key, exc)
        return []
    if not isinstance(payload, list):
        logger.error("Snapshot %s is not a list, ignoring it", key)
        return []
    return [item for item in payload if isinstance(item, dict)]


def save_items(store, key: str, items: List[dict]) -> None:
    store.set(key, json.dumps(items, ensure_ascii=False))


def load_alarms(store) -> List[Alarm]:
    alarms: List[Alarm] = []
    for item in load_items(store, ALARMS_KEY):
        try:
            alarms.append(Alarm.from_dict(item))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping alarm item due to parse error: %s", exc)
    return alarms


def save_alarms(store, alarms: List[Alarm]) -> None:
    save_items(store, ALARMS_KEY, [a.to_dict() for a in alarms])


def load_history(store) -> List[HistoryEntry]:
    entries: List[HistoryEntry] = []
    for item in load_items(store, HISTORY_KEY):
        try:
            entries.append(HistoryEntry.from_dict(item))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping history item due to parse error: %s", exc)
    return entries


def save_history(store, entries: List[HistoryEntry]) -> None:
    save_items(store, HISTORY_KEY, [e.to_dict() for e in entries])
