from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from time_utils import DAY_NAMES

DAY_ALIASES: Dict[str, List[int]] = {
    "daily": list(range(7)),
    "everyday": list(range(7)),
    "weekdays": [1, 2, 3, 4, 5],
    "weekends": [0, 6],
}

SETTABLE = {
    "label": "label",
    "days": "days",
    "interval": "snooze_interval",
    "limit": "snooze_limit",
    "snooze": "snooze_enabled",
}

_TIME_RE = re.compile(r"^(\d{1,2})[:.](\d{2})$")


@dataclass
class AlarmCommand:
    action: str
    ref: Optional[str] = None
    time: Optional[str] = None
    changes: Dict[str, object] = field(default_factory=dict)
    error: Optional[str] = None
    raw_text: str = ""


def parse_command(text: str) -> Optional[AlarmCommand]:
    """Parse a console line such as ``add 6:45 mon-fri Gym``."""
    cleaned = text.strip()
    if not cleaned:
        return None
    words = cleaned.split()
    verb = words[0].lower()
    args = words[1:]

    if verb in ("list", "ls", "alarms"):
        return AlarmCommand(action="list", raw_text=cleaned)
    if verb == "history":
        return AlarmCommand(action="history", raw_text=cleaned)
    if verb == "status":
        return AlarmCommand(action="status", raw_text=cleaned)
    if verb in ("snooze", "later"):
        return AlarmCommand(action="snooze", raw_text=cleaned)
    if verb in ("dismiss", "stop", "off"):
        return AlarmCommand(action="dismiss", raw_text=cleaned)
    if verb in ("test-data", "testdata"):
        return AlarmCommand(action="test_data", raw_text=cleaned)
    if verb == "adjust":
        return AlarmCommand(action="adjust", raw_text=cleaned)
    if verb in ("help", "?"):
        return AlarmCommand(action="help", raw_text=cleaned)

    if verb in ("add", "new"):
        return _parse_add(args, cleaned)

    if verb in ("delete", "remove", "rm", "toggle"):
        if len(args) != 1:
            return _error(f"Usage: {verb} <number|id>", cleaned)
        action = "toggle" if verb == "toggle" else "delete"
        return AlarmCommand(action=action, ref=args[0], raw_text=cleaned)

    if verb == "edit":
        if len(args) != 2:
            return _error("Usage: edit <number|id> HH:MM", cleaned)
        time_value = parse_time(args[1])
        if not time_value:
            return _error(f"Can't read time {args[1]!r}", cleaned)
        return AlarmCommand(action="edit", ref=args[0], time=time_value, raw_text=cleaned)

    if verb == "set":
        return _parse_set(args, cleaned)

    return AlarmCommand(action="unknown", error=f"Unknown command {verb!r}, try 'help'.", raw_text=cleaned)


def parse_time(value: str) -> Optional[str]:
    match = _TIME_RE.match(value.strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def parse_days(value: str) -> Optional[List[int]]:
    """Parse ``mon-fri``, ``sat,sun``, ``weekdays`` and friends into 0..6 (0 = Sunday)."""
    value = value.lower()
    if value in DAY_ALIASES:
        return list(DAY_ALIASES[value])
    days = set()
    for part in value.split(","):
        if "-" in part:
            start, _, end = part.partition("-")
            if start not in DAY_NAMES or end not in DAY_NAMES:
                return None
            i, j = DAY_NAMES.index(start), DAY_NAMES.index(end)
            while True:
                days.add(i)
                if i == j:
                    break
                i = (i + 1) % 7
        elif part in DAY_NAMES:
            days.add(DAY_NAMES.index(part))
        else:
            return None
    return sorted(days)


def _parse_add(args: List[str], cleaned: str) -> AlarmCommand:
    if not args:
        return _error("Usage: add HH:MM [days] [label]", cleaned)
    time_value = parse_time(args[0])
    if not time_value:
        return _error(f"Can't read time {args[0]!r}", cleaned)
    changes: Dict[str, object] = {}
    rest = args[1:]
    if rest:
        days = parse_days(rest[0])
        if days is not None:
            changes["days"] = days
            rest = rest[1:]
    if rest:
        changes["label"] = " ".join(rest)
    return AlarmCommand(action="add", time=time_value, changes=changes, raw_text=cleaned)


def _parse_set(args: List[str], cleaned: str) -> AlarmCommand:
    if len(args) < 3 or args[1].lower() not in SETTABLE:
        return _error("Usage: set <number|id> label|days|interval|limit|snooze <value>", cleaned)
    ref, name, raw = args[0], args[1].lower(), " ".join(args[2:])
    field_name = SETTABLE[name]
    value: object
    if name == "label":
        value = raw
    elif name == "days":
        value = parse_days(raw)
        if value is None:
            return _error(f"Can't read days {raw!r}", cleaned)
    elif name == "snooze":
        if raw.lower() not in ("on", "off"):
            return _error("snooze takes on or off", cleaned)
        value = raw.lower() == "on"
    else:
        if not raw.lstrip("-").isdigit():
            return _error(f"{name} takes a number", cleaned)
        value = int(raw)
    return AlarmCommand(action="set", ref=ref, changes={field_name: value}, raw_text=cleaned)


def _error(message: str, cleaned: str) -> AlarmCommand:
    return AlarmCommand(action="unknown", error=message, raw_text=cleaned)
