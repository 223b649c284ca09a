"""Tabular Q-learning agent that learns how far to shift an alarm.

The table maps an exact ``(day, observed time, intended time)`` context to a
value estimate for each of the eleven fixed minute offsets. Rows are created
lazily with zero values and the whole table is written through to the store
after every update.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from time_utils import minutes_to_time, time_to_minutes

from .storage import QTABLE_KEY

logger = logging.getLogger(__name__)

ACTIONS: Tuple[int, ...] = (-30, -20, -15, -10, -5, 0, 5, 10, 15, 20, 30)

# Order in which equal values are resolved by the greedy policy: no change
# first, then later shifts, then earlier shifts.
GREEDY_ORDER: Tuple[int, ...] = (0, 5, 10, 15, 20, 30, -30, -20, -15, -10, -5)
_GREEDY_INDEX = np.array([ACTIONS.index(a) for a in GREEDY_ORDER])


@dataclass(frozen=True)
class QState:
    current_time: str
    target_time: str
    day: int

    @property
    def key(self) -> str:
        return f"{self.day}-{self.current_time}-{self.target_time}"

    def to_dict(self) -> dict:
        return {"currentTime": self.current_time, "targetTime": self.target_time, "day": self.day}

    @classmethod
    def from_dict(cls, data: dict) -> "QState":
        day = int(data["day"])
        if not 0 <= day <= 6:
            raise ValueError(f"Day index {day} out of range")
        return cls(
            current_time=str(data["currentTime"]),
            target_time=str(data["targetTime"]),
            day=day,
        )


def calculate_reward(scheduled_time: str, actual_wakeup_time: str, snooze_count: int) -> float:
    """Reward waking close to the scheduled time, penalise every snooze.

    The closeness term is floored at zero, the snooze penalty is not, so the
    reward can go negative.
    """
    diff = time_to_minutes(actual_wakeup_time) - time_to_minutes(scheduled_time)
    base_reward = max(0.0, 10 - abs(diff) / 6)
    return base_reward - 2 * snooze_count


def nearest_action(delta_minutes: int) -> int:
    best = ACTIONS[0]
    for action in ACTIONS:
        if abs(action - delta_minutes) < abs(best - delta_minutes):
            best = action
    return best


class LearningAgent:
    def __init__(
        self,
        store,
        learning_rate: float = 0.1,
        discount_factor: float = 0.9,
        exploration_rate: float = 0.2,
        time_bucket_minutes: int = 1,
        seed: Optional[int] = None,
    ):
        self.store = store
        self.learning_rate = learning_rate
        self.discount_factor = discount_factor
        self.exploration_rate = exploration_rate
        self.time_bucket_minutes = max(1, int(time_bucket_minutes))
        self._rng = np.random.default_rng(seed)
        self._table: Dict[str, Tuple[QState, np.ndarray]] = {}
        self._load()

    def __len__(self) -> int:
        return len(self._table)

    def choose_action(self, state: QState) -> int:
        """Epsilon-greedy choice over ``ACTIONS`` for ``state``."""
        _, values = self._entry(state)
        if self._rng.random() < self.exploration_rate:
            return ACTIONS[int(self._rng.integers(len(ACTIONS)))]
        best = int(np.argmax(values[_GREEDY_INDEX]))
        return GREEDY_ORDER[best]

    def update_q_values(self, state: QState, action: int, reward: float, next_state: QState) -> float:
        if action not in ACTIONS:
            raise ValueError(f"Unknown action {action!r}")
        if not math.isfinite(reward):
            raise ValueError(f"Reward must be finite, got {reward!r}")

        _, values = self._entry(state)
        _, next_values = self._entry(next_state)
        idx = ACTIONS.index(action)
        old_value = float(values[idx])
        target = reward + self.discount_factor * float(np.max(next_values))
        values[idx] = old_value + self.learning_rate * (target - old_value)
        logger.debug(
            "Q update %s action=%s reward=%.2f: %.3f -> %.3f",
            self._normalize(state).key,
            action,
            reward,
            old_value,
            values[idx],
        )
        self._save()
        return float(values[idx])

    def values(self, state: QState) -> Dict[int, float]:
        entry = self._table.get(self._normalize(state).key)
        if entry is None:
            return {a: 0.0 for a in ACTIONS}
        return {a: float(v) for a, v in zip(ACTIONS, entry[1])}

    def states(self) -> Iterator[QState]:
        for state, _ in self._table.values():
            yield state

    def _normalize(self, state: QState) -> QState:
        if self.time_bucket_minutes == 1:
            return state
        minutes = time_to_minutes(state.current_time)
        bucketed = minutes - minutes % self.time_bucket_minutes
        return QState(minutes_to_time(bucketed), state.target_time, state.day)

    def _entry(self, state: QState) -> Tuple[QState, np.ndarray]:
        state = self._normalize(state)
        entry = self._table.get(state.key)
        if entry is None:
            entry = (state, np.zeros(len(ACTIONS), dtype=float))
            self._table[state.key] = entry
        return entry

    def _load(self) -> None:
        raw = self.store.get(QTABLE_KEY)
        if not raw:
            return
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            logger.error("Failed to parse Q-table snapshot: %s", exc)
            return
        if not isinstance(payload, list):
            logger.error("Q-table snapshot is not a list, starting empty")
            return
        for item in payload:
            try:
                state = QState.from_dict(item["state"])
                actions = item["actions"]
                values = np.array([float(actions.get(str(a), 0.0)) for a in ACTIONS], dtype=float)
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                logger.warning("Skipping Q-table row due to parse error: %s", exc)
                continue
            self._table[state.key] = (state, values)
        logger.info("Loaded Q-table with %s states", len(self._table))

    def _save(self) -> None:
        rows: List[dict] = []
        for state, values in self._table.values():
            rows.append(
                {
                    "state": state.to_dict(),
                    "actions": {str(a): float(v) for a, v in zip(ACTIONS, values)},
                }
            )
        self.store.set(QTABLE_KEY, json.dumps(rows))
