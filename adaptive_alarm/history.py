from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from .learning import calculate_reward
from .storage import HistoryEntry, load_history, save_history

logger = logging.getLogger(__name__)


class HistoryLog:
    """Append-only record of wake-up observations."""

    def __init__(self, store):
        self.store = store
        self._entries: List[HistoryEntry] = load_history(store)
        logger.info("Loaded %s history entries", len(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)
        save_history(self.store, self._entries)

    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def newest_first(self) -> List[HistoryEntry]:
        return list(reversed(self._entries))

    def add_test_history(
        self,
        alarm_ids: Sequence[str],
        now: datetime,
        rng: Optional[random.Random] = None,
        days: int = 10,
    ) -> List[HistoryEntry]:
        """Insert ``days`` synthetic mornings ending at ``now``.

        Entries are placed ahead of existing ones in the log, oldest first, so
        real observations keep their relative order and stay newest.
        """
        rng = rng or random.Random()
        generated: List[HistoryEntry] = []
        for offset in range(days):
            day = now - timedelta(days=offset)
            alarm_id = rng.choice(list(alarm_ids)) if alarm_ids else "test-alarm-id"
            scheduled = datetime(day.year, day.month, day.day, 7, rng.randrange(30))
            woke = scheduled + timedelta(minutes=rng.randrange(30))
            snooze_count = rng.randrange(4)
            scheduled_time = scheduled.strftime("%H:%M")
            wakeup_time = woke.strftime("%H:%M")
            generated.append(
                HistoryEntry(
                    alarm_id=alarm_id,
                    date=day.isoformat(),
                    scheduled_time=scheduled_time,
                    actual_wakeup_time=wakeup_time,
                    snooze_count=snooze_count,
                    reward=calculate_reward(scheduled_time, wakeup_time, snooze_count),
                )
            )
        generated.reverse()
        self._entries = generated + self._entries
        save_history(self.store, self._entries)
        logger.info("Added %s test history entries", len(generated))
        return generated
