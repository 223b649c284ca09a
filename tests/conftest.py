from datetime import datetime

import pytest

from adaptive_alarm.learning import LearningAgent
from adaptive_alarm.manager import AlarmManager
from adaptive_alarm.storage import MemoryStore


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeSoundPlayer:
    def __init__(self):
        self.starts = 0
        self.stops = 0
        self.playing = False

    def start_loop(self) -> None:
        self.starts += 1
        self.playing = True

    def stop_loop(self) -> None:
        self.stops += 1
        self.playing = False


# 2025-01-06 is a Monday (day index 1).
MONDAY_7AM = datetime(2025, 1, 6, 7, 0)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock(MONDAY_7AM)


@pytest.fixture
def sound():
    return FakeSoundPlayer()


@pytest.fixture
def manager(store, clock, sound):
    agent = LearningAgent(store, exploration_rate=0.0)
    return AlarmManager(store, agent=agent, sound_player=sound, clock=clock)
