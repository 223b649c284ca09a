"""Adaptive alarm clock that learns when you actually get up."""

from .learning import ACTIONS, LearningAgent, QState, calculate_reward
from .manager import AlarmManager
from .scheduler import SchedulerLoop
from .state_machine import AlarmRuntimeState, AlarmStatus
