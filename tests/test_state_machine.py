from datetime import timedelta

import pytest

from adaptive_alarm.learning import QState
from adaptive_alarm.state_machine import AlarmStatus


def test_due_alarm_starts_ringing(manager, sound):
    alarm = manager.add_alarm(time="07:00", snooze_limit=1)
    assert manager.tick() is True
    state = manager.runtime_state()
    assert state.status is AlarmStatus.RINGING
    assert state.current_alarm.id == alarm.id
    assert state.snooze_count == 0
    assert sound.starts == 1


def test_no_ring_on_wrong_minute_day_or_disabled(manager, clock):
    manager.add_alarm(time="07:01")
    manager.add_alarm(time="07:00", days=[0, 6])
    disabled = manager.add_alarm(time="07:00")
    manager.toggle_alarm(disabled.id)
    assert manager.tick() is False
    assert manager.runtime_state().status is AlarmStatus.IDLE


def test_snooze_limit_scenario(manager, clock):
    manager.add_alarm(time="07:00", snooze_limit=1, snooze_interval=5)
    manager.tick()

    assert manager.snooze() is True
    state = manager.runtime_state()
    assert state.status is AlarmStatus.SNOOZED
    assert state.next_snooze_time == "07:05"
    assert state.snooze_count == 1

    assert manager.snooze() is False
    assert manager.runtime_state().snooze_count == 1

    clock.now += timedelta(minutes=7)
    entry = manager.dismiss()
    assert entry.actual_wakeup_time == "07:07"
    assert entry.snooze_count == 1
    assert round(entry.reward, 2) == 6.83
    assert manager.runtime_state().status is AlarmStatus.IDLE
    assert manager.list_history() == [entry]


def test_snoozed_alarm_rings_again_at_snooze_time(manager, clock, sound):
    manager.add_alarm(time="07:00", snooze_interval=5)
    manager.tick()
    manager.snooze()
    assert sound.playing is False

    clock.now += timedelta(minutes=4)
    assert manager.tick() is False
    assert manager.runtime_state().status is AlarmStatus.SNOOZED

    clock.now += timedelta(minutes=1)
    assert manager.tick() is True
    state = manager.runtime_state()
    assert state.status is AlarmStatus.RINGING
    assert state.next_snooze_time is None
    assert sound.playing is True


def test_snooze_disabled_is_a_no_op(manager):
    manager.add_alarm(time="07:00", snooze_enabled=False)
    manager.tick()
    assert manager.snooze() is False
    assert manager.runtime_state().status is AlarmStatus.RINGING


def test_snooze_and_dismiss_without_episode(manager):
    assert manager.snooze() is False
    assert manager.dismiss() is None
    assert manager.list_history() == []


def test_ringing_ignores_ticks(manager, clock):
    manager.add_alarm(time="07:00")
    manager.add_alarm(time="07:01")
    manager.tick()
    first = manager.runtime_state().current_alarm
    clock.now += timedelta(minutes=1)
    assert manager.tick() is False
    assert manager.runtime_state().current_alarm.id == first.id


def test_dismissed_alarm_does_not_ring_twice_in_same_minute(manager, clock):
    manager.add_alarm(time="07:00")
    manager.tick()
    manager.dismiss()
    clock.now += timedelta(seconds=30)
    assert manager.tick() is False


def test_simultaneous_alarms_pick_lowest_id(manager):
    alarms = [manager.add_alarm(time="07:00", label=f"a{i}") for i in range(4)]
    manager.tick()
    assert manager.runtime_state().current_alarm.id == min(a.id for a in alarms)


def test_dismiss_updates_learning_table(manager, clock):
    alarm = manager.add_alarm(time="07:00")
    manager.tick()
    clock.now += timedelta(minutes=3)
    entry = manager.dismiss()
    values = manager.agent.values(QState(current_time="07:00", target_time=alarm.original_time, day=1))
    # Woke 3 minutes after the intended time: nearest action is +5.
    assert values[5] == pytest.approx(0.1 * entry.reward)
    assert all(v == 0 for a, v in values.items() if a != 5)


def test_dismiss_credits_wake_offset_from_intended_time(manager, clock):
    alarm = manager.add_alarm(time="07:00")
    manager.tick()
    clock.now += timedelta(minutes=7)
    entry = manager.dismiss()
    values = manager.agent.values(QState(current_time="07:00", target_time="07:00", day=1))
    assert values[5] == pytest.approx(0.1 * entry.reward)
    assert values[0] == 0
    assert entry.scheduled_time == alarm.time


def test_dismiss_after_adjustment_uses_intended_time(manager, clock):
    alarm = manager.add_alarm(time="07:00")
    manager.catalog.set_effective_time(alarm.id, "06:43")
    clock.now = clock.now.replace(hour=6, minute=43)
    manager.tick()
    clock.now += timedelta(minutes=2)
    entry = manager.dismiss()
    values = manager.agent.values(QState(current_time="06:43", target_time="07:00", day=1))
    # 06:45 is 15 minutes before the intended 07:00.
    assert values[-15] == pytest.approx(0.1 * entry.reward)
    assert entry.scheduled_time == "06:43"


def test_rejected_learning_update_leaves_episode_and_history(manager, clock, monkeypatch):
    manager.add_alarm(time="07:00")
    manager.tick()

    def reject(*args):
        raise ValueError("bad update")

    monkeypatch.setattr(manager.agent, "update_q_values", reject)
    clock.now += timedelta(minutes=2)
    with pytest.raises(ValueError):
        manager.dismiss()
    assert manager.list_history() == []
    assert manager.runtime_state().status is AlarmStatus.RINGING


def test_dismiss_stops_sound(manager, sound):
    manager.add_alarm(time="07:00")
    manager.tick()
    manager.dismiss()
    assert sound.starts == 1
    assert sound.stops == 1
    assert sound.playing is False


def test_snooze_count_never_exceeds_limit(manager, clock):
    manager.add_alarm(time="07:00", snooze_limit=3, snooze_interval=1)
    manager.tick()
    for _ in range(10):
        manager.snooze()
        state = manager.runtime_state()
        assert state.snooze_count <= 3
        clock.now += timedelta(minutes=1)
        manager.tick()
    assert manager.runtime_state().snooze_count == 3


def test_deleting_ringing_alarm_keeps_episode(manager):
    alarm = manager.add_alarm(time="07:00")
    manager.tick()
    manager.delete_alarm(alarm.id)
    entry = manager.dismiss()
    assert entry.alarm_id == alarm.id
