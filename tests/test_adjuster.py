from datetime import datetime, timedelta

from adaptive_alarm.learning import QState


def test_learned_offset_moves_effective_time(manager, clock):
    alarm = manager.add_alarm(time="07:00")
    clock.now = datetime(2025, 1, 6, 0, 0)
    manager.agent.update_q_values(
        QState(current_time="00:00", target_time="07:00", day=1), -15, 5.0, QState("07:10", "07:00", 1)
    )

    applied = manager.adjust_alarm_times()
    assert applied == [(alarm.id, -15, "06:45")]
    updated = manager.catalog.get(alarm.id)
    assert (updated.time, updated.original_time) == ("06:45", "07:00")

    edited = manager.update_alarm(alarm.id, time="07:30")
    assert (edited.time, edited.original_time) == ("07:30", "07:30")


def test_adjusted_alarm_rings_at_new_time(manager, clock):
    alarm = manager.add_alarm(time="07:00")
    clock.now = datetime(2025, 1, 6, 0, 0)
    manager.agent.update_q_values(QState("00:00", "07:00", 1), -15, 5.0, QState("07:10", "07:00", 1))
    manager.adjust_alarm_times()

    clock.now = datetime(2025, 1, 6, 6, 45)
    assert manager.tick() is True
    assert manager.runtime_state().current_alarm.id == alarm.id


def test_adjustment_skips_inactive_alarms(manager, clock):
    weekend = manager.add_alarm(time="09:00", days=[0, 6])
    off = manager.add_alarm(time="07:00")
    manager.toggle_alarm(off.id)
    assert manager.adjust_alarm_times() == []
    assert manager.catalog.get(weekend.id).time == "09:00"


def test_untrained_state_keeps_original_time(manager):
    alarm = manager.add_alarm(time="07:00")
    manager.catalog.set_effective_time(alarm.id, "06:40")
    assert manager.adjust_alarm_times() == [(alarm.id, 0, "07:00")]
    assert manager.catalog.get(alarm.id).time == "07:00"


def test_adjustment_clamps_at_midnight(manager, clock):
    alarm = manager.add_alarm(time="00:10")
    clock.now = datetime(2025, 1, 6, 0, 0)
    manager.agent.update_q_values(QState("00:00", "00:10", 1), -30, 5.0, QState("00:20", "00:10", 1))
    assert manager.adjust_alarm_times() == [(alarm.id, -30, "00:00")]


def test_lookup_depends_on_run_time(manager, clock):
    alarm = manager.add_alarm(time="07:00")
    clock.now = datetime(2025, 1, 6, 0, 0)
    manager.agent.update_q_values(QState("00:00", "07:00", 1), 10, 5.0, QState("07:10", "07:00", 1))
    assert manager.adjust_alarm_times() == [(alarm.id, 10, "07:10")]

    clock.now += timedelta(minutes=1)
    assert manager.adjust_alarm_times() == [(alarm.id, 0, "07:00")]
