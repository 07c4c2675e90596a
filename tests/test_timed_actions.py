import pytest

from portaria.objects.timed_actions import TimedActionTracker, OPEN_GATE, CLOSE_GATE, SIREN


class RecordingActuator:
    def __init__(self):
        self.calls = []

    def on(self):
        self.calls.append('on')

    def off(self):
        self.calls.append('off')


def make_tracker():
    actuators = {
        OPEN_GATE: RecordingActuator(),
        CLOSE_GATE: RecordingActuator(),
        SIREN: RecordingActuator()
    }
    tracker = TimedActionTracker(actuators, {OPEN_GATE: 2, CLOSE_GATE: 2, SIREN: 5})
    return tracker, actuators


def test_counters_start_at_zero():
    tracker, _ = make_tracker()
    assert [tracker.remaining(a) for a in tracker.actions] == [0, 0, 0]
    assert not tracker.is_active(SIREN)


def test_gate_open_counts_down_and_releases_once():
    tracker, actuators = make_tracker()
    tracker.start(OPEN_GATE)
    assert tracker.remaining(OPEN_GATE) == 2
    assert actuators[OPEN_GATE].calls == ['on']

    tracker.tick()
    assert tracker.remaining(OPEN_GATE) == 1
    assert actuators[OPEN_GATE].calls == ['on']

    tracker.tick()
    assert tracker.remaining(OPEN_GATE) == 0
    assert actuators[OPEN_GATE].calls == ['on', 'off']

    for _ in range(5):
        tracker.tick()
    assert tracker.remaining(OPEN_GATE) == 0
    assert actuators[OPEN_GATE].calls == ['on', 'off']


def test_counters_are_independent():
    tracker, actuators = make_tracker()
    tracker.start(OPEN_GATE)
    tracker.start(SIREN)
    tracker.tick()
    tracker.tick()

    assert tracker.remaining(OPEN_GATE) == 0
    assert tracker.remaining(SIREN) == 3
    assert actuators[SIREN].calls == ['on']
    assert actuators[CLOSE_GATE].calls == []


def test_siren_stopped_early_releases_exactly_once():
    tracker, actuators = make_tracker()
    tracker.start(SIREN)
    tracker.tick()
    tracker.tick()
    assert tracker.remaining(SIREN) == 3

    tracker.stop(SIREN)
    assert tracker.remaining(SIREN) == 0
    assert actuators[SIREN].calls == ['on', 'off']

    for _ in range(5):
        tracker.tick()
    assert actuators[SIREN].calls == ['on', 'off']


def test_restart_resets_countdown():
    tracker, _ = make_tracker()
    tracker.start(CLOSE_GATE)
    tracker.tick()
    tracker.start(CLOSE_GATE)
    assert tracker.remaining(CLOSE_GATE) == 2


def test_unknown_action_raises():
    tracker, _ = make_tracker()
    with pytest.raises(ValueError):
        tracker.start('floodlight')
    with pytest.raises(ValueError):
        tracker.remaining('floodlight')


def test_missing_actuator_is_rejected():
    with pytest.raises(ValueError):
        TimedActionTracker({}, {SIREN: 5})
