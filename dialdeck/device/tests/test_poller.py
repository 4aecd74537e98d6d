import time

import pytest

from dialdeck.core.config import StickTuning
from dialdeck.core.control import ControlState
from dialdeck.core.types import ButtonDown, ButtonUp, AxisAngle, AxisIdle
from dialdeck.device.backend import FakeBackend
from dialdeck.device.poller import DevicePoller, stick_angle, angle_distance


def make(**kw):
    backend = FakeBackend(**kw)
    control = ControlState()
    poller = DevicePoller(backend, stick=StickTuning(deadzone=0.49, jitter_deg=3), control=control)
    return poller, backend, control


@pytest.mark.parametrize("x,y,angle", [
    (30000, 0, 0),        # right
    (0, 30000, 90),       # down: a clockwise quarter turn from right
    (-30000, 0, 180),
    (0, -30000, 270),     # up
])
def test_stick_angle_grows_clockwise(x, y, angle):
    assert stick_angle(x, y) == angle


def test_angle_distance_wraps():
    assert angle_distance(359, 1) == 2
    assert angle_distance(10, 200) == 170


def test_absent_device_is_quiet():
    poller, backend, control = make(available=False)
    assert poller.start() is False
    assert poller.poll(0) == []
    assert not poller.connected
    assert not control.is_connected()


def test_button_edges_in_arrival_order():
    poller, backend, control = make()
    assert poller.start()
    assert control.is_connected()
    backend.press(2)
    backend.press(7)
    backend.release(2)
    assert poller.poll(16) == [ButtonDown(2, 16), ButtonDown(7, 16), ButtonUp(2, 16)]
    assert poller.poll(32) == []


def test_deadzone_and_single_idle():
    poller, backend, _ = make()
    poller.start()
    backend.set_axes(10000, 0)        # ~0.31 of full scale
    assert poller.poll(0) == []

    backend.set_axes(30000, 0)
    assert poller.poll(16) == [AxisAngle(0, 16)]

    backend.center()
    assert poller.poll(32) == [AxisIdle(32)]
    assert poller.poll(48) == []


def test_jitter_filter_needs_more_than_three_degrees():
    poller, backend, _ = make()
    poller.start()
    backend.set_axes(30000, 0)
    poller.poll(0)

    # about 2 degrees clockwise: filtered
    backend.set_axes(29982, 1047)
    assert poller.poll(16) == []

    # about 5 degrees: emitted
    backend.set_axes(29886, 2615)
    (ev,) = poller.poll(32)
    assert isinstance(ev, AxisAngle)
    assert ev.degrees in (4, 5)


def test_read_error_degrades_to_no_device():
    poller, backend, control = make()
    poller.start()
    backend.fail_next_pump = OSError(19, "No such device")
    assert poller.poll(0) == []
    assert not poller.connected
    assert not control.is_connected()
    assert poller.poll(16) == []


def test_reconnect_reopens_and_resets_stick():
    poller, backend, _ = make()
    poller.start()
    backend.set_axes(30000, 0)
    poller.poll(0)

    assert poller.reconnect()
    assert backend.opens == 2
    # stick state was reset: the held position is a fresh first sample
    assert poller.poll(16) == [AxisAngle(0, 16)]


def test_rumble_is_best_effort():
    poller, backend, _ = make()
    poller.rumble(10)
    assert backend.pulses == []
    poller.start()
    poller.rumble(10)
    assert backend.pulses == [10]


def test_threaded_mode_hands_over_through_queue():
    poller, backend, _ = make()
    backend.press(3)
    poller.start(threaded=True)
    try:
        deadline = time.monotonic() + 2.0
        got = []
        while not got and time.monotonic() < deadline:
            got = poller.poll()
            time.sleep(0.005)
        assert [type(e) for e in got] == [ButtonDown]
        assert got[0].button_id == 3
    finally:
        poller.stop()
    assert not poller.connected


def test_reconnect_drops_events_from_old_handle():
    poller, backend, _ = make()
    poller.start()
    old = poller._generation
    poller.reconnect()
    # a worker that sampled just before reconnect() queues late
    poller._queue.put((old, ButtonDown(1, 0)))
    poller._queue.put((poller._generation, ButtonDown(2, 16)))
    poller._thread = object()   # drain path without a live worker
    try:
        assert poller.poll() == [ButtonDown(2, 16)]
    finally:
        poller._thread = None
