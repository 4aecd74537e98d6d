from dialdeck.core.types import SinglePress, HoldStart, HoldEnd, RawButtonDetected
from dialdeck.interpreter.buttons import ButtonDisambiguator


def test_release_before_threshold_is_press():
    b = ButtonDisambiguator(hold_threshold_ms=300)
    b.on_button_down(4, 1000)
    assert b.on_button_up(4, 1299) == [SinglePress(4)]


def test_release_at_threshold_is_hold():
    b = ButtonDisambiguator(hold_threshold_ms=300)
    b.on_button_down(4, 1000)
    # no tick in between: the release alone decides
    assert b.on_button_up(4, 1300) == [HoldEnd(4)]


def test_tick_fires_hold_start_once():
    b = ButtonDisambiguator(hold_threshold_ms=300)
    b.on_button_down(2, 0)
    assert b.tick(299) == []
    assert b.tick(300) == [HoldStart(2)]
    assert b.tick(316) == []
    assert b.on_button_up(2, 500) == [HoldEnd(2)]
    assert b.tracked() == {}


def test_repeated_down_keeps_first_press_time():
    b = ButtonDisambiguator(hold_threshold_ms=300)
    b.on_button_down(1, 0)
    b.on_button_down(1, 200)
    assert b.on_button_up(1, 310) == [HoldEnd(1)]


def test_unknown_release_is_ignored():
    b = ButtonDisambiguator()
    assert b.on_button_up(9, 100) == []


def test_holds_fire_in_press_order():
    b = ButtonDisambiguator(hold_threshold_ms=300)
    b.on_button_down(5, 0)
    b.on_button_down(3, 10)
    assert b.tick(400) == [HoldStart(5), HoldStart(3)]


def test_detection_surfaces_raw_downs_only():
    b = ButtonDisambiguator(hold_threshold_ms=300)
    b.on_button_down(6, 0)   # already down when detection starts
    b.start_detection()

    assert b.on_button_down(7, 10) == [RawButtonDetected(button_id=7, name="RAW_7")]
    assert b.tick(1000) == []
    assert b.on_button_up(7, 1000) == []
    assert b.on_button_up(6, 1000) == []

    b.stop_detection()
    b.on_button_down(7, 2000)
    assert b.on_button_up(7, 2050) == [SinglePress(7)]


def test_detection_uses_backend_names():
    b = ButtonDisambiguator(namer=lambda i: f"BTN_{i}")
    b.start_detection()
    assert b.on_button_down(3, 0) == [RawButtonDetected(button_id=3, name="BTN_3")]
