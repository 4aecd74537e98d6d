from dialdeck.core.config import DEFAULT_PRESET
from dialdeck.core.mappings import ButtonMappings
from dialdeck.core.types import (
    InterpretationMode as M, ControllerAction as A, ActionTriggered, PageDelta, ToolSet, ZoomSet,
)
from dialdeck.interpreter.modes import ModeInterpreter, AppStateModel
from dialdeck.interpreter.mouse_dial import MouseDial
from dialdeck.interpreter.rotation import RotationAccumulator


def make(**state):
    rot = RotationAccumulator()
    interp = ModeInterpreter(DEFAULT_PRESET, AppStateModel(**state), rot)
    return MouseDial(interp, rot, ButtonMappings(), DEFAULT_PRESET.mouse_dial)


def test_arms_after_hold_delay():
    d = make()
    d.on_buttons({"Right"}, 0)
    assert d.tick(499) == []
    assert not d.active
    d.tick(500)
    assert d.active
    assert d.interpreter.current_mode == M.PAGE_SWITCHING
    assert d.interpreter.override_owner == "mouse:Right"


def test_wheel_down_turns_pages_forward():
    d = make()
    d.on_buttons({"Right"}, 0)
    d.tick(500)
    d.on_wheel(-1, 600)
    d.on_wheel(-1, 650)
    out = d.on_buttons(set(), 700)
    assert PageDelta(2) in out
    assert d.interpreter.current_mode == M.PAN_AND_PAGE_FLIP
    assert not d.active


def test_wheel_up_turns_pages_back():
    d = make()
    d.on_buttons({"Right"}, 0)
    d.tick(500)
    d.on_wheel(3, 600)
    assert PageDelta(-3) in d.on_buttons(set(), 700)


def test_combination_picks_its_own_mode():
    d = make(zoom=100)
    d.on_buttons({"Side1"}, 0)
    d.on_buttons({"Side1", "Right"}, 100)
    # timer runs from the first button; the combination is read when it fires
    d.tick(500)
    assert d.interpreter.current_mode == M.TOOL_SWITCHING
    assert d.active_combo == "Right+Side1"


def test_zoom_notch_is_thirty_degrees():
    d = make(zoom=100)
    d.on_buttons({"Side1"}, 0)
    d.tick(500)
    assert d.on_wheel(-1, 520) == [ZoomSet(107)]


def test_tool_dial_starts_at_current_tool():
    d = make(tool_index=1)
    d.on_buttons({"Right", "Side1"}, 0)
    d.tick(500)
    assert d.angle == 120
    out = d.on_wheel(-1, 510)
    assert ToolSet(2) in out


def test_unmapped_combination_does_nothing():
    d = make()
    d.on_buttons({"Middle"}, 0)
    assert d.tick(1000) == []
    assert not d.active


def test_releasing_before_delay_does_not_arm():
    d = make()
    d.on_buttons({"Right"}, 0)
    d.on_buttons(set(), 200)
    assert d.tick(600) == []
    assert not d.active


def test_existing_hold_blocks_mouse_override():
    d = make()
    d.interpreter.begin_temporary_override(M.ZOOM_CONTROL, owner="RIGHTSHOULDER")
    d.on_buttons({"Right"}, 0)
    d.tick(500)
    assert not d.active
    assert d.interpreter.current_mode == M.ZOOM_CONTROL


def test_side_button_taps_turn_pages():
    d = make()
    d.on_buttons({"Side1"}, 0)
    assert d.on_buttons(set(), 120) == [ActionTriggered(action=A.PREVIOUS_PAGE, button="mouse:Side1")]
    d.on_buttons({"Side2"}, 200)
    assert d.on_buttons(set(), 300) == [ActionTriggered(action=A.NEXT_PAGE, button="mouse:Side2")]
    assert not d.active


def test_side_button_held_past_delay_is_not_a_tap():
    d = make(zoom=100)
    d.on_buttons({"Side1"}, 0)
    d.tick(500)
    out = d.on_buttons(set(), 600)
    assert not any(isinstance(c, ActionTriggered) for c in out)
    assert d.interpreter.current_mode == M.PAN_AND_PAGE_FLIP


def test_right_button_tap_does_nothing():
    d = make()
    d.on_buttons({"Right"}, 0)
    assert d.on_buttons(set(), 100) == []


def test_tap_inside_a_combination_is_not_a_page_turn():
    d = make()
    d.on_buttons({"Right"}, 0)
    d.on_buttons({"Right", "Side1"}, 50)
    d.on_buttons({"Right"}, 100)
    assert d.on_buttons(set(), 150) == []


def test_combination_stays_active_until_every_button_is_released():
    d = make(tool_index=1)
    d.on_buttons({"Right", "Side1"}, 0)
    d.tick(500)
    assert d.interpreter.current_mode == M.TOOL_SWITCHING

    assert d.on_buttons({"Right"}, 600) == []
    assert d.active
    assert d.armed_at_ms is None
    assert d.tick(1200) == []
    assert d.interpreter.current_mode == M.TOOL_SWITCHING
    assert d.interpreter.override_owner == "mouse:Right+Side1"

    d.on_buttons(set(), 700)
    assert not d.active
    assert d.interpreter.current_mode == M.PAN_AND_PAGE_FLIP
