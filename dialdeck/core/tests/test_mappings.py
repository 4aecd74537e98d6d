import json

import pytest

from dialdeck.core.mappings import (
    ButtonMappings, MappingError, DEFAULT_PHYSICAL, combo_key, parse_mode, parse_action,
)
from dialdeck.core.types import InterpretationMode as M, ControllerAction as A


def test_defaults_follow_joycon_layout():
    m = ButtonMappings()
    assert m.logical_for(2) == "LEFTSHOULDER"
    assert m.logical_for(10) == "X"
    assert m.logical_for(99) == "RAW_99"
    assert m.hold_mode("LEFTSHOULDER") == M.PAGE_SWITCHING
    assert m.press_action("PADDLE2") == A.FAST_FORWARD
    assert m.mouse_dial_mode("Right+Side2") == M.PRESET_SELECTION
    assert m.hold_mode("Y") == M.NONE


def test_save_load_keeps_changes(tmp_path):
    path = tmp_path / "mappings.json"
    m = ButtonMappings()
    m.set_physical("Y", 14)
    m.set_hold("Y", M.ZOOM_CONTROL)
    m.set_press("B", A.SAVE)
    m.set_mouse_dial("Side2+Right", M.PAN_AND_PAGE_FLIP)
    m.save(path)

    raw = json.loads(path.read_text())
    assert raw["hold"]["Y"] == "zoom_control"
    assert raw["mouse_dial"]["Right+Side2"] == "pan_and_page_scroll"

    back = ButtonMappings.load(path)
    assert back == m


def test_missing_file_gives_defaults(tmp_path):
    assert ButtonMappings.load(tmp_path / "nope.json") == ButtonMappings()


def test_corrupt_file_gives_defaults(tmp_path):
    path = tmp_path / "mappings.json"
    path.write_text("{not json")
    assert ButtonMappings.load(path) == ButtonMappings()


def test_invalid_entries_fall_back_to_defaults(tmp_path):
    path = tmp_path / "mappings.json"
    path.write_text(json.dumps({
        "physical": {"Y": 300, "A": -5, "B": "seven", "NOPE": 3, "X": 11},
        "hold": {"LEFTSHOULDER": "warp_drive", "Y": "tool_switching"},
        "press": {"GUIDE": "self_destruct"},
        "mouse_dial": {"Left": "zoom_control", "Middle": "zoom_control"},
    }))
    m = ButtonMappings.load(path)
    assert m.physical["Y"] == DEFAULT_PHYSICAL["Y"]
    assert m.physical["A"] == DEFAULT_PHYSICAL["A"]
    assert m.physical["B"] == DEFAULT_PHYSICAL["B"]
    assert m.physical["X"] == 11
    assert "NOPE" not in m.physical
    assert m.hold["LEFTSHOULDER"] == M.PAGE_SWITCHING
    assert m.hold["Y"] == M.TOOL_SWITCHING
    assert m.press["GUIDE"] == A.SAVE
    assert "Left" not in m.mouse_dial
    assert m.mouse_dial["Middle"] == M.ZOOM_CONTROL


def test_unmapped_physical_id_is_kept_unmapped():
    m = ButtonMappings.from_dict({"physical": {"GUIDE": -1, "START": None}})
    assert "GUIDE" not in m.physical
    assert "START" not in m.physical
    assert m.logical_for(0) == "RAW_0"


def test_legacy_display_strings_are_migrated():
    m = ButtonMappings.from_dict({
        "hold": {"PADDLE4": "ToolSwitching", "LEFTSTICK": "PanAndPageScroll"},
        "press": {"X": "Zoom 50%", "Y": "Set Marker Tool"},
    })
    assert m.hold["PADDLE4"] == M.TOOL_SWITCHING
    assert m.hold["LEFTSTICK"] == M.PAN_AND_PAGE_FLIP
    assert m.press["X"] == A.ZOOM_50
    assert m.press["Y"] == A.SET_MARKER_TOOL
    assert parse_mode("PageSwitching") == M.PAGE_SWITCHING
    assert parse_action("Fast Forward") == A.FAST_FORWARD
    assert parse_action(42) is None


def test_find_conflict_reports_other_owner():
    m = ButtonMappings()
    assert m.find_conflict(8, "Y") == "A"
    assert m.find_conflict(8, "A") is None
    assert m.find_conflict(77, "Y") is None


def test_setters_reject_programmer_errors():
    m = ButtonMappings()
    with pytest.raises(MappingError):
        m.set_physical("TRIGGER", 1)
    with pytest.raises(MappingError):
        m.set_physical("Y", -3)
    with pytest.raises(ValueError):
        m.set_press("NOPE", A.SAVE)


def test_combo_key_is_order_independent():
    assert combo_key(["Side1", "Right"]) == combo_key(["Right", "Side1"]) == "Right+Side1"
