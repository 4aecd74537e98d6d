"""
Button mapping tables.

Four opaque lookup tables supplied by the host:

- physical:   logical button name -> physical button id
- hold:       logical button name -> InterpretationMode (temporary override)
- press:      logical button name -> ControllerAction
- mouse_dial: mouse button combination ("Right+Side1") -> InterpretationMode

Persisted as JSON. Anything invalid on disk is treated as unmapped and the
built-in default for that key is used instead.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from dialdeck.core.types import ControllerAction, InterpretationMode

logger = logging.getLogger(__name__)

MAX_PHYSICAL_ID = 255

LOGICAL_BUTTONS = (
    "LEFTSHOULDER", "RIGHTSHOULDER", "PADDLE2", "PADDLE4",
    "Y", "A", "B", "X", "LEFTSTICK", "START", "GUIDE",
    "PREVIOUS_PAGE", "NEXT_PAGE",
)

# Joy-Con (L) raw button layout.
DEFAULT_PHYSICAL: Dict[str, int] = {
    "GUIDE": 0,
    "PADDLE2": 1,
    "LEFTSHOULDER": 2,
    "PADDLE4": 3,
    "RIGHTSHOULDER": 4,
    "START": 5,
    "LEFTSTICK": 6,
    "Y": 7,
    "A": 8,
    "B": 9,
    "X": 10,
}

DEFAULT_HOLD: Dict[str, InterpretationMode] = {
    "LEFTSHOULDER": InterpretationMode.PAGE_SWITCHING,
    "RIGHTSHOULDER": InterpretationMode.ZOOM_CONTROL,
    "PADDLE2": InterpretationMode.THICKNESS_CONTROL,
    "PADDLE4": InterpretationMode.TOOL_SWITCHING,
    "LEFTSTICK": InterpretationMode.PRESET_SELECTION,
}

DEFAULT_PRESS: Dict[str, ControllerAction] = {
    "LEFTSHOULDER": ControllerAction.PREVIOUS_PAGE,
    "RIGHTSHOULDER": ControllerAction.NEXT_PAGE,
    "PADDLE2": ControllerAction.FAST_FORWARD,
    "PADDLE4": ControllerAction.TOGGLE_DIAL,
    "Y": ControllerAction.SET_PEN_TOOL,
    "A": ControllerAction.SET_ERASER_TOOL,
    "B": ControllerAction.SET_MARKER_TOOL,
    "X": ControllerAction.ADD_PRESET,
    "LEFTSTICK": ControllerAction.ZOOM_50,
    "START": ControllerAction.OPEN_CONTROL_PANEL,
    "GUIDE": ControllerAction.SAVE,
    "PREVIOUS_PAGE": ControllerAction.PREVIOUS_PAGE,
    "NEXT_PAGE": ControllerAction.NEXT_PAGE,
}

DEFAULT_MOUSE_DIAL: Dict[str, InterpretationMode] = {
    "Right": InterpretationMode.PAGE_SWITCHING,
    "Side1": InterpretationMode.ZOOM_CONTROL,
    "Side2": InterpretationMode.THICKNESS_CONTROL,
    "Right+Side1": InterpretationMode.TOOL_SWITCHING,
    "Right+Side2": InterpretationMode.PRESET_SELECTION,
    "Side1+Side2": InterpretationMode.PAN_AND_PAGE_FLIP,
}

# Older settings stored English display strings instead of internal keys.
LEGACY_MODES = {
    "None": "none",
    "PageSwitching": "page_switching",
    "ZoomControl": "zoom_control",
    "ThicknessControl": "thickness_control",
    "ToolSwitching": "tool_switching",
    "PresetSelection": "preset_selection",
    "PanAndPageScroll": "pan_and_page_scroll",
}

LEGACY_ACTIONS = {
    "None": "none",
    "Toggle Fullscreen": "toggle_fullscreen",
    "Toggle Dial": "toggle_dial",
    "Zoom 50%": "zoom_50",
    "Zoom Out": "zoom_out",
    "Zoom 200%": "zoom_200",
    "Add Preset": "add_preset",
    "Delete Page": "delete_page",
    "Fast Forward": "fast_forward",
    "Open Control Panel": "open_control_panel",
    "Red": "red_color",
    "Blue": "blue_color",
    "Yellow": "yellow_color",
    "Green": "green_color",
    "Black": "black_color",
    "White": "white_color",
    "Custom Color": "custom_color",
    "Toggle Sidebar": "toggle_sidebar",
    "Save": "save",
    "Straight Line Tool": "straight_line_tool",
    "Rope Tool": "rope_tool",
    "Set Pen Tool": "set_pen_tool",
    "Set Marker Tool": "set_marker_tool",
    "Set Eraser Tool": "set_eraser_tool",
    "Toggle PDF Text Selection": "toggle_pdf_text_selection",
}

MOUSE_BUTTONS = ("Right", "Side1", "Side2", "Middle")


class MappingError(ValueError):
    """Raised by the setter API for unknown logical names or bad ids."""


def mappings_path() -> Path:
    p = Path.home() / ".config" / "dialdeck"
    p.mkdir(parents=True, exist_ok=True)
    return p / "mappings.json"


def combo_key(names) -> str:
    """Canonical combination string: sorted and '+'-joined."""
    return "+".join(sorted(names))


def parse_mode(value) -> Optional[InterpretationMode]:
    if isinstance(value, InterpretationMode):
        return value
    if not isinstance(value, str):
        return None
    value = LEGACY_MODES.get(value, value)
    try:
        return InterpretationMode(value)
    except ValueError:
        return None


def parse_action(value) -> Optional[ControllerAction]:
    if isinstance(value, ControllerAction):
        return value
    if not isinstance(value, str):
        return None
    value = LEGACY_ACTIONS.get(value, value)
    try:
        return ControllerAction(value)
    except ValueError:
        return None


def _valid_id(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MAX_PHYSICAL_ID


@dataclass
class ButtonMappings:
    physical: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_PHYSICAL))
    hold: Dict[str, InterpretationMode] = field(default_factory=lambda: dict(DEFAULT_HOLD))
    press: Dict[str, ControllerAction] = field(default_factory=lambda: dict(DEFAULT_PRESS))
    mouse_dial: Dict[str, InterpretationMode] = field(default_factory=lambda: dict(DEFAULT_MOUSE_DIAL))

    # ---------------------------------------------------------------
    # Lookups
    # ---------------------------------------------------------------

    def logical_for(self, physical_id: int) -> str:
        for logical, pid in self.physical.items():
            if pid == physical_id:
                return logical
        return f"RAW_{physical_id}"

    def hold_mode(self, logical: str) -> InterpretationMode:
        return self.hold.get(logical, InterpretationMode.NONE)

    def press_action(self, logical: str) -> ControllerAction:
        return self.press.get(logical, ControllerAction.NONE)

    def mouse_dial_mode(self, combo: str) -> InterpretationMode:
        return self.mouse_dial.get(combo, InterpretationMode.NONE)

    def find_conflict(self, physical_id: int, logical: str) -> Optional[str]:
        for other, pid in self.physical.items():
            if pid == physical_id and other != logical:
                return other
        return None

    # ---------------------------------------------------------------
    # Setters
    # ---------------------------------------------------------------

    def set_physical(self, logical: str, physical_id: Optional[int]) -> None:
        if logical not in LOGICAL_BUTTONS:
            raise MappingError(f"unknown logical button: {logical!r}")
        if physical_id is None:
            self.physical.pop(logical, None)
            return
        if not _valid_id(physical_id):
            raise MappingError(f"physical id out of range: {physical_id!r}")
        self.physical[logical] = physical_id

    def set_hold(self, logical: str, mode: InterpretationMode) -> None:
        if logical not in LOGICAL_BUTTONS:
            raise MappingError(f"unknown logical button: {logical!r}")
        self.hold[logical] = mode

    def set_press(self, logical: str, action: ControllerAction) -> None:
        if logical not in LOGICAL_BUTTONS:
            raise MappingError(f"unknown logical button: {logical!r}")
        self.press[logical] = action

    def set_mouse_dial(self, combo: str, mode: InterpretationMode) -> None:
        self.mouse_dial[combo_key(combo.split("+"))] = mode

    # ---------------------------------------------------------------
    # Persistence
    # ---------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "physical": dict(self.physical),
            "hold": {k: v.value for k, v in self.hold.items()},
            "press": {k: v.value for k, v in self.press.items()},
            "mouse_dial": {k: v.value for k, v in self.mouse_dial.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ButtonMappings":
        m = cls()
        if not isinstance(data, dict):
            logger.warning("Ignoring mapping data of type %s", type(data).__name__)
            return m

        for logical, pid in _section(data, "physical").items():
            if logical not in LOGICAL_BUTTONS:
                logger.warning("Unknown logical button %r in physical map, ignored", logical)
            elif pid is None or pid == -1:
                m.physical.pop(logical, None)
            elif _valid_id(pid):
                m.physical[logical] = pid
            else:
                logger.warning("Invalid physical id %r for %s, using default", pid, logical)

        for logical, raw in _section(data, "hold").items():
            mode = parse_mode(raw)
            if logical not in LOGICAL_BUTTONS or mode is None:
                logger.warning("Invalid hold mapping %r=%r, using default", logical, raw)
                continue
            m.hold[logical] = mode

        for logical, raw in _section(data, "press").items():
            action = parse_action(raw)
            if logical not in LOGICAL_BUTTONS or action is None:
                logger.warning("Invalid press mapping %r=%r, using default", logical, raw)
                continue
            m.press[logical] = action

        for combo, raw in _section(data, "mouse_dial").items():
            names = combo.split("+") if isinstance(combo, str) else []
            mode = parse_mode(raw)
            if not names or any(n not in MOUSE_BUTTONS for n in names) or mode is None:
                logger.warning("Invalid mouse dial mapping %r=%r, ignored", combo, raw)
                continue
            m.mouse_dial[combo_key(names)] = mode

        return m

    def save(self, path: Optional[Path] = None) -> None:
        p = path or mappings_path()
        p.write_text(json.dumps(self.to_dict(), indent=2))

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ButtonMappings":
        p = path or mappings_path()
        if not p.exists():
            return cls()
        try:
            data = json.loads(p.read_text())
        except (OSError, ValueError) as e:
            logger.warning("Could not read mappings from %s: %s", p, e)
            return cls()
        return cls.from_dict(data)


def _section(data: dict, key: str) -> dict:
    value = data.get(key, {})
    if not isinstance(value, dict):
        logger.warning("Mapping section %r is not an object, ignored", key)
        return {}
    return value
