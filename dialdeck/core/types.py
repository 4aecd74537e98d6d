"""
DialDeck — core contracts.

Every stage of the pipeline talks through the frozen types below:

    device poller  -> RawEvent
    disambiguator  -> ButtonSignal
    interpreter    -> Command
    remap session  -> RemapNotice

All timestamps are integer milliseconds (t_ms) from a monotonic clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


# ============================================================
# Device -> Core (raw hardware edges and samples)
# ============================================================

@dataclass(frozen=True)
class ButtonDown:
    button_id: int
    t_ms: int = 0


@dataclass(frozen=True)
class ButtonUp:
    button_id: int
    t_ms: int = 0


@dataclass(frozen=True)
class AxisAngle:
    """Absolute stick angle in whole degrees, 0..359, clockwise increasing."""
    degrees: int
    t_ms: int = 0


@dataclass(frozen=True)
class AxisIdle:
    """Stick returned to the deadzone."""
    t_ms: int = 0


RawEvent = Union[ButtonDown, ButtonUp, AxisAngle, AxisIdle]


# Mouse dial source (pynput listener thread -> loop)

@dataclass(frozen=True)
class MouseButtonEdge:
    name: str          # "Right" | "Side1" | "Side2" | "Middle"
    down: bool
    t_ms: int = 0


@dataclass(frozen=True)
class WheelNotch:
    steps: int         # >0 wheel up, <0 wheel down
    t_ms: int = 0


MouseEvent = Union[MouseButtonEdge, WheelNotch]


# ============================================================
# Disambiguator -> Router
# ============================================================

@dataclass(frozen=True)
class SinglePress:
    button_id: int


@dataclass(frozen=True)
class HoldStart:
    button_id: int


@dataclass(frozen=True)
class HoldEnd:
    button_id: int


@dataclass(frozen=True)
class RawButtonDetected:
    """Surfaced instead of press/hold logic while detection mode is on."""
    button_id: int
    name: str


ButtonSignal = Union[SinglePress, HoldStart, HoldEnd, RawButtonDetected]


# ============================================================
# Modes and actions (values are the persisted internal keys)
# ============================================================

class InterpretationMode(str, Enum):
    NONE = "none"
    PAGE_SWITCHING = "page_switching"
    ZOOM_CONTROL = "zoom_control"
    THICKNESS_CONTROL = "thickness_control"
    TOOL_SWITCHING = "tool_switching"
    PRESET_SELECTION = "preset_selection"
    PAN_AND_PAGE_FLIP = "pan_and_page_scroll"


class ControllerAction(str, Enum):
    NONE = "none"
    TOGGLE_FULLSCREEN = "toggle_fullscreen"
    TOGGLE_DIAL = "toggle_dial"
    ZOOM_50 = "zoom_50"
    ZOOM_OUT = "zoom_out"
    ZOOM_200 = "zoom_200"
    ADD_PRESET = "add_preset"
    DELETE_PAGE = "delete_page"
    FAST_FORWARD = "fast_forward"
    OPEN_CONTROL_PANEL = "open_control_panel"
    RED_COLOR = "red_color"
    BLUE_COLOR = "blue_color"
    YELLOW_COLOR = "yellow_color"
    GREEN_COLOR = "green_color"
    BLACK_COLOR = "black_color"
    WHITE_COLOR = "white_color"
    CUSTOM_COLOR = "custom_color"
    TOGGLE_SIDEBAR = "toggle_sidebar"
    SAVE = "save"
    STRAIGHT_LINE_TOOL = "straight_line_tool"
    ROPE_TOOL = "rope_tool"
    SET_PEN_TOOL = "set_pen_tool"
    SET_MARKER_TOOL = "set_marker_tool"
    SET_ERASER_TOOL = "set_eraser_tool"
    TOGGLE_PDF_TEXT_SELECTION = "toggle_pdf_text_selection"
    TOGGLE_OUTLINE = "toggle_outline"
    TOGGLE_BOOKMARKS = "toggle_bookmarks"
    ADD_BOOKMARK = "add_bookmark"
    TOGGLE_TOUCH_GESTURES = "toggle_touch_gestures"
    PREVIOUS_PAGE = "previous_page"
    NEXT_PAGE = "next_page"


# ============================================================
# Interpreter -> Command Sink
# ============================================================

@dataclass(frozen=True)
class PageDelta:
    pages: int


@dataclass(frozen=True)
class ZoomSet:
    zoom: int


@dataclass(frozen=True)
class ThicknessSet:
    thickness: float


@dataclass(frozen=True)
class ToolSet:
    tool_index: int


@dataclass(frozen=True)
class PresetIndexDelta:
    step: int          # +1 | -1


@dataclass(frozen=True)
class PanSet:
    pan: int


@dataclass(frozen=True)
class RumblePulse:
    """Haptic pulse request; hosts also play the dial click on it."""
    duration_ms: int = 10


@dataclass(frozen=True)
class DisplayRefreshRequested:
    pass


@dataclass(frozen=True)
class ActionTriggered:
    """Press-action table hit, dispatched straight to the host."""
    action: ControllerAction
    button: str


Command = Union[
    PageDelta, ZoomSet, ThicknessSet, ToolSet, PresetIndexDelta,
    PanSet, RumblePulse, DisplayRefreshRequested, ActionTriggered,
]


# ============================================================
# Remap session -> Host
# ============================================================

@dataclass(frozen=True)
class RemapApplied:
    logical: str
    physical_id: int
    cleared: str | None = None     # logical button that lost this id


@dataclass(frozen=True)
class RemapConflict:
    logical: str
    physical_id: int
    existing: str


@dataclass(frozen=True)
class RemapCancelled:
    logical: str
    reason: str        # "timeout" | "declined" | "cancelled"


RemapNotice = Union[RemapApplied, RemapConflict, RemapCancelled]


# ============================================================
# Helpers
# ============================================================

def clamp(x, lo, hi):
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x


def trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero (so -80 / 45 is -1, not -2)."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def shortest_delta(prev: int, cur: int) -> int:
    """Signed angular step prev -> cur along the shorter arc, in [-180, 180]."""
    delta = cur - prev
    if delta > 180:
        delta -= 360
    if delta < -180:
        delta += 360
    return delta
