"""
DialDeck — tuning defaults (presets).

Angles are whole degrees, times are milliseconds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict

from dialdeck.core.types import InterpretationMode


class PresetName(str, Enum):
    DEFAULT = "Default"
    PRECISION = "Precision"


@dataclass(frozen=True)
class PollTuning:
    interval_ms: int = 16          # ~60 Hz


@dataclass(frozen=True)
class HoldTuning:
    hold_threshold_ms: int = 300


@dataclass(frozen=True)
class StickTuning:
    deadzone: float = 0.49         # fraction of full scale (16000 / 32768)
    jitter_deg: int = 3            # re-emit only when the angle moved further than this
    invert: bool = True            # clockwise turn -> increasing angle


@dataclass(frozen=True)
class PageTuning:
    click_deg: int = 45
    fast_forward_pages: int = 8
    click_pulse_ms: int = 10


@dataclass(frozen=True)
class ZoomTuning:
    min_zoom: int = 10
    max_zoom: int = 400
    deg_per_step: int = 4          # also the per-sample dead band


@dataclass(frozen=True)
class ThicknessTuning:
    min_thickness: float = 1.0
    max_thickness: float = 50.0
    deg_per_unit: float = 10.0
    fast_forward_factor: float = 5.0


@dataclass(frozen=True)
class ToolTuning:
    tool_count: int = 3            # pen, marker, eraser
    pulse_ms: int = 20


@dataclass(frozen=True)
class PresetTuning:
    step_deg: int = 60
    capacity: int = 6
    pulse_ms: int = 25


@dataclass(frozen=True)
class PanTuning:
    pan_per_deg: int = 4
    flip_deg: int = 120
    flip_pulse_ms: int = 25
    # Lower pan bound for combined-page canvases: threshold // ratio below
    # small_threshold, otherwise a flat offset.
    backward_ratio: int = 4
    backward_flat: int = 300
    small_threshold: int = 600


@dataclass(frozen=True)
class RumbleTuning:
    enabled: bool = True
    strong: int = 0xA000
    weak: int = 0xF000


@dataclass(frozen=True)
class MouseDialTuning:
    arm_ms: int = 500
    default_step_deg: int = 15
    step_deg: Dict[InterpretationMode, int] = field(default_factory=lambda: {
        InterpretationMode.PAGE_SWITCHING: 45,
        InterpretationMode.PRESET_SELECTION: 60,
        InterpretationMode.ZOOM_CONTROL: 30,
        InterpretationMode.THICKNESS_CONTROL: 20,
        InterpretationMode.TOOL_SWITCHING: 120,
        InterpretationMode.PAN_AND_PAGE_FLIP: 15,
    })

    def step_for(self, mode: InterpretationMode) -> int:
        return self.step_deg.get(mode, self.default_step_deg)


@dataclass(frozen=True)
class RemapTuning:
    timeout_ms: int = 10_000


@dataclass(frozen=True)
class Preset:
    name: PresetName
    poll: PollTuning
    hold: HoldTuning
    stick: StickTuning
    page: PageTuning
    zoom: ZoomTuning
    thickness: ThicknessTuning
    tool: ToolTuning = ToolTuning()
    preset: PresetTuning = PresetTuning()
    pan: PanTuning = PanTuning()
    rumble: RumbleTuning = RumbleTuning()
    mouse_dial: MouseDialTuning = field(default_factory=MouseDialTuning)
    remap: RemapTuning = RemapTuning()
    default_mode: InterpretationMode = InterpretationMode.PAN_AND_PAGE_FLIP


DEFAULT_PRESET = Preset(
    name=PresetName.DEFAULT,
    poll=PollTuning(interval_ms=16),
    hold=HoldTuning(hold_threshold_ms=300),
    stick=StickTuning(deadzone=0.49, jitter_deg=3),
    page=PageTuning(click_deg=45, fast_forward_pages=8),
    zoom=ZoomTuning(min_zoom=10, max_zoom=400, deg_per_step=4),
    thickness=ThicknessTuning(min_thickness=1.0, max_thickness=50.0, deg_per_unit=10.0),
)

# Slower dial: more rotation per page / zoom step, tighter deadzone.
PRECISION_PRESET = Preset(
    name=PresetName.PRECISION,
    poll=PollTuning(interval_ms=16),
    hold=HoldTuning(hold_threshold_ms=350),
    stick=StickTuning(deadzone=0.42, jitter_deg=2),
    page=PageTuning(click_deg=60, fast_forward_pages=8),
    zoom=ZoomTuning(min_zoom=10, max_zoom=400, deg_per_step=6),
    thickness=ThicknessTuning(min_thickness=1.0, max_thickness=50.0, deg_per_unit=15.0),
)

PRESETS = {
    PresetName.DEFAULT: DEFAULT_PRESET,
    PresetName.PRECISION: PRECISION_PRESET,
}
