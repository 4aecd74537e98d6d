from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from dialdeck.core.config import Preset, PanTuning
from dialdeck.core.types import (
    Command, InterpretationMode,
    PageDelta, ZoomSet, ThicknessSet, ToolSet, PresetIndexDelta, PanSet,
    RumblePulse, DisplayRefreshRequested,
    clamp, trunc_div,
)
from dialdeck.interpreter.rotation import RotationAccumulator

logger = logging.getLogger(__name__)


class ApplicationState(Protocol):
    """The slice of host state the dial reads and writes."""
    zoom: int
    thickness: float
    tool_index: int
    pan: int
    pan_min: int
    pan_max: int
    preset_index: int
    preset_count: int
    fast_forward: bool


@dataclass
class AppStateModel:
    zoom: int = 100
    thickness: float = 5.0
    tool_index: int = 0
    pan: int = 0
    pan_min: int = 0
    pan_max: int = 1000
    preset_index: int = 0
    preset_count: int = 6
    fast_forward: bool = False


def pan_range_for_autoscroll(threshold: int, max_pan: int, tuning: PanTuning = PanTuning()) -> tuple[int, int]:
    """
    Pan bounds for a combined-page canvas with an autoscroll threshold.

    The negative part lets the dial scroll far enough back to reach the
    backward page switch.
    """
    if threshold <= 0:
        return 0, max_pan
    if threshold < tuning.small_threshold:
        offset = threshold // tuning.backward_ratio
    else:
        offset = tuning.backward_flat
    return min(-offset, -(threshold // 10)), max_pan


@dataclass(frozen=True)
class _ModeHandlers:
    on_sample: Callable[[int, Optional[int]], list[Command]]
    on_release: Callable[[int], list[Command]]


def _no_sample(angle: int, delta: Optional[int]) -> list[Command]:
    return []


def _no_release(total: int) -> list[Command]:
    return []


class ModeInterpreter:
    """
    Maps rotation to commands for the current InterpretationMode.

    One handler record per mode; set_mode() swaps the record, nothing else is
    rewired. A temporary override remembers the mode it shadowed plus the
    owner that started it, and only that owner can end it.
    """

    def __init__(self, preset: Preset, state: ApplicationState, rotation: RotationAccumulator,
                 mode: InterpretationMode | None = None) -> None:
        self.preset = preset
        self.state = state
        self.rotation = rotation

        self.current_mode: InterpretationMode = mode if mode is not None else preset.default_mode
        self.saved_mode: InterpretationMode | None = None
        self.override_owner: str | None = None

        self._handlers: Dict[InterpretationMode, _ModeHandlers] = {
            InterpretationMode.NONE: _ModeHandlers(_no_sample, _no_release),
            InterpretationMode.PAGE_SWITCHING: _ModeHandlers(self._page_sample, self._page_release),
            InterpretationMode.ZOOM_CONTROL: _ModeHandlers(self._zoom_sample, _no_release),
            InterpretationMode.THICKNESS_CONTROL: _ModeHandlers(self._thickness_sample, _no_release),
            InterpretationMode.TOOL_SWITCHING: _ModeHandlers(self._tool_sample, _no_release),
            InterpretationMode.PRESET_SELECTION: _ModeHandlers(self._preset_sample, _no_release),
            InterpretationMode.PAN_AND_PAGE_FLIP: _ModeHandlers(self._pan_sample, self._pan_release),
        }
        self._active = self._handlers[self.current_mode]

        # mode-transient state
        self.pending_clicks: int = 0
        self._last_tool_index: int | None = None
        self._preset_accum: int = 0
        self.pending_flip: int = 0
        self._enter_mode()

    # ---------------------------------------------------------------
    # Mode state machine
    # ---------------------------------------------------------------

    def set_mode(self, mode: InterpretationMode) -> list[Command]:
        mode = InterpretationMode(mode)
        if mode != self.current_mode:
            logger.info("dial mode %s -> %s", self.current_mode.value, mode.value)
        self.current_mode = mode
        self._active = self._handlers[mode]
        self._enter_mode()
        return [DisplayRefreshRequested()]

    def begin_temporary_override(self, mode: InterpretationMode, owner: str | None = None) -> list[Command]:
        if self.saved_mode is not None:
            # first hold wins
            return []
        self.saved_mode = self.current_mode
        self.override_owner = owner
        return self.set_mode(mode)

    def end_temporary_override(self, owner: str | None = None) -> list[Command]:
        if self.saved_mode is None:
            return []
        if owner is not None and owner != self.override_owner:
            return []
        restore = self.saved_mode
        self.saved_mode = None
        self.override_owner = None
        return self.set_mode(restore)

    @property
    def override_active(self) -> bool:
        return self.saved_mode is not None

    def reset(self) -> None:
        """Drop override bookkeeping and transient state; current mode is kept."""
        self.saved_mode = None
        self.override_owner = None
        self._enter_mode()

    def _enter_mode(self) -> None:
        self.pending_clicks = 0
        self._preset_accum = 0
        self.pending_flip = 0
        self._last_tool_index = int(self.state.tool_index)

    # ---------------------------------------------------------------
    # Input
    # ---------------------------------------------------------------

    def on_rotation(self, angle: int, delta: int | None, t_ms: int = 0) -> list[Command]:
        return self._active.on_sample(int(angle) % 360, delta)

    def on_release(self, t_ms: int = 0) -> list[Command]:
        total = self.rotation.accumulated_deg
        engaged = self.rotation.engaged
        out = self._active.on_release(total) if engaged else []
        self.rotation.release()
        self.pending_clicks = 0
        self.pending_flip = 0
        self._preset_accum = 0
        return out

    # ---------------------------------------------------------------
    # Page switching: committed at release
    # ---------------------------------------------------------------

    def _page_sample(self, angle: int, delta: Optional[int]) -> list[Command]:
        if delta is None:
            return []
        step = self.preset.page.click_deg
        acc = self.rotation.accumulated_deg
        current = trunc_div(acc, step)
        previous = trunc_div(acc - delta, step)
        if current == previous:
            return []
        self.pending_clicks = current
        return [RumblePulse(self.preset.page.click_pulse_ms), DisplayRefreshRequested()]

    def _page_release(self, total: int) -> list[Command]:
        clicks = trunc_div(total, self.preset.page.click_deg)
        if clicks == 0:
            return []
        per_click = self.preset.page.fast_forward_pages if self.state.fast_forward else 1
        return [PageDelta(clicks * per_click), DisplayRefreshRequested()]

    # ---------------------------------------------------------------
    # Zoom / thickness: continuous
    # ---------------------------------------------------------------

    def _zoom_sample(self, angle: int, delta: Optional[int]) -> list[Command]:
        z = self.preset.zoom
        if delta is None or abs(delta) < z.deg_per_step:
            return []
        zoom = clamp(int(self.state.zoom) + trunc_div(delta, z.deg_per_step), z.min_zoom, z.max_zoom)
        self.state.zoom = zoom
        return [ZoomSet(zoom)]

    def _thickness_sample(self, angle: int, delta: Optional[int]) -> list[Command]:
        if delta is None:
            return []
        t = self.preset.thickness
        factor = t.fast_forward_factor if self.state.fast_forward else 1.0
        thickness = clamp(float(self.state.thickness) + (delta / t.deg_per_unit) * factor,
                          t.min_thickness, t.max_thickness)
        self.state.thickness = thickness
        return [ThicknessSet(thickness)]

    # ---------------------------------------------------------------
    # Tool switching: absolute angle, edge-triggered
    # ---------------------------------------------------------------

    def tool_for_angle(self, angle: int) -> int:
        count = self.preset.tool.tool_count
        sector = 360 / count
        # nearest sector centre; exact half-way goes to the next tool
        return int((angle + sector / 2) // sector) % count

    def _tool_sample(self, angle: int, delta: Optional[int]) -> list[Command]:
        index = self.tool_for_angle(angle)
        if index == self._last_tool_index:
            return []
        self._last_tool_index = index
        self.state.tool_index = index
        return [ToolSet(index), RumblePulse(self.preset.tool.pulse_ms), DisplayRefreshRequested()]

    # ---------------------------------------------------------------
    # Preset selection: local accumulation, one step per crossing
    # ---------------------------------------------------------------

    def _preset_sample(self, angle: int, delta: Optional[int]) -> list[Command]:
        if delta is None:
            return []
        p = self.preset.preset
        self._preset_accum += delta
        out: list[Command] = []
        while abs(self._preset_accum) >= p.step_deg:
            step = 1 if self._preset_accum > 0 else -1
            self._preset_accum -= step * p.step_deg
            count = int(self.state.preset_count)
            if count > 0:
                self.state.preset_index = (int(self.state.preset_index) + step) % count
            out.append(PresetIndexDelta(step))
            out.append(RumblePulse(p.pulse_ms))
        if out:
            out.append(DisplayRefreshRequested())
        return out

    # ---------------------------------------------------------------
    # Pan with page flip past the bounds
    # ---------------------------------------------------------------

    def _pan_sample(self, angle: int, delta: Optional[int]) -> list[Command]:
        if delta is None:
            return []
        p = self.preset.pan
        lo, hi = int(self.state.pan_min), int(self.state.pan_max)
        pan = clamp(int(self.state.pan) + delta * p.pan_per_deg, lo, hi)
        self.state.pan = pan

        if pan == hi or pan == lo:
            past = self.rotation.note_past_limit(delta)
            if pan == hi and past >= p.flip_deg:
                self.pending_flip = 1
            elif pan == lo and past <= -p.flip_deg:
                self.pending_flip = -1
            elif self.pending_flip and (past > 0) != (self.pending_flip > 0):
                # net rotation past the bound crossed back over zero
                self.pending_flip = 0
        else:
            self.rotation.clear_past_limit()
            self.pending_flip = 0

        return [PanSet(pan)]

    def _pan_release(self, total: int) -> list[Command]:
        if self.pending_flip == 0:
            return []
        flip = self.pending_flip
        self.pending_flip = 0
        return [PageDelta(flip), RumblePulse(self.preset.pan.flip_pulse_ms), DisplayRefreshRequested()]
