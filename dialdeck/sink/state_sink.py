from __future__ import annotations

import logging
from typing import Callable

from dialdeck.core.config import Preset, DEFAULT_PRESET
from dialdeck.core.types import (
    Command, ControllerAction, ActionTriggered, PageDelta, RumblePulse,
    ZoomSet, ThicknessSet, ToolSet, PresetIndexDelta, PanSet, DisplayRefreshRequested,
)
from dialdeck.interpreter.modes import AppStateModel

logger = logging.getLogger(__name__)

_TOOL_ACTIONS = {
    ControllerAction.SET_PEN_TOOL: 0,
    ControllerAction.SET_MARKER_TOOL: 1,
    ControllerAction.SET_ERASER_TOOL: 2,
}

_ZOOM_ACTIONS = {
    ControllerAction.ZOOM_50: 50,
    ControllerAction.ZOOM_OUT: 100,
    ControllerAction.ZOOM_200: 200,
}


class StateSink:
    """
    Headless host: keeps a page cursor next to an AppStateModel and applies
    the actions it understands. Values the interpreter already wrote through
    (zoom, pan, ...) are only logged here.
    """

    def __init__(self, state: AppStateModel, page_count: int = 1, preset: Preset = DEFAULT_PRESET,
                 on_click: Callable[[int], None] | None = None) -> None:
        self.state = state
        self.page_count = max(1, int(page_count))
        self.page = 0
        self.preset = preset
        self.on_click = on_click
        self.refreshes = 0
        self.unhandled: list[ControllerAction] = []

    def apply(self, cmd: Command) -> None:
        if isinstance(cmd, PageDelta):
            self._go_to(self.page + cmd.pages)
        elif isinstance(cmd, RumblePulse):
            if self.on_click is not None:
                self.on_click(cmd.duration_ms)
        elif isinstance(cmd, DisplayRefreshRequested):
            self.refreshes += 1
        elif isinstance(cmd, ActionTriggered):
            self._action(cmd.action)
        elif isinstance(cmd, (ZoomSet, ThicknessSet, ToolSet, PresetIndexDelta, PanSet)):
            logger.debug("%s", cmd)

    def _go_to(self, page: int) -> None:
        page = max(0, min(self.page_count - 1, page))
        if page != self.page:
            logger.info("page %d -> %d", self.page + 1, page + 1)
            self.page = page
            self.state.pan = self.state.pan_min

    def _action(self, action: ControllerAction) -> None:
        if action == ControllerAction.FAST_FORWARD:
            self.state.fast_forward = not self.state.fast_forward
            logger.info("fast forward %s", "on" if self.state.fast_forward else "off")
        elif action == ControllerAction.PREVIOUS_PAGE:
            self._go_to(self.page - 1)
        elif action == ControllerAction.NEXT_PAGE:
            self._go_to(self.page + 1)
        elif action in _TOOL_ACTIONS:
            self.state.tool_index = _TOOL_ACTIONS[action]
        elif action in _ZOOM_ACTIONS:
            self.state.zoom = _ZOOM_ACTIONS[action]
        elif action == ControllerAction.ADD_PRESET:
            if self.state.preset_count < self.preset.preset.capacity:
                self.state.preset_count += 1
        elif action == ControllerAction.TOGGLE_DIAL:
            # handled by the command gate
            pass
        else:
            self.unhandled.append(action)
            logger.info("action %s has no headless handler", action.value)
