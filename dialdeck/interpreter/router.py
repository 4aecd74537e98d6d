from __future__ import annotations

import logging

from dialdeck.core.mappings import ButtonMappings
from dialdeck.core.types import (
    ButtonSignal, Command, ActionTriggered, ControllerAction,
    SinglePress, HoldStart, HoldEnd, InterpretationMode,
)
from dialdeck.interpreter.modes import ModeInterpreter

logger = logging.getLogger(__name__)


class ButtonRouter:
    """
    Press -> action table, hold -> temporary mode override.

    Presses bypass the interpreter entirely. A hold is owned by the logical
    button that started it, so a second button's release cannot end it.
    """

    def __init__(self, interpreter: ModeInterpreter, mappings: ButtonMappings) -> None:
        self.interpreter = interpreter
        self.mappings = mappings

    def handle(self, signal: ButtonSignal, t_ms: int = 0) -> list[Command]:
        if isinstance(signal, SinglePress):
            button = self.mappings.logical_for(signal.button_id)
            action = self.mappings.press_action(button)
            if action == ControllerAction.NONE:
                return []
            logger.debug("press %s -> %s", button, action.value)
            return [ActionTriggered(action=action, button=button)]

        if isinstance(signal, HoldStart):
            button = self.mappings.logical_for(signal.button_id)
            mode = self.mappings.hold_mode(button)
            if mode == InterpretationMode.NONE:
                return []
            logger.debug("hold %s -> %s", button, mode.value)
            return self.interpreter.begin_temporary_override(mode, owner=button)

        if isinstance(signal, HoldEnd):
            button = self.mappings.logical_for(signal.button_id)
            out = self.interpreter.on_release(t_ms) if self.interpreter.override_owner == button else []
            return out + self.interpreter.end_temporary_override(owner=button)

        # RawButtonDetected is for the remap session, not the router
        return []
