from __future__ import annotations

import logging
from typing import Iterable

from dialdeck.core.config import MouseDialTuning
from dialdeck.core.mappings import ButtonMappings, combo_key
from dialdeck.core.types import ActionTriggered, Command, ControllerAction, InterpretationMode
from dialdeck.interpreter.modes import ModeInterpreter
from dialdeck.interpreter.rotation import RotationAccumulator

logger = logging.getLogger(__name__)

# short solo taps on the side buttons
_TAP_ACTIONS = {
    "Side1": ControllerAction.PREVIOUS_PAGE,
    "Side2": ControllerAction.NEXT_PAGE,
}


class MouseDial:
    """
    Mouse wheel as a virtual dial.

    Holding a mapped button combination for arm_ms starts a temporary mode
    override; each wheel notch then turns a virtual angle by the mode's step
    and feeds it through the same accumulator and interpreter as the stick.
    Letting go of every button commits and ends the override. A side button
    tapped alone and released before arm_ms turns a page instead.
    """

    def __init__(self, interpreter: ModeInterpreter, rotation: RotationAccumulator,
                 mappings: ButtonMappings, tuning: MouseDialTuning | None = None) -> None:
        self.interpreter = interpreter
        self.rotation = rotation
        self.mappings = mappings
        self.tuning = tuning or MouseDialTuning()

        self.pressed: frozenset[str] = frozenset()
        self.armed_at_ms: int | None = None
        self.active_combo: str | None = None
        self.angle: int = 0

    @property
    def active(self) -> bool:
        return self.active_combo is not None

    @property
    def owner(self) -> str | None:
        return f"mouse:{self.active_combo}" if self.active_combo else None

    def on_buttons(self, pressed: Iterable[str], t_ms: int) -> list[Command]:
        pressed = frozenset(pressed)
        if pressed == self.pressed:
            return []
        released = self.pressed - pressed
        was_pending = self.armed_at_ms is not None
        first_down = not self.pressed
        self.pressed = pressed

        if pressed:
            # the arm timer runs from the first button; adding or dropping
            # buttons only changes the combination read when it fires
            if first_down and not self.active:
                self.armed_at_ms = t_ms
            return []

        self.armed_at_ms = None
        if self.active:
            return self._deactivate(t_ms)
        if was_pending and len(released) == 1:
            (name,) = released
            action = _TAP_ACTIONS.get(name)
            if action is not None:
                return [ActionTriggered(action=action, button=f"mouse:{name}")]
        return []

    def tick(self, t_ms: int) -> list[Command]:
        if self.active or self.armed_at_ms is None:
            return []
        if t_ms - self.armed_at_ms < self.tuning.arm_ms:
            return []
        self.armed_at_ms = None

        combo = combo_key(self.pressed)
        mode = self.mappings.mouse_dial_mode(combo)
        if mode == InterpretationMode.NONE:
            return []

        owner = f"mouse:{combo}"
        out = self.interpreter.begin_temporary_override(mode, owner=owner)
        if self.interpreter.override_owner != owner:
            # another hold already owns the override
            return out

        self.active_combo = combo
        if mode == InterpretationMode.TOOL_SWITCHING:
            self.angle = int(self.interpreter.state.tool_index) * self.tuning.step_for(mode)
        else:
            self.angle = 0
        self.rotation.reset()
        self.rotation.on_angle(self.angle, t_ms)
        logger.info("mouse dial on: %s -> %s", combo, mode.value)
        return out

    def on_wheel(self, steps: int, t_ms: int) -> list[Command]:
        if not self.active or steps == 0:
            return []
        step = self.tuning.step_for(self.interpreter.current_mode)
        # wheel down turns the dial clockwise
        direction = -1 if steps > 0 else 1
        out: list[Command] = []
        for _ in range(abs(steps)):
            self.angle = (self.angle + direction * step) % 360
            delta = self.rotation.on_angle(self.angle, t_ms)
            out.extend(self.interpreter.on_rotation(self.angle, delta, t_ms))
        return out

    def reset(self) -> None:
        self.pressed = frozenset()
        self.armed_at_ms = None
        self.active_combo = None
        self.angle = 0

    def _deactivate(self, t_ms: int) -> list[Command]:
        owner = self.owner
        self.active_combo = None
        out = []
        if self.interpreter.override_owner == owner:
            out.extend(self.interpreter.on_release(t_ms))
        out.extend(self.interpreter.end_temporary_override(owner=owner))
        logger.info("mouse dial off")
        return out
