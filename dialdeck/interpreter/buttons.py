from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict

from dialdeck.core.types import (
    ButtonSignal, SinglePress, HoldStart, HoldEnd, RawButtonDetected,
)

logger = logging.getLogger(__name__)


@dataclass
class ButtonTimingState:
    press_start_ms: int | None
    hold_fired: bool = False

    def held_for(self, t_ms: int) -> int:
        if self.press_start_ms is None:
            return 0
        return t_ms - self.press_start_ms


def _raw_name(button_id: int) -> str:
    return f"RAW_{button_id}"


class ButtonDisambiguator:
    """
    Press vs hold, decided by elapsed time.

    tick() is the only place a HoldStart can come from; it is a single
    deadline sweep over the tracked buttons, called once per poll tick.
    Release decides on elapsed time alone: >= threshold is a hold.
    """

    def __init__(self, hold_threshold_ms: int = 300, namer: Callable[[int], str] | None = None) -> None:
        self.hold_threshold_ms = int(hold_threshold_ms)
        self.namer = namer or _raw_name
        self._states: Dict[int, ButtonTimingState] = {}
        self.detecting: bool = False

    def tracked(self) -> Dict[int, ButtonTimingState]:
        return dict(self._states)

    def on_button_down(self, button_id: int, t_ms: int) -> list[ButtonSignal]:
        if self.detecting:
            return [RawButtonDetected(button_id=button_id, name=self.namer(button_id))]

        # repeated DOWN for a held button keeps the first press time
        if button_id not in self._states:
            self._states[button_id] = ButtonTimingState(press_start_ms=t_ms)
        return []

    def on_button_up(self, button_id: int, t_ms: int) -> list[ButtonSignal]:
        st = self._states.pop(button_id, None)
        if st is None or self.detecting:
            return []

        if st.hold_fired or st.held_for(t_ms) >= self.hold_threshold_ms:
            return [HoldEnd(button_id)]
        return [SinglePress(button_id)]

    def tick(self, t_ms: int) -> list[ButtonSignal]:
        if self.detecting:
            return []
        out: list[ButtonSignal] = []
        for button_id, st in self._states.items():
            if st.hold_fired or st.press_start_ms is None:
                continue
            if st.held_for(t_ms) >= self.hold_threshold_ms:
                st.hold_fired = True
                out.append(HoldStart(button_id))
        return out

    def start_detection(self) -> None:
        # buttons already down would otherwise finish as stray presses
        self._states.clear()
        self.detecting = True
        logger.debug("button detection started")

    def stop_detection(self) -> None:
        self.detecting = False
        logger.debug("button detection stopped")

    def reset(self) -> None:
        self._states.clear()
        self.detecting = False
