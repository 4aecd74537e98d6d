from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Protocol

from dialdeck.core.config import Preset, DEFAULT_PRESET
from dialdeck.core.control import ControlState
from dialdeck.core.mappings import ButtonMappings
from dialdeck.core.types import (
    Command, RawEvent, RemapNotice, MouseEvent,
    ButtonDown, ButtonUp, AxisAngle, AxisIdle,
    ButtonSignal, SinglePress, RawButtonDetected,
    MouseButtonEdge, WheelNotch,
)
from dialdeck.device.backend import FakeBackend
from dialdeck.device.poller import DevicePoller, monotonic_ms
from dialdeck.interpreter.buttons import ButtonDisambiguator
from dialdeck.interpreter.modes import ModeInterpreter, AppStateModel
from dialdeck.interpreter.mouse_dial import MouseDial
from dialdeck.interpreter.remap import RemapSession
from dialdeck.interpreter.rotation import RotationAccumulator
from dialdeck.interpreter.router import ButtonRouter
from dialdeck.runtime.gate import CommandGate
from dialdeck.sink.base import CommandSink
from dialdeck.sink.state_sink import StateSink

logger = logging.getLogger(__name__)


class MouseFeed(Protocol):
    def poll(self) -> list[MouseEvent]: ...


class DialLoop:
    """
    One tick of the dial pipeline:

        poller -> disambiguator -> router ----\\
               -> accumulator  -> interpreter -> gate -> sink
        mouse  -> mouse dial   ---------------/

    Everything runs synchronously on the caller's thread; tick() is meant to
    be called at the poll interval with a monotonic t_ms.
    """

    def __init__(
        self,
        poller: DevicePoller,
        sink: CommandSink,
        preset: Preset = DEFAULT_PRESET,
        mappings: ButtonMappings | None = None,
        state: AppStateModel | None = None,
        control: ControlState | None = None,
        mouse: MouseFeed | None = None,
    ) -> None:
        self.poller = poller
        self.preset = preset
        self.mappings = mappings or ButtonMappings()
        self.state = state or AppStateModel(preset_count=preset.preset.capacity)
        self.control = control or poller.control or ControlState(_enabled=True)
        if poller.control is None:
            poller.control = self.control
        self.mouse = mouse

        self.rotation = RotationAccumulator()
        self.buttons = ButtonDisambiguator(preset.hold.hold_threshold_ms, namer=poller.backend.button_name)
        self.interpreter = ModeInterpreter(preset, self.state, self.rotation)
        self.router = ButtonRouter(self.interpreter, self.mappings)
        self.remap = RemapSession(self.mappings, self.buttons, preset.remap.timeout_ms)
        self.mouse_dial = MouseDial(self.interpreter, self.rotation, self.mappings, preset.mouse_dial)
        self.gate = CommandGate(state=self.control, interp=self.interpreter, sink=sink, poller=poller)

        self.last_events: list[RawEvent] = []
        self._mouse_pressed: set[str] = set()
        self._notices: list[RemapNotice] = []
        self._was_connected = poller.connected

    # ---------------------------------------------------------------
    # Host API
    # ---------------------------------------------------------------

    def reconnect(self) -> bool:
        ok = self.poller.reconnect()
        self._notices.extend(self.remap.cancel())
        self.buttons.reset()
        self._drop_session()
        self._mouse_pressed.clear()
        self._was_connected = ok
        return ok

    def begin_remap(self, logical: str, t_ms: int) -> None:
        self._drop_session()
        self.remap.begin(logical, t_ms)

    def resolve_conflict(self, reassign: bool) -> None:
        self._notices.extend(self.remap.resolve_conflict(reassign))

    def cancel_remap(self) -> None:
        self._notices.extend(self.remap.cancel())

    def take_notices(self) -> list[RemapNotice]:
        out, self._notices = self._notices, []
        return out

    # ---------------------------------------------------------------
    # Tick
    # ---------------------------------------------------------------

    def tick(self, t_ms: int) -> list[Command]:
        if self.gate.guard():
            self._drop_session()

        events = self.poller.poll(t_ms)
        self.last_events = events
        if self._was_connected and not self.poller.connected:
            logger.info("device lost, dropping dial session")
            self._drop_session()
        self._was_connected = self.poller.connected

        enabled = self.control.is_enabled()
        rotating = enabled and not self.remap.active
        out: list[Command] = []

        for ev in events:
            if isinstance(ev, ButtonDown):
                out.extend(self._route(self.buttons.on_button_down(ev.button_id, ev.t_ms), t_ms, enabled))
            elif isinstance(ev, ButtonUp):
                out.extend(self._route(self.buttons.on_button_up(ev.button_id, ev.t_ms), t_ms, enabled))
            elif isinstance(ev, AxisAngle):
                if rotating:
                    delta = self.rotation.on_angle(ev.degrees, t_ms)
                    out.extend(self.interpreter.on_rotation(ev.degrees, delta, t_ms))
            elif isinstance(ev, AxisIdle):
                if rotating:
                    out.extend(self.interpreter.on_release(t_ms))
                else:
                    self.rotation.on_idle()

        out.extend(self._route(self.buttons.tick(t_ms), t_ms, enabled))
        self._notices.extend(self.remap.tick(t_ms))

        if self.mouse is not None:
            out.extend(self._mouse(self.mouse.poll(), t_ms, rotating))

        for cmd in out:
            self.gate.apply(cmd)
        return out

    def _route(self, signals: list[ButtonSignal], t_ms: int, enabled: bool) -> list[Command]:
        out: list[Command] = []
        for sig in signals:
            if isinstance(sig, RawButtonDetected):
                self._notices.extend(self.remap.on_detected(sig, t_ms))
            elif enabled or isinstance(sig, SinglePress):
                out.extend(self.router.handle(sig, t_ms))
        return out

    def _mouse(self, events: list[MouseEvent], t_ms: int, rotating: bool) -> list[Command]:
        out: list[Command] = []
        for ev in events:
            if isinstance(ev, MouseButtonEdge):
                if ev.down:
                    self._mouse_pressed.add(ev.name)
                else:
                    self._mouse_pressed.discard(ev.name)
                if rotating:
                    out.extend(self.mouse_dial.on_buttons(self._mouse_pressed, t_ms))
            elif isinstance(ev, WheelNotch) and rotating:
                out.extend(self.mouse_dial.on_wheel(ev.steps, t_ms))
        if rotating:
            out.extend(self.mouse_dial.tick(t_ms))
        return out

    def _drop_session(self) -> None:
        self.rotation.reset()
        # no HoldEnd will arrive for a hold that started before this point
        self.interpreter.end_temporary_override()
        self.interpreter.reset()
        self.mouse_dial.reset()


# ============================================================
# Demo runtime (fake dial, no hardware)
# ============================================================

@dataclass
class FakeDial:
    """
    Deterministic fake stick to validate runtime wiring.
    Turns clockwise for 2 seconds, rests for 1, and holds the
    zoom button through every other turn.
    """
    backend: FakeBackend
    start_ms: int
    zoom_button: int = 4
    _holding: bool = False

    def step(self, t_ms: int) -> None:
        dt = (t_ms - self.start_ms) / 1000.0
        cycle = int(dt // 3)
        phase = dt % 3.0
        want_hold = cycle % 2 == 1 and phase < 2.4

        if want_hold != self._holding:
            if want_hold:
                self.backend.press(self.zoom_button)
            else:
                self.backend.release(self.zoom_button)
            self._holding = want_hold

        # hold delay first so the override is in place before turning
        if 0.4 <= phase < 2.4:
            a = math.radians((phase - 0.4) * 180.0)
            self.backend.set_axes(int(30000 * math.sin(a)), int(-30000 * math.cos(a)))
        else:
            self.backend.center()


def run():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    backend = FakeBackend()
    control = ControlState(_enabled=True)
    poller = DevicePoller(backend, stick=DEFAULT_PRESET.stick, control=control)
    state = AppStateModel(pan_max=2000)
    sink = StateSink(state, page_count=20, on_click=lambda ms: print(f"[click] {ms}ms"))
    loop = DialLoop(poller, sink, DEFAULT_PRESET, state=state, control=control)

    poller.start()
    src = FakeDial(backend=backend, start_ms=monotonic_ms())

    print("[DialDeck] Dial loop (FAKE DIAL). Ctrl+C to exit.")
    try:
        while True:
            t_ms = monotonic_ms()
            src.step(t_ms)
            for cmd in loop.tick(t_ms):
                print("[CMD]", cmd)
            time.sleep(DEFAULT_PRESET.poll.interval_ms / 1000.0)  # ~60Hz loop
    except KeyboardInterrupt:
        print("\n[DialDeck] exiting")
    finally:
        print(f"[DialDeck] page={sink.page + 1} zoom={state.zoom} pan={state.pan}")
        poller.stop()


if __name__ == "__main__":
    run()
