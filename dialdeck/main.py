from __future__ import annotations

from dialdeck.core.config import DEFAULT_PRESET
from dialdeck.core.types import InterpretationMode, PageDelta
from dialdeck.interpreter.modes import ModeInterpreter, AppStateModel
from dialdeck.interpreter.rotation import RotationAccumulator
from dialdeck.sink.base import RecordingSink


def turn(interp: ModeInterpreter, start: int, stop: int, step: int, t: int) -> int:
    rot = interp.rotation
    for a in range(start, stop + step, step):
        for cmd in interp.on_rotation(a % 360, rot.on_angle(a % 360, t), t):
            print("  ", cmd)
        t += 16
    return t


def main():
    state = AppStateModel(pan_min=0, pan_max=400)
    interp = ModeInterpreter(DEFAULT_PRESET, state, RotationAccumulator())
    sink = RecordingSink()

    print("DialDeck fake dial demo.")
    t = 0

    print("page switching: 100 degrees clockwise")
    interp.set_mode(InterpretationMode.PAGE_SWITCHING)
    t = turn(interp, 10, 110, 10, t)
    for cmd in interp.on_release(t):
        sink.apply(cmd)
        print("  ", cmd)

    print("pan: scroll to the bottom and keep turning")
    interp.set_mode(InterpretationMode.PAN_AND_PAGE_FLIP)
    t = turn(interp, 0, 240, 20, t)
    for cmd in interp.on_release(t):
        sink.apply(cmd)
        print("  ", cmd)

    print("zoom: half a turn back")
    interp.set_mode(InterpretationMode.ZOOM_CONTROL)
    t = turn(interp, 180, 0, -15, t)
    interp.on_release(t)

    print(f"done: zoom={state.zoom} pan={state.pan} page deltas={len(sink.of_type(PageDelta))}")


if __name__ == "__main__":
    main()
