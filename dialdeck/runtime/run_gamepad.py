from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import asdict, is_dataclass
from pathlib import Path

from dialdeck.core.config import DEFAULT_PRESET, PRESETS, PresetName
from dialdeck.core.control import ControlState
from dialdeck.core.mappings import ButtonMappings
from dialdeck.device.evdev_gamepad import EvdevGamepad
from dialdeck.device.mouse_source import MouseSource
from dialdeck.device.poller import DevicePoller, monotonic_ms
from dialdeck.interpreter.modes import AppStateModel
from dialdeck.runtime.run_loop import DialLoop
from dialdeck.sink.state_sink import StateSink

RECONNECT_EVERY_MS = 2000


def _default_tick_log_path() -> str:
    outdir = Path.home() / ".cache" / "dialdeck" / "tick_logs"
    outdir.mkdir(parents=True, exist_ok=True)
    ts = time.strftime("%Y%m%d_%H%M%S")
    return str(outdir / f"ticks_{ts}.jsonl")


def _record(obj) -> dict:
    rec = asdict(obj) if is_dataclass(obj) else {}
    rec["type"] = type(obj).__name__
    return rec


def main():
    level = os.environ.get("DIALDECK_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    try:
        preset = PRESETS[PresetName(os.environ.get("DIALDECK_PRESET", PresetName.DEFAULT.value))]
    except ValueError:
        print("[DialDeck] unknown DIALDECK_PRESET, using Default")
        preset = DEFAULT_PRESET

    mappings_env = os.environ.get("DIALDECK_MAPPINGS")
    mappings = ButtonMappings.load(Path(mappings_env).expanduser() if mappings_env else None)

    control = ControlState(_enabled=True)
    backend = EvdevGamepad(path=os.environ.get("DIALDECK_DEVICE") or None)
    poller = DevicePoller(backend, stick=preset.stick, rumble_tuning=preset.rumble,
                          poll_tuning=preset.poll, control=control)

    mouse = None
    if os.environ.get("DIALDECK_MOUSE_DIAL", "1") != "0":
        mouse = MouseSource()
        if not mouse.start():
            mouse = None

    state = AppStateModel(preset_count=preset.preset.capacity)
    sink = StateSink(state, page_count=100, preset=preset)
    loop = DialLoop(poller, sink, preset, mappings=mappings, state=state, control=control, mouse=mouse)

    print(f"[DialDeck] Gamepad runtime ({preset.name.value}). Ctrl+C to quit.")
    if poller.start(threaded=True):
        print("[DialDeck] device connected")
    else:
        print("[DialDeck] no device yet, retrying every 2s")
    if mouse is not None:
        print("[DialDeck] mouse dial enabled")

    tick_log_path = os.environ.get("DIALDECK_TICK_LOG")
    if tick_log_path == "auto":
        tick_log_path = _default_tick_log_path()

    _tick_f = None
    if tick_log_path:
        Path(tick_log_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        _tick_f = open(Path(tick_log_path).expanduser(), "a", buffering=1)
        print(f"[TickLog] writing {tick_log_path}")

    last_retry_ms = monotonic_ms()
    try:
        while True:
            t_ms = monotonic_ms()

            if not poller.connected and t_ms - last_retry_ms >= RECONNECT_EVERY_MS:
                last_retry_ms = t_ms
                if loop.reconnect():
                    print("[DialDeck] device connected")

            cmds = loop.tick(t_ms)
            for notice in loop.take_notices():
                print("[Remap]", notice)

            if _tick_f is not None and (cmds or loop.last_events):
                rec = {
                    "t_ms": int(t_ms),
                    "mode": loop.interpreter.current_mode.value,
                    "enabled": control.is_enabled(),
                    "events": [_record(ev) for ev in loop.last_events],
                    "commands": [_record(c) for c in cmds],
                }
                _tick_f.write(json.dumps(rec) + "\n")

            time.sleep(preset.poll.interval_ms / 1000.0)
    except KeyboardInterrupt:
        print("\n[DialDeck] exiting")
    finally:
        poller.stop()
        if mouse is not None:
            mouse.stop()
        if _tick_f is not None:
            _tick_f.close()


if __name__ == "__main__":
    main()
