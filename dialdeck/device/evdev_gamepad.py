from __future__ import annotations

import logging

from evdev import InputDevice, list_devices, ecodes, ff

logger = logging.getLogger(__name__)

INT16_MAX = 32767


def scale_axis(value: int, lo: int, hi: int) -> int:
    """Map a raw absinfo reading onto the signed 16-bit range."""
    if hi <= lo:
        return 0
    mid = (lo + hi) / 2.0
    half = (hi - lo) / 2.0
    v = int(round((value - mid) / half * INT16_MAX))
    return max(-INT16_MAX - 1, min(INT16_MAX, v))


class EvdevGamepad:
    """
    Linux gamepad via python-evdev.

    Button ids are indices into the device's sorted key capability list, the
    same small integers SDL hands out for joystick buttons.
    """

    def __init__(self, path: str | None = None, grab: bool = False) -> None:
        self.path = path
        self.grab = grab
        self.dev: InputDevice | None = None

        self._ids: dict[int, int] = {}
        self._names: dict[int, str] = {}
        self._ranges: dict[int, tuple[int, int]] = {}
        self._raw = {ecodes.ABS_X: 0, ecodes.ABS_Y: 0}
        self._can_rumble = False
        self._effect_id: int | None = None

    @property
    def is_open(self) -> bool:
        return self.dev is not None

    def open(self) -> bool:
        if self.dev is not None:
            return True
        dev = self._find_device()
        if dev is None:
            return False

        caps = dev.capabilities()
        keys = sorted(c for c in caps.get(ecodes.EV_KEY, []) if c >= ecodes.BTN_MISC)
        self._ids = {code: i for i, code in enumerate(keys)}
        self._names = {i: _key_name(code) for code, i in self._ids.items()}
        self._ranges = {}
        for code, info in caps.get(ecodes.EV_ABS, []):
            if code in (ecodes.ABS_X, ecodes.ABS_Y):
                self._ranges[code] = (info.min, info.max)
                self._raw[code] = info.value
        self._can_rumble = ecodes.FF_RUMBLE in caps.get(ecodes.EV_FF, [])
        self._effect_id = None

        if self.grab:
            try:
                dev.grab()
            except OSError as e:
                logger.warning("Could not grab %s: %s", dev.path, e)

        self.dev = dev
        logger.info("gamepad connected: %s (%s), %d buttons, rumble=%s",
                    dev.name, dev.path, len(keys), self._can_rumble)
        return True

    def close(self) -> None:
        dev, self.dev = self.dev, None
        if dev is None:
            return
        try:
            if self._effect_id is not None:
                dev.erase_effect(self._effect_id)
            if self.grab:
                dev.ungrab()
        except OSError as e:
            logger.debug("cleanup on %s failed: %s", dev.path, e)
        finally:
            self._effect_id = None
            dev.close()
        logger.info("gamepad disconnected")

    def pump(self) -> list[tuple[int, bool]]:
        if self.dev is None:
            return []
        edges: list[tuple[int, bool]] = []
        try:
            for event in self.dev.read():
                if event.type == ecodes.EV_KEY:
                    bid = self._ids.get(event.code)
                    # value 2 is autorepeat
                    if bid is not None and event.value in (0, 1):
                        edges.append((bid, event.value == 1))
                elif event.type == ecodes.EV_ABS and event.code in self._raw:
                    self._raw[event.code] = event.value
        except BlockingIOError:
            pass
        return edges

    def axes(self) -> tuple[int, int] | None:
        if self.dev is None or len(self._ranges) < 2:
            return None
        x = scale_axis(self._raw[ecodes.ABS_X], *self._ranges[ecodes.ABS_X])
        y = scale_axis(self._raw[ecodes.ABS_Y], *self._ranges[ecodes.ABS_Y])
        return x, y

    def rumble(self, strong: int, weak: int, duration_ms: int) -> None:
        if self.dev is None or not self._can_rumble:
            return
        try:
            if self._effect_id is not None:
                self.dev.erase_effect(self._effect_id)
                self._effect_id = None
            effect = ff.Effect(
                ecodes.FF_RUMBLE, -1, 0,
                ff.Trigger(0, 0),
                ff.Replay(int(duration_ms), 0),
                ff.EffectType(ff_rumble_effect=ff.Rumble(strong_magnitude=strong, weak_magnitude=weak)),
            )
            self._effect_id = self.dev.upload_effect(effect)
            self.dev.write(ecodes.EV_FF, self._effect_id, 1)
        except OSError as e:
            logger.debug("rumble failed: %s", e)

    def button_name(self, button_id: int) -> str:
        return self._names.get(button_id, f"RAW_{button_id}")

    def _find_device(self) -> InputDevice | None:
        paths = [self.path] if self.path else list_devices()
        for path in paths:
            try:
                dev = InputDevice(path)
            except OSError as e:
                logger.debug("cannot open %s: %s", path, e)
                continue
            caps = dev.capabilities()
            abs_codes = {code for code, _ in caps.get(ecodes.EV_ABS, [])}
            has_buttons = any(c >= ecodes.BTN_MISC for c in caps.get(ecodes.EV_KEY, []))
            if {ecodes.ABS_X, ecodes.ABS_Y} <= abs_codes and has_buttons:
                return dev
            dev.close()
        logger.debug("no gamepad with an analog stick found")
        return None


def _key_name(code: int) -> str:
    name = ecodes.BTN.get(code) or ecodes.KEY.get(code) or f"KEY_{code}"
    # some codes have aliases, e.g. ['BTN_A', 'BTN_GAMEPAD', 'BTN_SOUTH']
    if isinstance(name, (list, tuple)):
        name = name[0]
    return name
