from __future__ import annotations

import logging
import math
import queue
import threading
import time
from typing import Callable

from dialdeck.core.config import StickTuning, RumbleTuning, PollTuning
from dialdeck.core.control import ControlState
from dialdeck.core.types import RawEvent, ButtonDown, ButtonUp, AxisAngle, AxisIdle
from dialdeck.device.backend import InputBackend

logger = logging.getLogger(__name__)

FULL_SCALE = 32768.0


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def stick_angle(x: int, y: int, invert: bool = True) -> int:
    """
    Whole-degree angle of a stick position, 0..359.
    Device y grows downwards; with invert the angle grows clockwise.
    """
    a = math.degrees(math.atan2(-y, x))
    if a < 0:
        a += 360.0
    if invert:
        a = (360.0 - a) % 360.0
    return int(a) % 360


def angle_distance(a: int, b: int) -> int:
    d = abs(a - b) % 360
    return 360 - d if d > 180 else d


class DevicePoller:
    """
    Owns the device handle and turns it into RawEvents.

    Inline mode samples the backend inside poll(). Threaded mode samples on a
    daemon thread and poll() drains a queue; every queued event carries the
    handle generation it came from so reconnect() can drop stale ones.
    """

    def __init__(
        self,
        backend: InputBackend,
        stick: StickTuning = StickTuning(),
        rumble_tuning: RumbleTuning = RumbleTuning(),
        poll_tuning: PollTuning = PollTuning(),
        control: ControlState | None = None,
        clock: Callable[[], int] = monotonic_ms,
    ) -> None:
        self.backend = backend
        self.stick = stick
        self.rumble_tuning = rumble_tuning
        self.poll_tuning = poll_tuning
        self.control = control
        self.clock = clock

        self._lock = threading.Lock()
        self._generation = 0
        self._queue: queue.Queue[tuple[int, RawEvent]] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()

        self._active = False
        self._last_angle: int | None = None
        self._connected = False

    # ---------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def threaded(self) -> bool:
        return self._thread is not None

    def start(self, threaded: bool = False) -> bool:
        with self._lock:
            ok = self._open()
        if threaded and self._thread is None:
            self._stop.clear()
            self._thread = threading.Thread(target=self._worker, name="dialdeck-poller", daemon=True)
            self._thread.start()
        return ok

    def stop(self) -> None:
        if self._thread is not None:
            self._stop.set()
            self._thread.join(timeout=1.0)
            self._thread = None
        with self._lock:
            self.backend.close()
            self._reset_stick()
            self._set_connected(False)

    def reconnect(self) -> bool:
        with self._lock:
            self._generation += 1
            self.backend.close()
            self._drain()
            self._reset_stick()
            ok = self._open()
        logger.info("reconnect: %s", "device ready" if ok else "no device")
        return ok

    # ---------------------------------------------------------------
    # Sampling
    # ---------------------------------------------------------------

    def poll(self, t_ms: int | None = None) -> list[RawEvent]:
        if self._thread is None:
            with self._lock:
                return self._sample(self.clock() if t_ms is None else t_ms)

        out: list[RawEvent] = []
        while True:
            try:
                gen, ev = self._queue.get_nowait()
            except queue.Empty:
                break
            if gen == self._generation:
                out.append(ev)
        return out

    def rumble(self, duration_ms: int) -> None:
        if not self.rumble_tuning.enabled or duration_ms <= 0:
            return
        with self._lock:
            if not self.backend.is_open:
                return
            try:
                self.backend.rumble(self.rumble_tuning.strong, self.rumble_tuning.weak, duration_ms)
            except OSError as e:
                logger.debug("rumble failed: %s", e)

    # ---------------------------------------------------------------
    # Internals (lock held)
    # ---------------------------------------------------------------

    def _open(self) -> bool:
        ok = self.backend.is_open or self.backend.open()
        self._set_connected(ok)
        return ok

    def _set_connected(self, value: bool) -> None:
        self._connected = value
        if self.control is not None:
            self.control.set_connected(value)

    def _reset_stick(self) -> None:
        self._active = False
        self._last_angle = None

    def _drain(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return

    def _sample(self, t_ms: int) -> list[RawEvent]:
        if not self.backend.is_open:
            if self._connected:
                self._set_connected(False)
            return []

        try:
            edges = self.backend.pump()
            axes = self.backend.axes()
        except OSError as e:
            logger.warning("device read failed, closing: %s", e)
            self.backend.close()
            self._reset_stick()
            self._set_connected(False)
            return []

        out: list[RawEvent] = []
        for button_id, down in edges:
            out.append(ButtonDown(button_id, t_ms) if down else ButtonUp(button_id, t_ms))
        if axes is not None:
            out.extend(self._stick_events(axes[0], axes[1], t_ms))
        return out

    def _stick_events(self, x: int, y: int, t_ms: int) -> list[RawEvent]:
        if math.hypot(x, y) / FULL_SCALE < self.stick.deadzone:
            if self._active:
                self._reset_stick()
                return [AxisIdle(t_ms)]
            return []

        angle = stick_angle(x, y, self.stick.invert)
        if not self._active or self._last_angle is None:
            self._active = True
            self._last_angle = angle
            return [AxisAngle(angle, t_ms)]

        if angle_distance(angle, self._last_angle) > self.stick.jitter_deg:
            self._last_angle = angle
            return [AxisAngle(angle, t_ms)]
        return []

    def _worker(self) -> None:
        interval = self.poll_tuning.interval_ms / 1000.0
        while not self._stop.is_set():
            with self._lock:
                gen = self._generation
                events = self._sample(self.clock())
            for ev in events:
                self._queue.put((gen, ev))
            self._stop.wait(interval)
