from __future__ import annotations

import logging
import queue

from pynput import mouse

from dialdeck.core.types import MouseEvent, MouseButtonEdge, WheelNotch
from dialdeck.device.poller import monotonic_ms

logger = logging.getLogger(__name__)


def _button_names() -> dict:
    names = {mouse.Button.right: "Right", mouse.Button.middle: "Middle"}
    # side buttons only exist on some pynput backends
    for attr, name in (("x1", "Side1"), ("x2", "Side2")):
        button = getattr(mouse.Button, attr, None)
        if button is not None:
            names[button] = name
    return names


class MouseSource:
    """
    Global mouse buttons and wheel via a pynput listener.

    Callbacks run on the listener thread and only enqueue; the dial loop
    drains with poll(). The left button is never reported.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[MouseEvent] = queue.Queue()
        self._names = _button_names()
        self._listener: mouse.Listener | None = None

    def start(self) -> bool:
        if self._listener is not None:
            return True
        listener = mouse.Listener(on_click=self._on_click, on_scroll=self._on_scroll)
        try:
            listener.start()
        except (OSError, RuntimeError) as e:
            logger.warning("mouse listener unavailable: %s", e)
            return False
        self._listener = listener
        return True

    def stop(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None

    def poll(self) -> list[MouseEvent]:
        out: list[MouseEvent] = []
        while True:
            try:
                ev = self._queue.get_nowait()
            except queue.Empty:
                break
            out.append(ev)
        return out

    def _on_click(self, x, y, button, pressed) -> None:
        name = self._names.get(button)
        if name is None:
            return
        self._queue.put(MouseButtonEdge(name=name, down=bool(pressed), t_ms=monotonic_ms()))

    def _on_scroll(self, x, y, dx, dy) -> None:
        if dy:
            self._queue.put(WheelNotch(steps=int(dy), t_ms=monotonic_ms()))
