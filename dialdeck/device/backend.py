from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


class InputBackend(Protocol):
    """
    One gamepad-like device: small integer button ids and one analog stick
    reported as a signed 16-bit (x, y) pair.
    """

    @property
    def is_open(self) -> bool: ...

    def open(self) -> bool: ...

    def close(self) -> None: ...

    def pump(self) -> list[tuple[int, bool]]:
        """Button edges since the last call, in arrival order. May raise OSError."""
        ...

    def axes(self) -> tuple[int, int] | None: ...

    def rumble(self, strong: int, weak: int, duration_ms: int) -> None: ...

    def button_name(self, button_id: int) -> str: ...


@dataclass
class FakeBackend:
    """
    Scripted backend for tests and the demo loop.
    Tests push edges and move the stick; the poller reads them like hardware.
    """
    available: bool = True
    name: str = "Fake Dial"

    _open: bool = False
    _edges: list[tuple[int, bool]] = field(default_factory=list)
    _axes: tuple[int, int] = (0, 0)
    fail_next_pump: OSError | None = None
    pulses: list[int] = field(default_factory=list)
    opens: int = 0

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> bool:
        self._open = self.available
        if self._open:
            self.opens += 1
        return self._open

    def close(self) -> None:
        self._open = False

    # -- script side --

    def press(self, button_id: int) -> None:
        self._edges.append((button_id, True))

    def release(self, button_id: int) -> None:
        self._edges.append((button_id, False))

    def set_axes(self, x: int, y: int) -> None:
        self._axes = (int(x), int(y))

    def center(self) -> None:
        self._axes = (0, 0)

    # -- device side --

    def pump(self) -> list[tuple[int, bool]]:
        if not self._open:
            return []
        if self.fail_next_pump is not None:
            err, self.fail_next_pump = self.fail_next_pump, None
            raise err
        edges, self._edges = self._edges, []
        return edges

    def axes(self) -> tuple[int, int] | None:
        if not self._open:
            return None
        return self._axes

    def rumble(self, strong: int, weak: int, duration_ms: int) -> None:
        if self._open:
            self.pulses.append(duration_ms)

    def button_name(self, button_id: int) -> str:
        return f"RAW_{button_id}"
