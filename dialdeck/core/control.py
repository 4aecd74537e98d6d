from __future__ import annotations
from dataclasses import dataclass, field
from threading import Lock


@dataclass
class ControlState:
    """
    Shared control plane between the poll loop and host threads.
    enabled=False means the dial is hidden/off (commands are dropped).
    connected mirrors whether the poller currently holds a device.
    """
    _enabled: bool = True
    _connected: bool = False
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def is_enabled(self) -> bool:
        with self._lock:
            return self._enabled

    def set_enabled(self, value: bool) -> None:
        with self._lock:
            self._enabled = value

    def toggle(self) -> bool:
        with self._lock:
            self._enabled = not self._enabled
            return self._enabled

    def is_connected(self) -> bool:
        with self._lock:
            return self._connected

    def set_connected(self, value: bool) -> None:
        with self._lock:
            self._connected = value
