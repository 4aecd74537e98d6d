from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from dialdeck.core.types import Command


class CommandSink(Protocol):
    def apply(self, cmd: Command) -> None: ...


@dataclass
class RecordingSink:
    """Keeps every applied command, in order."""
    commands: list[Command] = field(default_factory=list)

    def apply(self, cmd: Command) -> None:
        self.commands.append(cmd)

    def of_type(self, kind: type) -> list[Command]:
        return [c for c in self.commands if isinstance(c, kind)]

    def clear(self) -> None:
        self.commands.clear()
