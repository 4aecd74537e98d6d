from __future__ import annotations

import logging
from dataclasses import dataclass

from dialdeck.core.control import ControlState
from dialdeck.core.types import Command, ActionTriggered, ControllerAction, RumblePulse
from dialdeck.device.poller import DevicePoller
from dialdeck.interpreter.modes import ModeInterpreter
from dialdeck.sink.base import CommandSink

logger = logging.getLogger(__name__)


@dataclass
class CommandGate:
    """
    Single exit for commands.
    If ControlState is OFF, we:
      - drop the rotation session without committing it
      - end any temporary mode override
      - forward nothing but the TOGGLE_DIAL action that turns us back on
    """
    state: ControlState
    interp: ModeInterpreter
    sink: CommandSink
    poller: DevicePoller | None = None

    _last_enabled: bool = True

    def guard(self) -> bool:
        """Handle an ON/OFF transition; True when the dial just went OFF."""
        enabled = self.state.is_enabled()
        if enabled == self._last_enabled:
            return False

        self._last_enabled = enabled
        if enabled:
            logger.info("dial ON")
            return False

        logger.info("dial OFF")
        self.interp.rotation.reset()
        self.interp.end_temporary_override()
        self.interp.reset()
        return True

    def allow(self) -> bool:
        return self.state.is_enabled()

    def apply(self, cmd: Command) -> None:
        if isinstance(cmd, ActionTriggered) and cmd.action == ControllerAction.TOGGLE_DIAL:
            self.state.toggle()
            self.sink.apply(cmd)
            return

        if not self.allow():
            logger.debug("dropped %s (dial off)", cmd)
            return

        if isinstance(cmd, RumblePulse) and self.poller is not None:
            self.poller.rumble(cmd.duration_ms)
        self.sink.apply(cmd)
