from __future__ import annotations

import logging

from dialdeck.core.mappings import ButtonMappings, LOGICAL_BUTTONS, MappingError
from dialdeck.core.types import (
    RawButtonDetected, RemapNotice, RemapApplied, RemapConflict, RemapCancelled,
)
from dialdeck.interpreter.buttons import ButtonDisambiguator

logger = logging.getLogger(__name__)


class RemapSession:
    """
    "Press the button you want to use" flow for one logical button.

    begin() puts the disambiguator into detection mode; the next physical
    button down lands in on_detected(). A conflict parks the session until the
    host answers resolve_conflict(). Only one remap can be in flight.
    """

    def __init__(self, mappings: ButtonMappings, disambiguator: ButtonDisambiguator,
                 timeout_ms: int = 10_000) -> None:
        self.mappings = mappings
        self.disambiguator = disambiguator
        self.timeout_ms = int(timeout_ms)

        self.logical: str | None = None
        self.deadline_ms: int | None = None
        self._conflict: RemapConflict | None = None

    @property
    def active(self) -> bool:
        return self.logical is not None

    @property
    def awaiting_answer(self) -> bool:
        return self._conflict is not None

    def begin(self, logical: str, t_ms: int) -> None:
        if logical not in LOGICAL_BUTTONS:
            raise MappingError(f"unknown logical button: {logical!r}")
        logger.info("remapping %s, waiting for a button", logical)
        self.logical = logical
        self.deadline_ms = t_ms + self.timeout_ms
        self._conflict = None
        self.disambiguator.start_detection()

    def on_detected(self, signal: RawButtonDetected, t_ms: int = 0) -> list[RemapNotice]:
        if self.logical is None or self._conflict is not None:
            return []

        self.disambiguator.stop_detection()
        self.deadline_ms = None

        existing = self.mappings.find_conflict(signal.button_id, self.logical)
        if existing is not None:
            self._conflict = RemapConflict(
                logical=self.logical, physical_id=signal.button_id, existing=existing,
            )
            return [self._conflict]

        return [self._apply(signal.button_id, cleared=None)]

    def resolve_conflict(self, reassign: bool) -> list[RemapNotice]:
        conflict = self._conflict
        if conflict is None:
            return []
        self._conflict = None

        if not reassign:
            return [self._finish(RemapCancelled(logical=conflict.logical, reason="declined"))]

        self.mappings.set_physical(conflict.existing, None)
        return [self._apply(conflict.physical_id, cleared=conflict.existing)]

    def tick(self, t_ms: int) -> list[RemapNotice]:
        if self.logical is None or self.deadline_ms is None:
            return []
        if t_ms < self.deadline_ms:
            return []
        logger.info("remap of %s timed out", self.logical)
        self.disambiguator.stop_detection()
        return [self._finish(RemapCancelled(logical=self.logical, reason="timeout"))]

    def cancel(self) -> list[RemapNotice]:
        if self.logical is None:
            return []
        self.disambiguator.stop_detection()
        self._conflict = None
        return [self._finish(RemapCancelled(logical=self.logical, reason="cancelled"))]

    def _apply(self, physical_id: int, cleared: str | None) -> RemapApplied:
        logical = self.logical
        assert logical is not None
        self.mappings.set_physical(logical, physical_id)
        logger.info("mapped %s -> button %d", logical, physical_id)
        return self._finish(RemapApplied(logical=logical, physical_id=physical_id, cleared=cleared))

    def _finish(self, notice):
        self.logical = None
        self.deadline_ms = None
        return notice
