from __future__ import annotations

from dataclasses import dataclass

from dialdeck.core.types import shortest_delta


@dataclass
class RotationSession:
    engaged: bool = False
    last_angle: int = 0
    accumulated_deg: int = 0          # unbounded, a full turn adds 360
    accumulated_since_limit: int = 0  # boundary-triggered modes only


class RotationAccumulator:
    """
    Tracks rotation from successive absolute angles.

    The first sample after idle only sets the baseline. Later samples add the
    shortest-path delta, so 350 -> 10 is +20 and multiple turns keep adding up
    within one engaged session.
    """

    def __init__(self) -> None:
        self.session = RotationSession()

    @property
    def engaged(self) -> bool:
        return self.session.engaged

    @property
    def accumulated_deg(self) -> int:
        # meaningless while unengaged; report zero
        return self.session.accumulated_deg if self.session.engaged else 0

    @property
    def accumulated_since_limit(self) -> int:
        return self.session.accumulated_since_limit if self.session.engaged else 0

    def on_angle(self, angle: int, t_ms: int = 0) -> int | None:
        angle = int(angle) % 360
        s = self.session

        if not s.engaged:
            s.engaged = True
            s.last_angle = angle
            s.accumulated_deg = 0
            s.accumulated_since_limit = 0
            return None

        delta = shortest_delta(s.last_angle, angle)
        s.accumulated_deg += delta
        s.last_angle = angle
        return delta

    def on_idle(self) -> None:
        if self.session.engaged:
            self.reset()

    def release(self) -> int:
        if not self.session.engaged:
            return 0
        total = self.session.accumulated_deg
        self.reset()
        return total

    def note_past_limit(self, delta: int) -> int:
        self.session.accumulated_since_limit += delta
        return self.session.accumulated_since_limit

    def clear_past_limit(self) -> None:
        self.session.accumulated_since_limit = 0

    def reset(self) -> None:
        self.session = RotationSession()
