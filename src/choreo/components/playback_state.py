from dataclasses import dataclass
from enum import Enum


class Direction(Enum):
    """Playback direction of a timeline."""
    FORWARD = 1
    REVERSE = -1

    @property
    def sign(self) -> int:
        return self.value


@dataclass(slots=True)
class PlaybackState:
    """Per-timeline playback resource.

    ``rate_multiplier`` scales every tick; a negative value runs the timeline
    against the requested direction. ``direction`` is the effective one, the
    way the playhead actually moves. ``position_fraction`` mirrors the
    sequencer's progress after each tick.
    """

    rate_multiplier: float = 1.0
    direction: Direction = Direction.FORWARD
    position_fraction: float = 0.0
    playing: bool = False
