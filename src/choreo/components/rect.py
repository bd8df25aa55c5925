from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned screen rectangle (origin bottom-left, y grows upward).

    Rects are measured at query time and must not be cached across frames.
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def bottom(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def contains(self, px: float, py: float) -> bool:
        return self.left <= px <= self.right and self.bottom <= py <= self.top
