from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from choreo.components.rect import Rect


@dataclass(frozen=True, slots=True)
class VisualTarget:
    """Named handle on something drawn on screen.

    ``bounding_box`` measures the live layout every time it is called and
    returns ``None`` while the target is not mounted. The owning panel keeps
    the lifecycle; holders only keep the reference.
    """

    key: str
    bounding_box: Callable[[], Optional[Rect]] = field(compare=False, repr=False)
