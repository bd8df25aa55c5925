from __future__ import annotations

import logging
from typing import Dict, Optional, Union

from choreo.components.rect import Rect
from choreo.components.visual_target import VisualTarget
from choreo.errors import MissingTarget

LOG = logging.getLogger(__name__)


def locate(target: Optional[VisualTarget]) -> Optional[Rect]:
    """Measure ``target`` now. Unmounted or vanished targets yield ``None``."""
    if target is None:
        return None
    try:
        return target.bounding_box()
    except (MissingTarget, LookupError):
        # The owning panel entity or row disappeared between frames.
        LOG.debug("Target %r is no longer mounted.", target.key)
        return None


class PositionRegistry:
    """Name -> VisualTarget lookup that always re-reads the live layout."""

    def __init__(self) -> None:
        self._targets: Dict[str, VisualTarget] = {}

    def register(self, target: VisualTarget) -> VisualTarget:
        self._targets[target.key] = target
        return target

    def unregister(self, key: str) -> None:
        self._targets.pop(key, None)

    def get(self, key: str) -> Optional[VisualTarget]:
        return self._targets.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._targets

    def __len__(self) -> int:
        return len(self._targets)

    def locate(self, target: Union[VisualTarget, str, None]) -> Optional[Rect]:
        if isinstance(target, str):
            target = self._targets.get(target)
        return locate(target)
