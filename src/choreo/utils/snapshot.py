from __future__ import annotations

import logging
from typing import Any, Mapping

from esper import World

from choreo import constants
from choreo.errors import SnapshotMisuse
from choreo.utils.properties import get_property, set_properties

LOG = logging.getLogger(__name__)


class StateSnapshot:
    """Pre-override property values of one entity, restored by ``dispose()``.

    Obtain instances through :meth:`capture`. The snapshot is also a context
    manager so the restore runs on every exit path::

        with StateSnapshot.capture(world, token, {"color": HIGHLIGHT_COLOR}):
            ...
    """

    __slots__ = ("world", "target", "original_values", "_captured", "_disposed")

    def __init__(self, world: World, target: int) -> None:
        self.world = world
        self.target = target
        self.original_values: dict[str, Any] = {}
        self._captured = False
        self._disposed = False

    @classmethod
    def capture(cls, world: World, target: int, values: Mapping[str, Any]) -> "StateSnapshot":
        snapshot = cls(world, target)
        snapshot.original_values = {key: get_property(world, target, key) for key in values}
        snapshot._captured = True
        set_properties(world, target, values)
        return snapshot

    @property
    def property_keys(self) -> frozenset[str]:
        return frozenset(self.original_values)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if not self._captured:
            _misuse(f"dispose() on entity {self.target} without a capture")
            return
        if self._disposed:
            _misuse(f"dispose() called twice on entity {self.target}")
            return
        self._disposed = True
        set_properties(self.world, self.target, self.original_values)

    def __enter__(self) -> "StateSnapshot":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._disposed:
            self.dispose()


def _misuse(message: str) -> None:
    if constants.STRICT_SNAPSHOTS:
        raise SnapshotMisuse(message)
    LOG.error("Snapshot misuse: %s", message)


capture = StateSnapshot.capture
