from __future__ import annotations

from choreo.components.rect import Rect
from choreo.components.visual_target import VisualTarget
from choreo.events.bus import EVENT_TICK, EventBus
from choreo.scenes import Stage, create_stage


class DummyWindow:
    def __init__(self, width=1200, height=720):
        self.width = width
        self.height = height


def drive(bus: EventBus, ticks: int, dt: float = 0.02) -> None:
    for _ in range(ticks):
        bus.emit(EVENT_TICK, dt=dt)


def make_stage(window: DummyWindow | None = None) -> Stage:
    return create_stage(window or DummyWindow(), EventBus())


class MovableTarget:
    """Test stand-in for a mounted element whose rect can change or vanish."""

    def __init__(self, key: str, rect: Rect | None):
        self.rect = rect
        self.calls = 0
        self.target = VisualTarget(key=key, bounding_box=self._measure)

    def _measure(self) -> Rect | None:
        self.calls += 1
        return self.rect
