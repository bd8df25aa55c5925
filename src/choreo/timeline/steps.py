"""Step types the timeline sequencer executes.

A step has a nominal ``duration`` (0 for instant actions) and four hooks the
sequencer calls in order: ``begin`` when the playhead enters it, ``expand``
(forward only) to insert sub-steps right after it, ``render`` with the local
progress in [0, 1], and ``finish`` once the playhead leaves it in the given
direction. Every forward effect has a reverse counterpart so a timeline played
forward and then fully backward leaves no trace.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from esper import World

from choreo.animation.easing import lerp, resolve_easing
from choreo.components.playback_state import Direction
from choreo.errors import UnresolvedDestination
from choreo.utils.properties import get_property, set_properties
from choreo.utils.snapshot import StateSnapshot

LOG = logging.getLogger(__name__)

Callback = Callable[[], None]
Values = Union[Mapping[str, Any], Callable[[], Mapping[str, Any]]]


class TimelineStep:
    duration: float = 0.0
    label: str = ""

    def begin(self, direction: Direction) -> None:
        pass

    def expand(self) -> Sequence["TimelineStep"]:
        return ()

    def render(self, progress: float, direction: Direction) -> bool:
        """Draw the step at ``progress``; return False to hold this tick."""
        return True

    def finish(self, direction: Direction) -> None:
        pass

    def abort(self) -> None:
        """Undo transient state held open by the step (kill / error path)."""

    def release(self) -> None:
        """Drop references to targets and callbacks."""

    def __repr__(self) -> str:
        name = type(self).__name__
        return f"<{name} {self.label}>" if self.label else f"<{name}>"


class CallStep(TimelineStep):
    """Instant action with an optional undo for reverse playback."""

    def __init__(self, action: Optional[Callback], undo: Optional[Callback] = None, label: str = ""):
        self._action = action
        self._undo = undo
        self.label = label

    def finish(self, direction: Direction) -> None:
        fn = self._action if direction is Direction.FORWARD else self._undo
        if fn is not None:
            fn()

    def release(self) -> None:
        self._action = None
        self._undo = None


class SetStep(TimelineStep):
    """Instantly writes properties; reverse playback writes the old values back.

    ``values`` may be a callable, evaluated when the step executes.
    """

    def __init__(
        self,
        world: World,
        entity: int,
        values: Values,
        *,
        on_apply: Optional[Callback] = None,
        on_revert: Optional[Callback] = None,
        label: str = "",
    ):
        self.world = world
        self.entity = entity
        self._values = values
        self._on_apply = on_apply
        self._on_revert = on_revert
        self._snapshot: Optional[StateSnapshot] = None
        self.label = label

    def finish(self, direction: Direction) -> None:
        if direction is Direction.FORWARD:
            values = self._values() if callable(self._values) else self._values
            self._snapshot = StateSnapshot.capture(self.world, self.entity, values)
            if self._on_apply is not None:
                self._on_apply()
            return
        if self._snapshot is not None:
            self._snapshot.dispose()
            self._snapshot = None
        if self._on_revert is not None:
            self._on_revert()

    def release(self) -> None:
        self.world = None
        self._values = {}
        self._on_apply = None
        self._on_revert = None
        self._snapshot = None


class TweenStep(TimelineStep):
    """Animates numeric properties toward a goal measured on every frame.

    ``goal`` returns the target value for each key in ``keys``, or ``None``
    (or raises :class:`UnresolvedDestination`) when the destination cannot
    be resolved right now; the step then holds the entity where it is and
    retries on the next tick. With ``max_unresolved_ticks`` set, the step
    stops waiting after that many held ticks and settles at the last known
    goal.

    Callbacks fire on transitions only: ``on_start`` when the step begins
    forward from its start, ``on_complete`` when it first arrives and
    ``on_reverse_complete`` when a started step is run back to its start.
    Scrubbing back and forth inside the step fires nothing.
    """

    def __init__(
        self,
        world: World,
        entity: int,
        keys: Sequence[str],
        goal: Callable[[], Optional[Mapping[str, float]]],
        duration: float,
        *,
        easing=None,
        on_start: Optional[Callback] = None,
        on_complete: Optional[Callback] = None,
        on_reverse_complete: Optional[Callback] = None,
        max_unresolved_ticks: Optional[int] = None,
        label: str = "",
    ):
        self.world = world
        self.entity = entity
        self.keys = tuple(keys)
        self._goal = goal
        self._duration = max(0.0, float(duration))
        self._ease = resolve_easing(easing)
        self._on_start = on_start
        self._on_complete = on_complete
        self._on_reverse_complete = on_reverse_complete
        self.max_unresolved_ticks = max_unresolved_ticks
        self.label = label
        self._start: dict[str, float] = {}
        self._last_goal: Optional[dict[str, float]] = None
        self._held = 0
        self.started = False
        self.arrived = False

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def held_ticks(self) -> int:
        return self._held

    def begin(self, direction: Direction) -> None:
        if direction is not Direction.FORWARD:
            return
        self._start = {key: float(get_property(self.world, self.entity, key, 0.0)) for key in self.keys}
        self._last_goal = None
        self._held = 0
        self.started = True
        self.arrived = False
        if self._on_start is not None:
            self._on_start()

    def render(self, progress: float, direction: Direction) -> bool:
        if progress <= 0.0:
            set_properties(self.world, self.entity, self._start)
            return True
        goal = self._resolve_goal()
        if goal is None:
            return False
        t = self._ease(progress)
        set_properties(
            self.world,
            self.entity,
            {key: lerp(self._start.get(key, 0.0), goal[key], t) for key in self.keys},
        )
        return True

    def _resolve_goal(self) -> Optional[dict[str, float]]:
        try:
            goal = self._goal()
        except UnresolvedDestination:
            goal = None
        if goal is not None:
            self._held = 0
            self._last_goal = {key: float(goal[key]) for key in self.keys}
            return self._last_goal
        self._held += 1
        if self._held == 1:
            LOG.warning("Destination of %r unresolved; holding.", self)
        limit = self.max_unresolved_ticks
        if limit is not None and self._held > limit:
            if self._held == limit + 1:
                LOG.warning("Destination of %r still unresolved after %d ticks; settling.", self, limit)
            return self._last_goal if self._last_goal is not None else dict(self._start)
        return None

    def finish(self, direction: Direction) -> None:
        if direction is Direction.FORWARD:
            if self.arrived:
                return
            self.arrived = True
            if self._on_complete is not None:
                self._on_complete()
            return
        if not self.started:
            return
        self.started = False
        self.arrived = False
        if self._on_reverse_complete is not None:
            self._on_reverse_complete()

    def release(self) -> None:
        self.world = None
        self._goal = lambda: None
        self._on_start = None
        self._on_complete = None
        self._on_reverse_complete = None


class DeferredStep(TimelineStep):
    """Instant step whose body builds more steps when it executes.

    ``factory`` receives a :class:`StepBuffer`; whatever it adds runs right
    after this step. Reversing past the step discards the generated steps so a
    later forward run measures the layout again.
    """

    def __init__(self, factory: Callable[["StepBuffer"], None], label: str = ""):
        self._factory = factory
        self.label = label

    def expand(self) -> Sequence[TimelineStep]:
        if self._factory is None:
            return ()
        buffer = StepBuffer()
        self._factory(buffer)
        return buffer.steps

    def release(self) -> None:
        self._factory = None


class OverrideScope:
    """Transient property override shared by an opening and a closing step."""

    def __init__(self, world: World, entity: int, values: Mapping[str, Any]):
        self.world = world
        self.entity = entity
        self.values = dict(values)
        self.snapshot: Optional[StateSnapshot] = None

    @property
    def is_open(self) -> bool:
        return self.snapshot is not None

    def open(self) -> None:
        if self.snapshot is None:
            self.snapshot = StateSnapshot.capture(self.world, self.entity, self.values)

    def close(self) -> None:
        if self.snapshot is not None:
            snapshot, self.snapshot = self.snapshot, None
            snapshot.dispose()


class ScopeStep(TimelineStep):
    """Opens or closes an :class:`OverrideScope`.

    The pair is mirror-symmetric: reversing over the closing step re-applies
    the override and reversing over the opening step restores the original.
    """

    def __init__(self, scope: OverrideScope, opening: bool, label: str = ""):
        self.scope = scope
        self.opening = opening
        self.label = label

    def finish(self, direction: Direction) -> None:
        if (direction is Direction.FORWARD) == self.opening:
            self.scope.open()
        else:
            self.scope.close()

    def abort(self) -> None:
        if self.scope is not None and self.scope.is_open:
            self.scope.close()

    def release(self) -> None:
        self.scope = None


class StepBuffer:
    """Collects steps added while a deferred step expands."""

    def __init__(self) -> None:
        self.steps: list[TimelineStep] = []

    def add(self, *steps: TimelineStep) -> "StepBuffer":
        self.steps.extend(steps)
        return self

    def __len__(self) -> int:
        return len(self.steps)
