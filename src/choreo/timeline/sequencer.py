from __future__ import annotations

import logging
import math
from typing import Iterable, Optional

from choreo.components.playback_state import Direction
from choreo.constants import TIME_EPSILON
from choreo.errors import TimelineKilled
from choreo.timeline.steps import TimelineStep

LOG = logging.getLogger(__name__)


class TimelineSequencer:
    """Ordered queue of timeline steps and the playhead that walks it.

    Playhead invariant: every step before ``_index`` has finished forward;
    when ``_entered`` is set, ``_steps[_index]`` is in progress with ``_local``
    seconds of its nominal duration elapsed. Time is nominal: the caller
    scales frame deltas by the playback rate before calling :meth:`advance`.
    """

    def __init__(self, name: str = "timeline") -> None:
        self.name = name
        self.direction = Direction.FORWARD
        self.running = False
        self.killed = False
        self._steps: list[TimelineStep] = []
        self._index = 0
        self._local = 0.0
        self._entered = False
        self._expanded: dict[int, list[TimelineStep]] = {}

    # ------------------------------------------------------------------ queue

    def add(self, *steps: TimelineStep) -> "TimelineSequencer":
        if self.killed:
            raise TimelineKilled(f"Timeline '{self.name}' was killed")
        self._steps.extend(steps)
        return self

    @property
    def steps(self) -> tuple[TimelineStep, ...]:
        return tuple(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    # ------------------------------------------------------------------ state

    @property
    def current_step(self) -> Optional[TimelineStep]:
        if self._entered and self._index < len(self._steps):
            return self._steps[self._index]
        return None

    @property
    def at_start(self) -> bool:
        return self._index == 0 and not self._entered

    @property
    def at_end(self) -> bool:
        return self._index >= len(self._steps)

    @property
    def total_duration(self) -> float:
        return sum(step.duration for step in self._steps)

    @property
    def elapsed(self) -> float:
        done = sum(step.duration for step in self._steps[: self._index])
        return done + (self._local if self._entered else 0.0)

    @property
    def progress(self) -> float:
        total = self.total_duration
        if total <= 0.0:
            return 1.0 if self._steps and self.at_end else 0.0
        return min(1.0, max(0.0, self.elapsed / total))

    # ------------------------------------------------------------------ control

    def run(self, direction: Direction = Direction.FORWARD) -> None:
        if self.killed:
            raise TimelineKilled(f"Timeline '{self.name}' was killed")
        self.direction = direction
        self.running = True

    def pause(self) -> None:
        self.running = False

    def rewind(self) -> None:
        """Jump back to the first step, running every reverse handler on the way."""
        if self.killed:
            return
        self._guarded(self._advance_reverse, math.inf, True)

    def restart(self) -> None:
        self.rewind()
        self.run(Direction.FORWARD)

    def kill(self) -> None:
        """Stop for good: restore open overrides, drop all steps, fire nothing more."""
        if self.killed:
            return
        self.killed = True
        self.running = False
        steps = self._steps
        self._steps = []
        self._expanded.clear()
        self._index = 0
        self._local = 0.0
        self._entered = False
        for step in steps:
            step.abort()
        for step in steps:
            step.release()
        LOG.debug("Timeline '%s' killed (%d steps released).", self.name, len(steps))

    def update(self, dt: float, rate: float = 1.0) -> None:
        """Advance by one frame of ``dt`` wall seconds at ``rate``."""
        if not self.running or self.killed:
            return
        delta = dt * rate * self.direction.sign
        if delta == 0.0:
            return
        self.advance(delta)
        if self.killed:
            return
        if (delta > 0 and self.at_end) or (delta < 0 and self.at_start):
            self.running = False

    def advance(self, delta: float) -> None:
        """Move the playhead by ``delta`` nominal seconds (negative = backward)."""
        if self.killed or delta == 0.0:
            return
        if delta > 0:
            self._guarded(self._advance_forward, delta, False)
        else:
            self._guarded(self._advance_reverse, -delta, False)

    # ------------------------------------------------------------------ internals

    def _guarded(self, fn, remaining: float, force: bool) -> None:
        try:
            fn(remaining, force)
        except Exception:
            LOG.error("Step failed in timeline '%s'; killing it.", self.name)
            self.kill()
            raise

    def _enter(self, step: TimelineStep, direction: Direction) -> None:
        self._entered = True
        self._local = 0.0 if direction is Direction.FORWARD else step.duration
        step.begin(direction)
        if direction is not Direction.FORWARD or self.killed:
            return
        children = list(step.expand())
        if children:
            at = self._index + 1
            self._steps[at:at] = children
            self._expanded[id(step)] = children

    def _advance_forward(self, remaining: float, force: bool) -> None:
        while not self.killed and self._index < len(self._steps):
            step = self._steps[self._index]
            if not self._entered:
                self._enter(step, Direction.FORWARD)
                if self.killed:
                    return
            duration = step.duration
            if duration <= 0.0:
                step.render(1.0, Direction.FORWARD)
                self._finish_forward(step)
                continue
            need = duration - self._local
            if remaining + TIME_EPSILON < need:
                target = self._local + remaining
                if step.render(target / duration, Direction.FORWARD) or force:
                    self._local = target
                return
            if not step.render(1.0, Direction.FORWARD) and not force:
                return
            remaining -= need
            self._finish_forward(step)

    def _finish_forward(self, step: TimelineStep) -> None:
        step.finish(Direction.FORWARD)
        if self.killed:
            return
        self._index += 1
        self._entered = False
        self._local = 0.0

    def _advance_reverse(self, remaining: float, force: bool) -> None:
        while not self.killed:
            if not self._entered:
                if self._index == 0:
                    return
                self._index -= 1
                self._enter(self._steps[self._index], Direction.REVERSE)
                if self.killed:
                    return
            step = self._steps[self._index]
            duration = step.duration
            if duration > 0.0 and remaining + TIME_EPSILON < self._local:
                target = self._local - remaining
                if step.render(target / duration, Direction.REVERSE) or force:
                    self._local = target
                return
            if not step.render(0.0, Direction.REVERSE) and not force:
                return
            remaining -= self._local
            self._finish_reverse(step)

    def _finish_reverse(self, step: TimelineStep) -> None:
        step.finish(Direction.REVERSE)
        if self.killed:
            return
        self._entered = False
        self._local = 0.0
        children = self._expanded.pop(id(step), None)
        if children:
            self._discard(children)

    def _discard(self, children: Iterable[TimelineStep]) -> None:
        doomed = {id(child) for child in children}
        for child in children:
            nested = self._expanded.pop(id(child), None)
            if nested:
                doomed.update(id(step) for step in nested)
        self._steps = [step for step in self._steps if id(step) not in doomed]
