from __future__ import annotations

import logging
import math
from typing import Optional

from esper import World

from choreo.components.playback_state import Direction, PlaybackState
from choreo.constants import DEFAULT_TICK, RATE_MAX, RATE_MIN, RATE_STEP
from choreo.events.bus import (
    EVENT_PLAYBACK_RATE_CHANGED,
    EVENT_TICK,
    EVENT_TIMELINE_COMPLETE,
    EVENT_TIMELINE_KILLED,
    EVENT_TIMELINE_REWOUND,
    EventBus,
)
from choreo.timeline.sequencer import TimelineSequencer

LOG = logging.getLogger(__name__)


class PlaybackSystem:
    """Drives every (TimelineSequencer, PlaybackState) entity from the frame tick."""

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        event_bus.subscribe(EVENT_TICK, self.on_tick)

    def on_tick(self, sender, **kwargs):
        dt = kwargs.get('dt', DEFAULT_TICK)
        try:
            dt = float(dt)
        except (TypeError, ValueError):
            dt = DEFAULT_TICK
        for ent, (sequencer, state) in list(self.world.get_components(TimelineSequencer, PlaybackState)):
            if not sequencer.running or sequencer.killed:
                continue
            sequencer.update(dt, state.rate_multiplier)
            if sequencer.killed:
                continue
            state.position_fraction = sequencer.progress
            state.direction = effective_direction(state.rate_multiplier, sequencer.direction)
            if sequencer.running:
                continue
            state.playing = False
            moving_forward = state.rate_multiplier * sequencer.direction.sign > 0
            if moving_forward and sequencer.at_end:
                self.event_bus.emit(EVENT_TIMELINE_COMPLETE, entity=ent, name=sequencer.name)
            elif not moving_forward and sequencer.at_start:
                self.event_bus.emit(EVENT_TIMELINE_REWOUND, entity=ent, name=sequencer.name)


class PlaybackController:
    """Play / reverse / restart / rate control for one assembled timeline.

    The timeline and its PlaybackState live on their own entity until
    :meth:`kill` deletes it.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        sequencer: TimelineSequencer,
        *,
        rate: float = 1.0,
    ):
        self.world = world
        self.event_bus = event_bus
        self.sequencer = sequencer
        self.entity: Optional[int] = world.create_entity(
            sequencer, PlaybackState(rate_multiplier=_validated(rate)),
        )

    @property
    def state(self) -> Optional[PlaybackState]:
        if self.entity is None:
            return None
        try:
            return self.world.component_for_entity(self.entity, PlaybackState)
        except KeyError:
            return None

    @property
    def rate(self) -> float:
        state = self.state
        return state.rate_multiplier if state is not None else 0.0

    @property
    def killed(self) -> bool:
        return self.sequencer.killed

    def set_rate(self, multiplier: float) -> None:
        """Change speed at any time; the in-flight step keeps its progress."""
        state = self.state
        if state is None:
            return
        previous = state.rate_multiplier
        state.rate_multiplier = _validated(multiplier)
        state.direction = effective_direction(state.rate_multiplier, self.sequencer.direction)
        if state.rate_multiplier != previous:
            self.event_bus.emit(
                EVENT_PLAYBACK_RATE_CHANGED,
                entity=self.entity, rate=state.rate_multiplier, previous=previous,
            )

    def nudge_rate(self, steps: int = 1) -> float:
        """Move the rate by slider increments, clamped to the slider range."""
        rate = round(self.rate + steps * RATE_STEP, 1)
        rate = max(RATE_MIN, min(RATE_MAX, rate))
        self.set_rate(rate)
        return rate

    def play(self) -> None:
        self._run(Direction.FORWARD)

    def reverse(self) -> None:
        self._run(Direction.REVERSE)

    def restart(self) -> None:
        state = self.state
        if state is None:
            return
        self.sequencer.restart()
        self._sync(state, playing=True)

    def pause(self) -> None:
        state = self.state
        if state is None:
            return
        self.sequencer.pause()
        self._sync(state, playing=False)

    def kill(self) -> None:
        """Tear down; safe to call repeatedly, including from host teardown."""
        if self.entity is None:
            return
        entity, self.entity = self.entity, None
        self.sequencer.kill()
        try:
            self.world.delete_entity(entity, immediate=True)
        except KeyError:
            pass
        self.event_bus.emit(EVENT_TIMELINE_KILLED, entity=entity, name=self.sequencer.name)

    def _run(self, direction: Direction) -> None:
        state = self.state
        if state is None:
            return
        self.sequencer.run(direction)
        self._sync(state, playing=True)

    def _sync(self, state: PlaybackState, playing: bool) -> None:
        state.direction = effective_direction(state.rate_multiplier, self.sequencer.direction)
        state.position_fraction = self.sequencer.progress
        state.playing = playing


def effective_direction(rate: float, direction: Direction) -> Direction:
    """Direction the playhead actually moves in; a negative rate flips it."""
    if rate < 0:
        return Direction.REVERSE if direction is Direction.FORWARD else Direction.FORWARD
    return direction


def _validated(multiplier: float) -> float:
    value = float(multiplier)
    if not math.isfinite(value):
        raise ValueError(f"Playback rate must be finite, got {multiplier!r}")
    return value
