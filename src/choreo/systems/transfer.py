"""Schedules token transfers and marker visits onto a timeline.

A transfer is three steps: Position (deferred: measure the source when it
runs, then place the token there), Move (tween toward the lazily resolved
destination) and Hide. Optional overrides wrap the three in an opening and a
closing snapshot step.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from esper import World

from choreo.components.playback_state import Direction
from choreo.components.rect import Rect
from choreo.components.token import Token
from choreo.components.transfer import Transfer, TransferSpec, TransferState
from choreo.components.visual_target import VisualTarget
from choreo.constants import MAX_UNRESOLVED_TICKS, VISIT_DURATION
from choreo.events.bus import (
    EVENT_TRANSFER_ARRIVED,
    EVENT_TRANSFER_REVERSED,
    EVENT_TRANSFER_SKIPPED,
    EVENT_TRANSFER_START,
    EventBus,
)
from choreo.rendering.position_registry import PositionRegistry, locate
from choreo.timeline.steps import (
    DeferredStep,
    OverrideScope,
    ScopeStep,
    SetStep,
    StepBuffer,
    TimelineStep,
    TweenStep,
)

LOG = logging.getLogger(__name__)


class StepSink(Protocol):
    def add(self, *steps: TimelineStep): ...


class _PositionStep(DeferredStep):
    def __init__(self, operator: "TransferOperator", transfer: Transfer, token: int):
        super().__init__(self._place, label=f"position {transfer.label}")
        self._operator = operator
        self._transfer = transfer
        self._token = token

    def _place(self, buffer: StepBuffer) -> None:
        transfer = self._transfer
        transfer.skipped = False
        rect = self._operator.locate(transfer.spec.from_target)
        if rect is None:
            transfer.skipped = True
            transfer.state = TransferState.SKIPPED
            self._operator.notify_skipped(transfer, "source not mounted")
            return
        buffer.add(SetStep(
            self._operator.world,
            self._token,
            {"x": rect.x, "y": rect.y, "content": transfer.spec.content, "visible": True},
            on_apply=self._positioned,
            on_revert=self._removed,
            label=f"place {transfer.label}",
        ))

    def _positioned(self) -> None:
        self._transfer.state = TransferState.POSITIONED
        self._operator.lease(self._token, self._transfer)

    def _removed(self) -> None:
        self._transfer.state = TransferState.REMOVED
        self._operator.release_lease(self._token, self._transfer)

    def finish(self, direction: Direction) -> None:
        if direction is Direction.REVERSE and self._transfer.skipped:
            self._transfer.skipped = False
            self._transfer.state = TransferState.PENDING

    def release(self) -> None:
        super().release()
        self._operator = None


class _MoveStep(TweenStep):
    def __init__(self, operator: "TransferOperator", transfer: Transfer, token: int, max_unresolved_ticks):
        spec = transfer.spec
        super().__init__(
            operator.world,
            token,
            ("x", "y"),
            self._goal_from_resolver,
            spec.duration,
            easing=spec.easing,
            on_start=self._started,
            on_complete=self._arrived,
            on_reverse_complete=self._reversed,
            max_unresolved_ticks=max_unresolved_ticks,
            label=f"move {transfer.label}",
        )
        self._operator = operator
        self._transfer = transfer

    @property
    def duration(self) -> float:
        if self._transfer is not None and self._transfer.skipped:
            return 0.0
        return self._duration

    def _goal_from_resolver(self):
        rect = self._transfer.spec.to_target_resolver()
        if rect is None:
            return None
        return {"x": rect.x, "y": rect.y}

    def begin(self, direction: Direction) -> None:
        if self._transfer.skipped:
            return
        super().begin(direction)

    def render(self, progress: float, direction: Direction) -> bool:
        if self._transfer.skipped:
            return True
        return super().render(progress, direction)

    def finish(self, direction: Direction) -> None:
        if self._transfer.skipped:
            return
        super().finish(direction)

    def _started(self) -> None:
        self._transfer.state = TransferState.IN_FLIGHT
        spec = self._transfer.spec
        if spec.on_start is not None:
            spec.on_start()
        self._operator.emit(EVENT_TRANSFER_START, self._transfer)

    def _arrived(self) -> None:
        self._transfer.state = TransferState.ARRIVED
        spec = self._transfer.spec
        if spec.on_complete is not None:
            spec.on_complete()
        self._operator.emit(EVENT_TRANSFER_ARRIVED, self._transfer)

    def _reversed(self) -> None:
        self._transfer.state = TransferState.POSITIONED
        spec = self._transfer.spec
        if spec.on_reverse_complete is not None:
            spec.on_reverse_complete()
        self._operator.emit(EVENT_TRANSFER_REVERSED, self._transfer)

    def release(self) -> None:
        super().release()
        self._operator = None
        self._transfer = None


class _HideStep(SetStep):
    def __init__(self, operator: "TransferOperator", transfer: Transfer, token: int):
        super().__init__(
            operator.world,
            token,
            {"visible": False},
            on_apply=self._hidden,
            on_revert=self._shown,
            label=f"hide {transfer.label}",
        )
        self._operator = operator
        self._transfer = transfer

    def finish(self, direction: Direction) -> None:
        if self._transfer.skipped:
            return
        super().finish(direction)

    def _hidden(self) -> None:
        self._transfer.state = TransferState.HIDDEN
        self._operator.release_lease(self.entity, self._transfer)

    def _shown(self) -> None:
        self._transfer.state = TransferState.IN_FLIGHT
        self._operator.lease(self.entity, self._transfer)

    def release(self) -> None:
        super().release()
        self._operator = None
        self._transfer = None


class TransferOperator:
    """Turns TransferSpecs into timeline steps for one world."""

    def __init__(
        self,
        world: World,
        event_bus: Optional[EventBus] = None,
        *,
        registry: Optional[PositionRegistry] = None,
        max_unresolved_ticks: Optional[int] = MAX_UNRESOLVED_TICKS,
    ):
        self.world = world
        self.event_bus = event_bus
        self.registry = registry
        self.max_unresolved_ticks = max_unresolved_ticks

    def locate(self, target) -> Optional[Rect]:
        if self.registry is not None:
            return self.registry.locate(target)
        if isinstance(target, str):
            LOG.debug("Target key %r given without a registry.", target)
            return None
        return locate(target)

    def enqueue(self, sequencer: StepSink, token: int, spec: TransferSpec) -> Transfer:
        transfer = Transfer(spec=spec)
        scope = OverrideScope(self.world, token, spec.overrides) if spec.overrides else None
        if scope is not None:
            sequencer.add(ScopeStep(scope, opening=True, label=f"override {transfer.label}"))
        sequencer.add(
            _PositionStep(self, transfer, token),
            _MoveStep(self, transfer, token, self.max_unresolved_ticks),
            _HideStep(self, transfer, token),
        )
        if scope is not None:
            sequencer.add(ScopeStep(scope, opening=False, label=f"restore {transfer.label}"))
        return transfer

    def enqueue_visit(
        self,
        sequencer: StepSink,
        marker: int,
        marker_target: VisualTarget,
        destination: Callable[[], Optional[Rect]],
        duration: float = VISIT_DURATION,
        easing=None,
    ) -> TweenStep:
        """Slide ``marker`` horizontally until it is centred under ``destination``."""

        def goal():
            rect = destination()
            own = self.locate(marker_target)
            if rect is None or own is None:
                return None
            return {"x": rect.x + rect.width / 2 - own.width / 2}

        step = TweenStep(
            self.world,
            marker,
            ("x",),
            goal,
            duration,
            easing=easing,
            max_unresolved_ticks=self.max_unresolved_ticks,
            label=f"visit {marker_target.key}",
        )
        sequencer.add(step)
        return step

    # ------------------------------------------------------------------ helpers

    def emit(self, name: str, transfer: Transfer, **extra) -> None:
        if self.event_bus is not None:
            self.event_bus.emit(name, label=transfer.label, content=transfer.spec.content, **extra)

    def notify_skipped(self, transfer: Transfer, reason: str) -> None:
        LOG.debug("Skipping transfer %r: %s.", transfer.label, reason)
        self.emit(EVENT_TRANSFER_SKIPPED, transfer, reason=reason)

    def lease(self, token: int, transfer: Transfer) -> None:
        try:
            comp = self.world.component_for_entity(token, Token)
        except KeyError:
            return
        if comp.holder is not None and comp.holder is not transfer:
            LOG.warning(
                "Token '%s' is still held by transfer %r; %r takes it over.",
                comp.name, getattr(comp.holder, "label", comp.holder), transfer.label,
            )
        comp.holder = transfer

    def release_lease(self, token: int, transfer: Transfer) -> None:
        try:
            comp = self.world.component_for_entity(token, Token)
        except KeyError:
            return
        if comp.holder is transfer:
            comp.holder = None


def schedule_transfer(
    sequencer: StepSink,
    world: World,
    token: int,
    spec: TransferSpec,
    *,
    event_bus: Optional[EventBus] = None,
    registry: Optional[PositionRegistry] = None,
) -> Transfer:
    """Convenience wrapper around :meth:`TransferOperator.enqueue`."""
    return TransferOperator(world, event_bus, registry=registry).enqueue(sequencer, token, spec)
