from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, Optional, Union

from choreo.components.rect import Rect
from choreo.components.visual_target import VisualTarget
from choreo.constants import DEFAULT_TRANSFER_DURATION

Easing = Callable[[float], float]
Callback = Callable[[], None]


class TransferState(Enum):
    PENDING = auto()
    POSITIONED = auto()
    IN_FLIGHT = auto()
    ARRIVED = auto()
    HIDDEN = auto()
    REMOVED = auto()
    SKIPPED = auto()


@dataclass(slots=True)
class TransferSpec:
    """Description of one token transfer.

    ``to_target_resolver`` is called while the transfer runs, never when it is
    scheduled: earlier transfers may have moved the destination.
    """

    from_target: Union[VisualTarget, str]
    to_target_resolver: Callable[[], Optional[Rect]]
    content: str = ""
    duration: float = DEFAULT_TRANSFER_DURATION
    easing: Union[str, Easing, None] = None
    on_start: Optional[Callback] = None
    on_complete: Optional[Callback] = None
    on_reverse_complete: Optional[Callback] = None
    # Transient property overrides applied to the token for this transfer only.
    overrides: Dict[str, object] = field(default_factory=dict)
    label: str = ""


@dataclass(slots=True)
class Transfer:
    """Runtime record of a scheduled transfer."""

    spec: TransferSpec
    state: TransferState = TransferState.PENDING
    skipped: bool = False

    @property
    def label(self) -> str:
        if self.spec.label:
            return self.spec.label
        return self.spec.content
