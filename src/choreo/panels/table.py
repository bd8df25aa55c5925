from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from choreo.components.visual_target import VisualTarget
from choreo.panels.cell_index import CellHandle, CellIndex

Row = Dict[str, str]


@dataclass(slots=True)
class TablePanel:
    """Tabular panel data.

    Panels with a ``flex`` ratio share the top row of the window; a panel with
    ``flex=None`` floats underneath and takes its x from its VisualProperties.
    """

    name: str
    title: str
    columns: Tuple[str, ...]
    rows: List[Row] = field(default_factory=list)
    flex: Optional[float] = 1.0
    order: int = 0
    show_header: bool = True
    headers: Dict[str, str] = field(default_factory=dict)
    index: Optional[CellIndex] = None

    @property
    def floating(self) -> bool:
        return self.flex is None

    def header_for(self, column: str) -> str:
        return self.headers.get(column, column.capitalize())


@dataclass(frozen=True)
class PanelHandle:
    """Operations a panel hands to the choreography engine.

    ``append_slot`` is where the next appended row will appear; destinations
    ask it instead of searching for the panel's last row.
    """

    name: str
    get_cells: Callable[[Optional[str]], list[CellHandle]]
    get_cell: Callable[[int, str], Optional[CellHandle]]
    get_data: Callable[[], list[Row]]
    target: VisualTarget
    append_slot: VisualTarget
