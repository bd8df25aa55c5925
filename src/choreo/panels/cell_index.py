from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

from choreo.components.rect import Rect
from choreo.components.visual_target import VisualTarget

CellLocator = Callable[[int, str], Optional[Rect]]


@dataclass(frozen=True, slots=True)
class CellHandle:
    """One cell of a panel as it was when the index was built.

    ``generation`` ties the handle to a single index build; once the panel's
    data changes shape the handle's target resolves to ``None``.
    """

    panel: str
    row: int
    column: str
    content: str
    generation: int
    target: VisualTarget = field(compare=False, repr=False)

    def bounding_box(self) -> Optional[Rect]:
        return self.target.bounding_box()


class CellIndex:
    """(row, column) and column -> ordered cell handles for one panel."""

    def __init__(self, panel: str, locate_cell: CellLocator) -> None:
        self.panel = panel
        self.generation = 0
        self._locate_cell = locate_cell
        self._by_pos: Dict[Tuple[int, str], CellHandle] = {}
        self._by_column: Dict[str, list[CellHandle]] = {}
        self._ordered: list[CellHandle] = []

    def rebuild(self, columns: Sequence[str], rows: Sequence[Mapping[str, object]]) -> int:
        """Re-register every cell row-major; older handles go stale."""
        self.generation += 1
        gen = self.generation
        self._by_pos = {}
        self._by_column = {column: [] for column in columns}
        self._ordered = []
        for r, row in enumerate(rows):
            for column in columns:
                value = row.get(column, "")
                handle = CellHandle(
                    panel=self.panel,
                    row=r,
                    column=column,
                    content="" if value is None else str(value),
                    generation=gen,
                    target=VisualTarget(
                        key=f"{self.panel}:{r}:{column}",
                        bounding_box=partial(self._resolve, gen, r, column),
                    ),
                )
                self._by_pos[(r, column)] = handle
                self._by_column[column].append(handle)
                self._ordered.append(handle)
        return gen

    def _resolve(self, generation: int, row: int, column: str) -> Optional[Rect]:
        if generation != self.generation:
            return None
        return self._locate_cell(row, column)

    def get_cells(self, column: Optional[str] = None) -> list[CellHandle]:
        if column is None:
            return list(self._ordered)
        return list(self._by_column.get(column, ()))

    def get_cell(self, row: int, column: str) -> Optional[CellHandle]:
        return self._by_pos.get((row, column))

    def is_current(self, handle: CellHandle) -> bool:
        return handle.panel == self.panel and handle.generation == self.generation

    def __len__(self) -> int:
        return len(self._ordered)
