from __future__ import annotations

from typing import List, Optional, Tuple

from esper import World

from choreo.components.rect import Rect
from choreo.constants import (
    FLOATING_GAP, FLOATING_PANEL_WIDTH, HEADER_HEIGHT, PANEL_MARGIN,
    PANEL_PADDING, ROW_HEIGHT, TITLE_HEIGHT,
)
from choreo.errors import MissingTarget
from choreo.panels.table import TablePanel
from choreo.utils.properties import get_property


class PanelLayout:
    """Computes panel, row and cell rectangles from live panel data.

    Nothing is cached: every call reads the window size and the current rows,
    so appending a row shifts whatever sits below it on the very next query.
    Lookups for a deleted panel entity raise :class:`MissingTarget`.
    """

    def __init__(self, world: World, window):
        self.world = world
        self.window = window

    def _panel(self, entity: int) -> TablePanel:
        try:
            return self.world.component_for_entity(entity, TablePanel)
        except KeyError as exc:
            raise MissingTarget(f"Panel entity {entity} is not mounted") from exc

    def _flex_panels(self) -> List[Tuple[int, TablePanel]]:
        panels = [(ent, p) for ent, p in self.world.get_component(TablePanel) if not p.floating]
        panels.sort(key=lambda item: (item[1].order, item[0]))
        return panels

    @staticmethod
    def panel_height(panel: TablePanel) -> float:
        header = HEADER_HEIGHT if panel.show_header else 0
        return TITLE_HEIGHT + header + max(len(panel.rows), 1) * ROW_HEIGHT + PANEL_PADDING

    def _top(self) -> float:
        return self.window.height - PANEL_MARGIN

    def flex_bottom(self) -> float:
        top = self._top()
        bottoms = [top - self.panel_height(p) for _, p in self._flex_panels()]
        return min(bottoms) if bottoms else top

    def panel_rect(self, entity: int) -> Optional[Rect]:
        panel = self._panel(entity)
        if panel.floating:
            x = get_property(self.world, entity, "x", PANEL_MARGIN)
            top = self.flex_bottom() - FLOATING_GAP
            height = self.panel_height(panel)
            return Rect(float(x), top - height, FLOATING_PANEL_WIDTH, height)
        flex_panels = self._flex_panels()
        total = sum(p.flex for _, p in flex_panels) or 1.0
        usable = self.window.width - 2 * PANEL_MARGIN
        x = PANEL_MARGIN
        top = self._top()
        for ent, p in flex_panels:
            width = usable * p.flex / total
            if ent == entity:
                height = self.panel_height(p)
                return Rect(x, top - height, width, height)
            x += width
        return None

    def header_rect(self, entity: int) -> Optional[Rect]:
        panel = self._panel(entity)
        rect = self.panel_rect(entity)
        if rect is None or not panel.show_header:
            return None
        return Rect(rect.x, rect.top - TITLE_HEIGHT - HEADER_HEIGHT, rect.width, HEADER_HEIGHT)

    def _row_at(self, entity: int, panel: TablePanel, row: int) -> Optional[Rect]:
        rect = self.panel_rect(entity)
        if rect is None:
            return None
        header = HEADER_HEIGHT if panel.show_header else 0
        y = rect.top - TITLE_HEIGHT - header - (row + 1) * ROW_HEIGHT
        return Rect(rect.x, y, rect.width, ROW_HEIGHT)

    def row_rect(self, entity: int, row: int) -> Optional[Rect]:
        panel = self._panel(entity)
        if not 0 <= row < len(panel.rows):
            return None
        return self._row_at(entity, panel, row)

    def _column_slice(self, panel: TablePanel, row_rect: Rect, column: str) -> Optional[Rect]:
        if column not in panel.columns:
            return None
        width = row_rect.width / len(panel.columns)
        col = panel.columns.index(column)
        return Rect(row_rect.x + col * width, row_rect.y, width, row_rect.height)

    def cell_rect(self, entity: int, row: int, column: str) -> Optional[Rect]:
        panel = self._panel(entity)
        if not 0 <= row < len(panel.rows):
            return None
        row_rect = self._row_at(entity, panel, row)
        if row_rect is None:
            return None
        return self._column_slice(panel, row_rect, column)

    def append_slot_rect(self, entity: int, column: Optional[str] = None) -> Optional[Rect]:
        """Rect the next appended row (or its ``column`` cell) will occupy."""
        panel = self._panel(entity)
        row_rect = self._row_at(entity, panel, len(panel.rows))
        if row_rect is None or column is None:
            return row_rect
        return self._column_slice(panel, row_rect, column)
