from __future__ import annotations

from typing import Optional

from esper import World

from choreo.components.rect import Rect
from choreo.components.token import Token
from choreo.constants import (
    FLOATING_OUTLINE_COLOR, HEADER_TEXT_COLOR, PANEL_OUTLINE_COLOR, TEXT_COLOR,
    TITLE_HEIGHT, TOKEN_COLOR, TOKEN_HEIGHT, TOKEN_TEXT_COLOR, TOKEN_WIDTH,
)
from choreo.panels.table import TablePanel
from choreo.rendering.layout import PanelLayout
from choreo.utils.properties import get_properties


class RenderSystem:
    """Draws panels and tokens; layout is rebuilt from live data every frame."""

    def __init__(self, world: World, layout: PanelLayout, window):
        self.world = world
        self.layout = layout
        self.window = window
        self.hud_lines: list[str] = []
        self._last_panel_rects: dict[str, Rect] = {}
        self._last_token_rects: dict[str, Rect] = {}

    def process(self):
        # Local import keeps tests headless without creating a window.
        import arcade
        headless = False
        try:
            arcade.get_window()
        except Exception:
            headless = True
        self._last_panel_rects = {}
        self._last_token_rects = {}
        for ent, panel in self.world.get_component(TablePanel):
            rect = self.layout.panel_rect(ent)
            if rect is None:
                continue
            self._last_panel_rects[panel.name] = rect
            if not headless:
                self._draw_panel(arcade, ent, panel, rect)
        for ent, token in self.world.get_component(Token):
            rect = self._token_rect(ent)
            if rect is None:
                continue
            self._last_token_rects[token.name] = rect
            if not headless:
                self._draw_token(arcade, ent, rect)
        if not headless:
            self._draw_hud(arcade)

    def _token_rect(self, ent: int) -> Optional[Rect]:
        props = get_properties(self.world, ent)
        if not props.get("visible"):
            return None
        return Rect(float(props.get("x", 0.0)), float(props.get("y", 0.0)), TOKEN_WIDTH, TOKEN_HEIGHT)

    def _draw_panel(self, arcade, ent: int, panel: TablePanel, rect: Rect) -> None:
        outline = FLOATING_OUTLINE_COLOR if panel.floating else PANEL_OUTLINE_COLOR
        arcade.draw_lbwh_rectangle_outline(rect.x, rect.y, rect.width, rect.height, outline, 1)
        arcade.draw_text(
            panel.title, rect.x + rect.width / 2, rect.top - TITLE_HEIGHT / 2,
            TEXT_COLOR, 16, anchor_x="center", anchor_y="center", bold=True,
        )
        header = self.layout.header_rect(ent)
        if header is not None:
            width = header.width / len(panel.columns)
            for i, column in enumerate(panel.columns):
                arcade.draw_text(
                    panel.header_for(column), header.x + i * width + 4, header.y + header.height / 2,
                    HEADER_TEXT_COLOR, 11, anchor_y="center", bold=True,
                )
        for cell in panel.index.get_cells():
            cell_rect = self.layout.cell_rect(ent, cell.row, cell.column)
            if cell_rect is None or not cell.content:
                continue
            arcade.draw_text(
                cell.content, cell_rect.x + 4, cell_rect.y + cell_rect.height / 2,
                TEXT_COLOR, 11, anchor_y="center",
            )

    def _draw_token(self, arcade, ent: int, rect: Rect) -> None:
        props = get_properties(self.world, ent)
        color = tuple(props.get("color", TOKEN_COLOR))
        alpha = int(255 * max(0.0, min(1.0, float(props.get("opacity", 1.0)))))
        arcade.draw_lbwh_rectangle_filled(rect.x, rect.y, rect.width, rect.height, (*color[:3], alpha))
        arcade.draw_text(
            str(props.get("content", "")), rect.x + 4, rect.y + rect.height / 2,
            TOKEN_TEXT_COLOR, 11, anchor_y="center",
        )

    def _draw_hud(self, arcade) -> None:
        y = 16
        for line in reversed(self.hud_lines):
            arcade.draw_text(line, 12, y, TEXT_COLOR, 12)
            y += 18
