from __future__ import annotations

from functools import partial
from typing import Dict, Mapping, Optional, Union

from esper import World

from choreo.components.visual_properties import VisualProperties
from choreo.components.visual_target import VisualTarget
from choreo.constants import PANEL_MARGIN
from choreo.events.bus import EVENT_PANEL_CHANGED, EventBus
from choreo.panels.cell_index import CellIndex
from choreo.panels.table import PanelHandle, Row, TablePanel
from choreo.rendering.layout import PanelLayout
from choreo.rendering.position_registry import PositionRegistry

PanelRef = Union[int, str]


class PanelSystem:
    """Owns panel entities: mounting, row mutations and cell index rebuilds.

    Every mutation rebuilds the panel's CellIndex, so handles fetched before
    it must be fetched again.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        layout: PanelLayout,
        registry: Optional[PositionRegistry] = None,
    ):
        self.world = world
        self.event_bus = event_bus
        self.layout = layout
        self.registry = registry if registry is not None else PositionRegistry()
        self._by_name: Dict[str, int] = {}

    # ------------------------------------------------------------------ lookup

    def entity(self, ref: PanelRef) -> int:
        if isinstance(ref, str):
            try:
                return self._by_name[ref]
            except KeyError as exc:
                raise KeyError(f"Panel '{ref}' is not mounted") from exc
        return ref

    def panel(self, ref: PanelRef) -> TablePanel:
        return self.world.component_for_entity(self.entity(ref), TablePanel)

    def names(self) -> list[str]:
        return list(self._by_name)

    def handle(self, ref: PanelRef) -> PanelHandle:
        entity = self.entity(ref)
        panel = self.panel(entity)
        index = panel.index
        return PanelHandle(
            name=panel.name,
            get_cells=lambda column=None: index.get_cells(column),
            get_cell=index.get_cell,
            get_data=lambda: [dict(row) for row in self.panel(entity).rows],
            target=self.registry.get(panel.name),
            append_slot=self.registry.get(f"{panel.name}:append"),
        )

    def append_slot_target(self, ref: PanelRef, column: str) -> VisualTarget:
        entity = self.entity(ref)
        name = self.panel(entity).name
        key = f"{name}:append:{column}"
        target = self.registry.get(key)
        if target is None:
            target = self.registry.register(VisualTarget(
                key=key, bounding_box=partial(self.layout.append_slot_rect, entity, column),
            ))
        return target

    # ------------------------------------------------------------------ lifecycle

    def mount(self, panel: TablePanel) -> int:
        if panel.name in self._by_name:
            raise ValueError(f"Panel '{panel.name}' already mounted")
        entity = self.world.create_entity(panel, VisualProperties())
        if panel.floating:
            self.world.component_for_entity(entity, VisualProperties).values["x"] = float(PANEL_MARGIN)
        panel.index = CellIndex(panel.name, partial(self.layout.cell_rect, entity))
        panel.index.rebuild(panel.columns, panel.rows)
        self._by_name[panel.name] = entity
        self.registry.register(VisualTarget(
            key=panel.name, bounding_box=partial(self.layout.panel_rect, entity),
        ))
        self.registry.register(VisualTarget(
            key=f"{panel.name}:append", bounding_box=partial(self.layout.append_slot_rect, entity),
        ))
        self._changed(panel, "mounted")
        return entity

    def unmount(self, ref: PanelRef) -> None:
        entity = self.entity(ref)
        panel = self.panel(entity)
        for key in list(self._registry_keys(panel)):
            self.registry.unregister(key)
        self._by_name.pop(panel.name, None)
        if panel.index is not None:
            # Invalidate outstanding handles.
            panel.index.rebuild(panel.columns, [])
        self.world.delete_entity(entity, immediate=True)
        self._changed(panel, "unmounted")

    def _registry_keys(self, panel: TablePanel):
        yield panel.name
        yield f"{panel.name}:append"
        for column in panel.columns:
            yield f"{panel.name}:append:{column}"

    # ------------------------------------------------------------------ mutations

    def append_row(self, ref: PanelRef, values: Mapping[str, str]) -> int:
        panel = self.panel(ref)
        panel.rows.append({column: str(values.get(column, "")) for column in panel.columns})
        row = len(panel.rows) - 1
        self._rebuild(panel, "append", row)
        return row

    def pop_row(self, ref: PanelRef) -> Optional[Row]:
        panel = self.panel(ref)
        if not panel.rows:
            return None
        row = panel.rows.pop()
        self._rebuild(panel, "pop", len(panel.rows))
        return row

    def set_value(self, ref: PanelRef, row: int, column: str, value: str) -> str:
        """Write one cell and return its previous content."""
        panel = self.panel(ref)
        if column not in panel.columns:
            raise KeyError(f"Panel '{panel.name}' has no column '{column}'")
        previous = panel.rows[row].get(column, "")
        panel.rows[row][column] = value
        self._rebuild(panel, "update", row)
        return previous

    def _rebuild(self, panel: TablePanel, reason: str, row: Optional[int]) -> None:
        panel.index.rebuild(panel.columns, panel.rows)
        self._changed(panel, reason, row)

    def _changed(self, panel: TablePanel, reason: str, row: Optional[int] = None) -> None:
        generation = panel.index.generation if panel.index is not None else 0
        self.event_bus.emit(
            EVENT_PANEL_CHANGED, panel=panel.name, reason=reason, row=row, generation=generation,
        )
