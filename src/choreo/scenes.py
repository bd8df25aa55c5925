"""Host-level choreographies built from pairing and transfers.

The lookup scene walks the browser through the page load: visit the webpage,
carry every domain into the browser, visit DNS, carry each domain's IP back,
return to the webpage, go out to the Internet and come back to the webpage.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional, Sequence

from esper import World

from choreo.components.rect import Rect
from choreo.components.transfer import Transfer, TransferSpec
from choreo.constants import DEFAULT_TRANSFER_DURATION, HIGHLIGHT_COLOR
from choreo.dataset import RESOURCES, UrlResource, build_panels
from choreo.errors import UnresolvedDestination
from choreo.events.bus import EventBus
from choreo.panels.table import PanelHandle
from choreo.rendering.layout import PanelLayout
from choreo.rendering.position_registry import PositionRegistry, locate
from choreo.systems.panels import PanelSystem
from choreo.systems.transfer import StepSink, TransferOperator
from choreo.timeline.sequencer import TimelineSequencer
from choreo.timeline.steps import DeferredStep, StepBuffer
from choreo.utils.pairing import build_pairs
from choreo.world import create_world, spawn_token


@dataclass
class Stage:
    world: World
    event_bus: EventBus
    layout: PanelLayout
    registry: PositionRegistry
    panels: PanelSystem
    operator: TransferOperator
    token: int


def create_stage(window, event_bus: EventBus, resources: Sequence[UrlResource] = RESOURCES) -> Stage:
    world = create_world()
    layout = PanelLayout(world, window)
    registry = PositionRegistry()
    panels = PanelSystem(world, event_bus, layout, registry)
    for panel in build_panels(resources):
        panels.mount(panel)
    token = spawn_token(world)
    operator = TransferOperator(world, event_bus, registry=registry)
    return Stage(world, event_bus, layout, registry, panels, operator, token)


def live_cell(handle: PanelHandle, row: int, column: str) -> Callable[[], Optional[Rect]]:
    """Resolver that looks the cell up again through the panel's current index."""

    def resolve() -> Optional[Rect]:
        cell = handle.get_cell(row, column)
        if cell is None:
            raise UnresolvedDestination(f"{handle.name} has no cell ({row}, {column!r})")
        return locate(cell.target)

    return resolve


def visit(stage: Stage, sequencer: StepSink, panel: str, marker: str = 'browser') -> None:
    marker_entity = stage.panels.entity(marker)
    stage.operator.enqueue_visit(
        sequencer,
        marker_entity,
        stage.registry.get(marker),
        partial(stage.registry.locate, panel),
    )


def extract_domains(
    stage: Stage,
    sequencer: StepSink,
    source: str = 'webpage',
    destination: str = 'browser',
    column: str = 'domain',
    duration: float = DEFAULT_TRANSFER_DURATION,
) -> list[Transfer]:
    """Carry every ``column`` cell of ``source`` into new rows of ``destination``."""
    panels = stage.panels
    slot = panels.append_slot_target(destination, column)
    transfers = []
    for cell in panels.handle(source).get_cells(column):
        append, undo = _appender(panels, destination, {column: cell.content})
        transfers.append(stage.operator.enqueue(sequencer, stage.token, TransferSpec(
            from_target=cell.target,
            to_target_resolver=partial(locate, slot),
            content=cell.content,
            duration=duration,
            on_complete=append,
            on_reverse_complete=undo,
            label=f"extract {cell.content}",
        )))
    return transfers


def _appender(panels: PanelSystem, destination: str, values: dict) -> tuple[Callable[[], None], Callable[[], None]]:
    """Append / undo pair; the undo only pops a row its append added."""
    appended: list[int] = []

    def append() -> None:
        appended.append(panels.append_row(destination, values))

    def undo() -> None:
        if appended:
            appended.pop()
            panels.pop_row(destination)

    return append, undo


def translate_domains(
    stage: Stage,
    sequencer: StepSink,
    dns: str = 'dns',
    browser: str = 'browser',
    duration: float = DEFAULT_TRANSFER_DURATION,
) -> None:
    """Fill the browser's IP column from DNS.

    The browser rows only exist once the extraction has played, so the pairs
    are built when this point of the timeline is reached.
    """

    def build(buffer: StepBuffer) -> None:
        dns_handle = stage.panels.handle(dns)
        browser_handle = stage.panels.handle(browser)
        by_domain = {}
        for r, row in enumerate(dns_handle.get_data()):
            cell = dns_handle.get_cell(r, 'ip')
            if cell is not None:
                by_domain.setdefault(row.get('domain'), cell)
        sources, rows = [], []
        for r, row in enumerate(browser_handle.get_data()):
            cell = by_domain.get(row.get('domain'))
            if cell is not None:
                sources.append(cell)
                rows.append(r)
        for source, row in build_pairs(sources, rows):
            _enqueue_ip(stage, buffer, browser_handle, source.target, source.content, row, duration)

    sequencer.add(DeferredStep(build, label="translate domains"))


def _enqueue_ip(stage, buffer, browser_handle, source_target, ip, row, duration) -> Transfer:
    panels = stage.panels
    name = browser_handle.name
    previous: dict[str, str] = {}

    def write() -> None:
        previous['ip'] = panels.set_value(name, row, 'ip', ip)

    def restore() -> None:
        if 'ip' in previous:
            panels.set_value(name, row, 'ip', previous.pop('ip'))

    return stage.operator.enqueue(buffer, stage.token, TransferSpec(
        from_target=source_target,
        to_target_resolver=live_cell(browser_handle, row, 'ip'),
        content=ip,
        duration=duration,
        on_complete=write,
        on_reverse_complete=restore,
        overrides={'color': HIGHLIGHT_COLOR},
        label=f"resolve {ip}",
    ))


def build_lookup_scene(stage: Stage, name: str = 'lookup') -> TimelineSequencer:
    sequencer = TimelineSequencer(name)
    visit(stage, sequencer, 'webpage')
    extract_domains(stage, sequencer)
    visit(stage, sequencer, 'dns')
    translate_domains(stage, sequencer)
    visit(stage, sequencer, 'webpage')
    visit(stage, sequencer, 'internet')
    visit(stage, sequencer, 'webpage')
    return sequencer
