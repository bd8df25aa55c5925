import logging
from functools import partial

import pytest

from choreo.components.rect import Rect
from choreo.components.token import Token
from choreo.components.transfer import Transfer, TransferSpec, TransferState
from choreo.constants import HIGHLIGHT_COLOR, TOKEN_COLOR
from choreo.events.bus import (
    EVENT_TRANSFER_ARRIVED, EVENT_TRANSFER_REVERSED, EVENT_TRANSFER_SKIPPED,
    EVENT_TRANSFER_START, EventBus,
)
from choreo.rendering.position_registry import locate
from choreo.systems.transfer import TransferOperator, schedule_transfer
from choreo.timeline.sequencer import TimelineSequencer
from choreo.utils.properties import get_properties, get_property, set_properties
from choreo.world import create_world, spawn_token
from tests.helpers import MovableTarget


def _setup():
    bus = EventBus()
    world = create_world()
    token = spawn_token(world)
    return bus, world, token, TransferOperator(world, bus), TimelineSequencer()


def _spec(src, dst, **kw):
    kw.setdefault("duration", 1.0)
    kw.setdefault("easing", "linear")
    return TransferSpec(from_target=src.target, to_target_resolver=partial(locate, dst.target), **kw)


def _record(bus, *names):
    seen = []
    for name in names:
        bus.subscribe(name, lambda sender, _name=name, **kw: seen.append((_name, kw.get("label"))))
    return seen


def test_nothing_is_measured_at_enqueue_time():
    _, _, token, operator, seq = _setup()
    src = MovableTarget("src", Rect(20, 30, 50, 20))
    dst = MovableTarget("dst", Rect(100, 30, 50, 20))
    transfer = operator.enqueue(seq, token, _spec(src, dst, content="ads.com"))
    assert src.calls == 0 and dst.calls == 0
    assert transfer.state is TransferState.PENDING
    assert len(seq) == 3


def test_source_measured_when_step_executes():
    _, world, token, operator, seq = _setup()
    src = MovableTarget("src", Rect(20, 30, 50, 20))
    dst = MovableTarget("dst", Rect(100, 30, 50, 20))
    operator.enqueue(seq, token, _spec(src, dst, content="ads.com"))
    # Layout changes between scheduling and execution.
    src.rect = Rect(60, 90, 50, 20)
    seq.advance(0.001)
    props = get_properties(world, token)
    assert props["visible"] is True
    assert props["content"] == "ads.com"
    assert props["x"] == pytest.approx(60, abs=0.1)
    assert props["y"] == pytest.approx(90, abs=0.1)


def test_destination_is_tracked_while_in_flight():
    _, world, token, operator, seq = _setup()
    src = MovableTarget("src", Rect(0, 0, 50, 20))
    dst = MovableTarget("dst", Rect(100, 0, 50, 20))
    operator.enqueue(seq, token, _spec(src, dst))
    seq.advance(0.5)
    assert get_property(world, token, "x") == pytest.approx(50.0)
    dst.rect = Rect(200, 0, 50, 20)
    seq.advance(0.25)
    assert get_property(world, token, "x") == pytest.approx(150.0)


def test_state_machine_and_callbacks():
    bus, world, token, operator, seq = _setup()
    seen = _record(bus, EVENT_TRANSFER_START, EVENT_TRANSFER_ARRIVED, EVENT_TRANSFER_REVERSED)
    calls = []
    src = MovableTarget("src", Rect(0, 0, 50, 20))
    dst = MovableTarget("dst", Rect(100, 0, 50, 20))
    transfer = operator.enqueue(seq, token, _spec(
        src, dst, content="ads.com", label="extract ads.com",
        on_start=lambda: calls.append("start"),
        on_complete=lambda: calls.append("complete"),
        on_reverse_complete=lambda: calls.append("reverse"),
    ))
    seq.advance(0.5)
    assert transfer.state is TransferState.IN_FLIGHT
    seq.advance(1.0)
    assert transfer.state is TransferState.HIDDEN
    assert get_property(world, token, "visible") is False
    assert calls == ["start", "complete"]
    seq.advance(-0.1)
    assert transfer.state is TransferState.IN_FLIGHT
    assert get_property(world, token, "visible") is True
    seq.advance(-1.0)
    assert transfer.state is TransferState.REMOVED
    assert calls == ["start", "complete", "reverse"]
    assert seen == [
        (EVENT_TRANSFER_START, "extract ads.com"),
        (EVENT_TRANSFER_ARRIVED, "extract ads.com"),
        (EVENT_TRANSFER_REVERSED, "extract ads.com"),
    ]


def test_full_reverse_restores_token():
    _, world, token, operator, seq = _setup()
    set_properties(world, token, {"x": 7.0, "y": 3.0})
    before = get_properties(world, token)
    src = MovableTarget("src", Rect(0, 0, 50, 20))
    dst = MovableTarget("dst", Rect(100, 0, 50, 20))
    for content in ("a", "b", "c"):
        operator.enqueue(seq, token, _spec(src, dst, content=content, overrides={"color": HIGHLIGHT_COLOR}))
    seq.advance(10.0)
    assert seq.at_end
    seq.rewind()
    assert get_properties(world, token) == before
    assert world.component_for_entity(token, Token).holder is None


def test_missing_source_is_skipped_and_next_transfer_runs():
    bus, world, token, operator, seq = _setup()
    skipped = _record(bus, EVENT_TRANSFER_SKIPPED)
    calls = []
    gone = MovableTarget("gone", None)
    src = MovableTarget("src", Rect(0, 0, 50, 20))
    dst = MovableTarget("dst", Rect(100, 0, 50, 20))
    first = operator.enqueue(seq, token, _spec(
        gone, dst, label="first",
        on_start=lambda: calls.append("first start"),
        on_complete=lambda: calls.append("first complete"),
    ))
    second = operator.enqueue(seq, token, _spec(src, dst, label="second"))
    seq.advance(0.5)
    assert first.state is TransferState.SKIPPED
    assert second.state is TransferState.IN_FLIGHT
    assert calls == []
    assert skipped == [(EVENT_TRANSFER_SKIPPED, "first")]
    assert get_property(world, token, "x") == pytest.approx(50.0)
    # Reversing over a skipped transfer makes it schedulable again.
    seq.advance(-5.0)
    assert first.state is TransferState.PENDING


def test_unresolved_destination_holds_position():
    _, world, token, operator, seq = _setup()
    src = MovableTarget("src", Rect(20, 0, 50, 20))
    dst = MovableTarget("dst", None)
    transfer = operator.enqueue(seq, token, _spec(src, dst))
    for _ in range(5):
        seq.advance(0.5)
    assert get_property(world, token, "x") == pytest.approx(20.0)
    assert transfer.state is TransferState.IN_FLIGHT
    assert not seq.at_end
    dst.rect = Rect(120, 0, 50, 20)
    seq.advance(0.5)
    assert get_property(world, token, "x") == pytest.approx(70.0)


def test_unresolved_destination_settles_with_budget():
    world = create_world()
    token = spawn_token(world)
    operator = TransferOperator(world, max_unresolved_ticks=3)
    seq = TimelineSequencer()
    src = MovableTarget("src", Rect(20, 0, 50, 20))
    dst = MovableTarget("dst", None)
    transfer = operator.enqueue(seq, token, _spec(src, dst))
    for _ in range(10):
        seq.advance(0.5)
    assert seq.at_end
    assert transfer.state is TransferState.HIDDEN
    assert get_property(world, token, "x") == pytest.approx(20.0)


def test_overrides_are_scoped_to_the_transfer():
    _, world, token, operator, seq = _setup()
    src = MovableTarget("src", Rect(0, 0, 50, 20))
    dst = MovableTarget("dst", Rect(100, 0, 50, 20))
    operator.enqueue(seq, token, _spec(src, dst, overrides={"color": HIGHLIGHT_COLOR}))
    assert len(seq) == 5
    seq.advance(0.5)
    assert get_property(world, token, "color") == HIGHLIGHT_COLOR
    seq.advance(1.0)
    assert get_property(world, token, "color") == TOKEN_COLOR
    seq.advance(-0.5)
    assert get_property(world, token, "color") == HIGHLIGHT_COLOR
    seq.advance(-1.0)
    assert get_property(world, token, "color") == TOKEN_COLOR


def test_kill_mid_flight_restores_overrides():
    _, world, token, operator, seq = _setup()
    src = MovableTarget("src", Rect(0, 0, 50, 20))
    dst = MovableTarget("dst", Rect(100, 0, 50, 20))
    operator.enqueue(seq, token, _spec(src, dst, overrides={"color": HIGHLIGHT_COLOR, "opacity": 0.5}))
    seq.advance(0.5)
    seq.kill()
    assert get_property(world, token, "color") == TOKEN_COLOR
    assert get_property(world, token, "opacity") == 1.0


def test_second_holder_is_reported(caplog):
    _, world, token, operator, seq = _setup()
    src = MovableTarget("src", Rect(0, 0, 50, 20))
    dst = MovableTarget("dst", Rect(100, 0, 50, 20))
    stray = Transfer(spec=_spec(src, dst, label="stray"))
    world.component_for_entity(token, Token).holder = stray
    transfer = operator.enqueue(seq, token, _spec(src, dst, label="main"))
    with caplog.at_level(logging.WARNING, logger="choreo.systems.transfer"):
        seq.advance(0.1)
    assert "still held" in caplog.text
    assert world.component_for_entity(token, Token).holder is transfer


def test_schedule_transfer_wrapper():
    world = create_world()
    token = spawn_token(world)
    seq = TimelineSequencer()
    src = MovableTarget("src", Rect(0, 0, 50, 20))
    dst = MovableTarget("dst", Rect(100, 0, 50, 20))
    transfer = schedule_transfer(seq, world, token, _spec(src, dst))
    seq.advance(5.0)
    assert transfer.state is TransferState.HIDDEN
    assert get_property(world, token, "x") == pytest.approx(100.0)


def test_visit_centres_marker_under_destination():
    world = create_world()
    operator = TransferOperator(world)
    seq = TimelineSequencer()
    marker = world.create_entity()
    set_properties(world, marker, {"x": 10.0})
    marker_target = MovableTarget("marker", Rect(10, 0, 100, 50))
    operator.enqueue_visit(seq, marker, marker_target.target, lambda: Rect(400, 0, 200, 50), easing="linear")
    seq.advance(1.0)
    assert get_property(world, marker, "x") == pytest.approx(230.0)
    seq.advance(1.0)
    assert get_property(world, marker, "x") == pytest.approx(450.0)


def test_reverse_mid_flight_undoes_on_start_mutation():
    _, world, token, operator, seq = _setup()
    rows = []
    src = MovableTarget("src", Rect(0, 0, 50, 20))
    dst = MovableTarget("dst", Rect(100, 0, 50, 20))
    transfer = operator.enqueue(seq, token, _spec(
        src, dst, content="x",
        on_start=lambda: rows.append("x"),
        on_reverse_complete=rows.pop,
    ))
    seq.advance(0.5)
    assert rows == ["x"]
    seq.advance(-5.0)
    assert rows == []
    assert seq.at_start
    assert transfer.state is TransferState.REMOVED


def test_arrival_callback_fires_once_when_scrubbing():
    _, _, token, operator, seq = _setup()
    arrivals = []
    src = MovableTarget("src", Rect(0, 0, 50, 20))
    dst = MovableTarget("dst", Rect(100, 0, 50, 20))
    operator.enqueue(seq, token, _spec(src, dst, on_complete=lambda: arrivals.append(True)))
    seq.advance(1.5)
    seq.advance(-0.5)
    seq.advance(0.5)
    assert arrivals == [True]
