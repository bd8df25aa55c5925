from choreo.events.bus import EVENT_PANEL_CHANGED, EventBus


def test_event_bus_emit_subscribe():
    bus = EventBus()
    received = {}

    def handler(sender, **kwargs):
        received.update(kwargs)

    bus.subscribe(EVENT_PANEL_CHANGED, handler)
    bus.emit(EVENT_PANEL_CHANGED, panel="browser", reason="append", row=0, generation=2)

    assert received == {"panel": "browser", "reason": "append", "row": 0, "generation": 2}


def test_event_bus_unsubscribe_and_unknown_event():
    bus = EventBus()
    calls = []

    def handler(sender, **kwargs):
        calls.append(kwargs)

    bus.emit("nobody_listens", value=1)
    bus.subscribe("test", handler)
    bus.unsubscribe("test", handler)
    bus.emit("test", value=2)

    assert calls == []
