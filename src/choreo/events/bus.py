from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False keeps bound methods of systems alive without an extra reference.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SYSTEM & TIMING
# ============================================================================
EVENT_TICK = "tick"                                    # payload: dt=float


# ============================================================================
# PANELS
# ============================================================================
EVENT_PANEL_CHANGED = "panel_changed"                  # payload: panel=str, reason=str, row=int|None, generation=int


# ============================================================================
# TRANSFERS
# ============================================================================
EVENT_TRANSFER_START = "transfer_start"                # payload: label=str, content=str
EVENT_TRANSFER_ARRIVED = "transfer_arrived"            # payload: label=str, content=str
EVENT_TRANSFER_REVERSED = "transfer_reversed"          # payload: label=str, content=str
EVENT_TRANSFER_SKIPPED = "transfer_skipped"            # payload: label=str, content=str, reason=str


# ============================================================================
# PLAYBACK
# ============================================================================
EVENT_PLAYBACK_RATE_CHANGED = "playback_rate_changed"  # payload: entity=int, rate=float, previous=float
EVENT_TIMELINE_COMPLETE = "timeline_complete"          # payload: entity=int, name=str
EVENT_TIMELINE_REWOUND = "timeline_rewound"            # payload: entity=int, name=str
EVENT_TIMELINE_KILLED = "timeline_killed"              # payload: entity=int, name=str
