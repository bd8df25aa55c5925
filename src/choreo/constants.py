"""Tunable values shared by the choreography engine and the demo window."""

# ============================================================================
# WINDOW
# ============================================================================
WINDOW_WIDTH = 1200
WINDOW_HEIGHT = 720
WINDOW_TITLE = "Dataflow"

# ============================================================================
# TIMING
# ============================================================================
# Fallback frame delta when a tick arrives without ``dt``.
DEFAULT_TICK = 1 / 60
# Nominal duration of a single token transfer (seconds at rate 1.0).
DEFAULT_TRANSFER_DURATION = 0.5
# Nominal duration of the browser marker sliding under a panel.
VISIT_DURATION = 2.0
# Completion tolerance when comparing accumulated step time.
TIME_EPSILON = 1e-9
# Held ticks before an unresolved destination settles in place. None waits forever.
MAX_UNRESOLVED_TICKS: int | None = None

# ============================================================================
# PLAYBACK RATE (speed slider)
# ============================================================================
RATE_MIN = -3.0
RATE_MAX = 3.0
RATE_STEP = 0.1

# ============================================================================
# SNAPSHOTS
# ============================================================================
# Raise SnapshotMisuse on unmatched dispose(); when False the misuse is only logged.
STRICT_SNAPSHOTS = True

# ============================================================================
# LAYOUT
# ============================================================================
PANEL_MARGIN = 10
TITLE_HEIGHT = 36
HEADER_HEIGHT = 24
ROW_HEIGHT = 24
PANEL_PADDING = 8
# Panels without a flex ratio float below the flex row (the browser).
FLOATING_PANEL_WIDTH = 320
FLOATING_GAP = 24
TOKEN_WIDTH = 120
TOKEN_HEIGHT = ROW_HEIGHT

# ============================================================================
# COLOURS
# ============================================================================
PANEL_OUTLINE_COLOR = (204, 204, 204)
FLOATING_OUTLINE_COLOR = (255, 0, 0)
TEXT_COLOR = (230, 230, 230)
HEADER_TEXT_COLOR = (160, 160, 160)
TOKEN_COLOR = (250, 220, 90)
TOKEN_TEXT_COLOR = (20, 20, 20)
HIGHLIGHT_COLOR = (120, 200, 250)
