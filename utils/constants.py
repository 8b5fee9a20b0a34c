# utils/constants.py  (single source for duty vocabularies)
from __future__ import annotations

# Duty types
NAKA = "naka"
PATROL = "patrol"
DUTY_TYPES = [NAKA, PATROL]

# Stored status values. "complete" and "completed" are both terminal;
# records written by different console versions use either spelling.
ASSIGNED = "assigned"
ACTIVE = "active"
INCOMPLETE = "incomplete"
COMPLETE = "complete"
COMPLETED = "completed"
MISSED = "missed"
STATUSES = [ASSIGNED, ACTIVE, INCOMPLETE, COMPLETE, COMPLETED, MISSED]
TERMINAL_STATUSES = frozenset({COMPLETE, COMPLETED})

# Value written by the expiry sweep
SWEEP_STATUS = COMPLETED

# Roster placeholders
UNKNOWN_OFFICER = "Unknown Officer"
UNKNOWN = "Unknown"
UNASSIGNED = "Unassigned"
PLACEHOLDER = "-"

# Roster nature-of-work markers that make an officer unavailable
UNAVAILABLE_MARKERS = ("absent", "leave")
VEHICLE_AVAILABLE = "available"

# Map styling per duty type
TYPE_COLORS = {
    NAKA: "#22c55e",
    PATROL: "#3b82f6",
}
PREVIEW_COLORS = {
    NAKA: "#16a34a",
    PATROL: "#2563eb",
}
TYPE_ICONS = {
    NAKA: "🛑",
    PATROL: "🚶",
}
DEFAULT_COLOR = "#6b7280"

# Status badge colours for popups
STATUS_COLORS = {
    COMPLETE: "#22c55e",
    COMPLETED: "#22c55e",
    INCOMPLETE: "#ef4444",
}
STATUS_DEFAULT_COLOR = "#f59e0b"

# pydeck RGBA fills
TYPE_RGBA = {
    NAKA: [34, 197, 94, 60],
    PATROL: [59, 130, 246, 60],
}
DEFAULT_RGBA = [107, 114, 128, 60]
