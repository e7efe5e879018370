"""Shared constants for houston."""

TICKET_TYPES = ("epic", "story", "subtask", "bug")

# Ticket id prefix per type, e.g. ST-01HX...
ID_PREFIX = {
    "epic": "EPIC",
    "story": "ST",
    "subtask": "SB",
    "bug": "BG",
}

# Expected parent type for each child type
PARENT_TYPE = {
    "story": "epic",
    "subtask": "story",
    "bug": "story",
}

# Sprint scope list key -> ticket type it may hold
SCOPE_KEYS = (
    ("epics", "epic"),
    ("stories", "story"),
    ("subtasks", "subtask"),
    ("bugs", "bug"),
)

STATUS_READY = "Ready"
STATUS_IN_PROGRESS = "In Progress"
STATUS_DONE = "Done"
STATUS_CANCELED = "Canceled"

PR_MERGED = "merged"

BACKLOG_PATH = "backlog/backlog.yaml"
NEXT_SPRINT_PATH = "backlog/next-sprint-candidates.yaml"
HISTORY_FILENAME = "history.ndjson"

DEFAULT_SIGNATURE_PREFIX = "houston@"
DEFAULT_MAX_HISTORY_BYTES = 5 * 1024 * 1024
DEFAULT_HISTORY_TOLERANCE_SECONDS = 1.0
