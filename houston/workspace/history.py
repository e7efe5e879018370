"""
History replay for a single ticket.

The ticket's status is re-derived from history.ndjson alone and compared to
the status declared in ticket.yaml. Replay is one forward pass in file order:

- `create` seeds the tracked status from its `to` (no legality check).
- `status` is checked against the transition graph from the tracked status.
  A declared `from` that disagrees with the tracked status is reported as
  drift, but the tracked status stays the source for the legality check.
- The tracked status always advances to the event's target, legal or not,
  so one bad jump does not cascade into follow-on violations.

Bad lines are reported and skipped; nothing here aborts the replay.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from houston.lib.dates import parse_date
from houston.workspace.context import ValidationContext
from houston.workspace.events import (
    CreateEvent,
    Event,
    HistoryDecodeError,
    HistoryTooLargeError,
    StatusEvent,
    iter_events,
    read_history_lines,
)
from houston.workspace.models import TicketInfo, ValidationIssue, get_string

logger = logging.getLogger(__name__)


@dataclass
class ReplayState:
    """Accumulator threaded through the replay."""
    current: Optional[str] = None
    last_timestamp: Optional[datetime] = None
    seen_event: bool = False
    issues: list[ValidationIssue] = field(default_factory=list)


def apply_event(state: ReplayState, event: Event, ticket: TicketInfo, context: ValidationContext) -> ReplayState:
    """Fold one decoded event into the replay state."""
    file = ticket.history_relative

    if event.timestamp is None:
        state.issues.append(ValidationIssue(
            file, "history", "History event missing valid timestamp", details={"line": event.line}
        ))
    elif state.last_timestamp is None or event.timestamp > state.last_timestamp:
        state.last_timestamp = event.timestamp

    if event.op is None:
        state.issues.append(ValidationIssue(
            file, "history", "History event missing op", details={"line": event.line}
        ))
        return state

    if not state.seen_event and not isinstance(event, CreateEvent):
        state.issues.append(ValidationIssue(
            file, "history", f"First history event must be create (got {event.op})", details={"line": event.line}
        ))
    state.seen_event = True

    if isinstance(event, CreateEvent):
        if event.to_status:
            state.current = event.to_status
        return state

    if not isinstance(event, StatusEvent):
        return state

    if not event.to_status:
        state.issues.append(ValidationIssue(
            file, "history", "Status event missing target status", details={"line": event.line}
        ))
        return state

    declared_from = event.from_status
    if declared_from and state.current and declared_from != state.current:
        state.issues.append(ValidationIssue(
            file,
            "transition",
            f"History from status {declared_from} does not match current status {state.current}",
            details={"line": event.line},
        ))

    source = state.current or declared_from
    if source and not context.transitions.allows(ticket.type, source, event.to_status):
        state.issues.append(ValidationIssue(
            file,
            "transition",
            f"Transition {source} -> {event.to_status} not allowed for {ticket.type}",
            details={"line": event.line, "allowed": context.transitions.allowed_next(ticket.type, source)},
        ))

    state.current = event.to_status
    return state


def replay_history(ticket: TicketInfo, context: ValidationContext) -> tuple[Optional[ReplayState], list[ValidationIssue]]:
    """
    Replay a ticket's history file.

    Returns:
        (state, issues). state is None when the file could not be replayed
        at all (missing, oversized, unreadable or empty).
    """
    file = ticket.history_relative

    if not ticket.history_path.exists():
        return None, [ValidationIssue(file, "history", "Missing history.ndjson")]

    try:
        lines = read_history_lines(ticket.history_path, context.max_history_bytes)
    except HistoryTooLargeError as e:
        logger.warning(f"[REPLAY] {ticket.id}: {e}")
        return None, [ValidationIssue(file, "history", str(e), details={"size": e.size, "limit": e.limit})]
    except OSError as e:
        return None, [ValidationIssue(file, "history", f"Unable to read history: {e}")]

    if not lines:
        return None, [ValidationIssue(file, "history", "History must contain at least one event")]

    state = ReplayState()
    for item in iter_events(lines):
        if isinstance(item, HistoryDecodeError):
            state.issues.append(ValidationIssue(file, "history", str(item), details={"line": item.line}))
            continue
        state = apply_event(state, item, ticket, context)

    logger.debug(f"[REPLAY] {ticket.id}: {len(lines)} event(s), final status {state.current}")
    return state, state.issues


def validate_history(ticket: TicketInfo, context: ValidationContext) -> list[ValidationIssue]:
    """Replay history, then compare the outcome with ticket.yaml."""
    state, errors = replay_history(ticket, context)
    if state is None:
        return errors

    declared = ticket.status
    if state.current and declared and state.current != declared:
        errors.append(ValidationIssue(
            ticket.path,
            "history",
            f"Ticket status {declared} does not match last history status {state.current}",
        ))

    updated_at = parse_date(get_string(ticket.data, "updated_at"))
    if updated_at and state.last_timestamp:
        tolerance = timedelta(seconds=context.history_tolerance_seconds)
        if updated_at > state.last_timestamp + tolerance:
            errors.append(ValidationIssue(
                ticket.history_relative, "history", "History not updated after ticket change"
            ))
        elif updated_at + tolerance < state.last_timestamp:
            errors.append(ValidationIssue(
                ticket.path, "history", "Ticket updated_at predates latest history event"
            ))
    return errors
