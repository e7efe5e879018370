"""
Validation context: id-keyed indices over a loaded inventory.

Rules never walk the inventory lists to resolve a reference; they look ids up
here. Parent/child relations are plain id -> [TicketInfo] maps, so nothing
holds a back-pointer to anything else.
"""

from dataclasses import dataclass, field

from houston.lib.constants import BACKLOG_PATH, ID_PREFIX, NEXT_SPRINT_PATH
from houston.workflow.fsm import TransitionGraph
from houston.workspace.models import (
    BacklogInfo,
    NextSprintInfo,
    SprintInfo,
    SprintScopeInfo,
    TicketInfo,
    ValidationIssue,
    WorkspaceInventory,
)


@dataclass
class ValidationContext:
    tickets: list[TicketInfo]
    ticket_by_id: dict[str, TicketInfo]
    components: set[str]
    labels: set[str]
    users: set[str]
    sprints: dict[str, SprintInfo]
    sprint_scopes: dict[str, SprintScopeInfo]
    backlog: BacklogInfo
    next_sprint: NextSprintInfo
    transitions: TransitionGraph
    repo_ids: set[str]
    children_by_parent: dict[str, list[TicketInfo]] = field(default_factory=dict)
    bugs_by_parent: dict[str, list[TicketInfo]] = field(default_factory=dict)
    max_history_bytes: int = 0
    history_tolerance_seconds: float = 1.0


def build_validation_context(
    inventory: WorkspaceInventory,
    max_history_bytes: int,
    history_tolerance_seconds: float,
) -> tuple[ValidationContext, list[ValidationIssue]]:
    """Index the inventory. Returns the context and any duplicate/id issues."""
    errors: list[ValidationIssue] = []

    ticket_by_id: dict[str, TicketInfo] = {}
    for ticket in inventory.tickets:
        if ticket.id in ticket_by_id:
            errors.append(ValidationIssue(ticket.path, "ticket", f"Duplicate ticket id {ticket.id}"))
        else:
            ticket_by_id[ticket.id] = ticket

        prefix = ID_PREFIX.get(ticket.type)
        if prefix is None:
            raise ValueError(f"Unknown ticket type {ticket.type!r} for {ticket.id}")
        if not ticket.id.startswith(f"{prefix}-"):
            errors.append(ValidationIssue(
                ticket.path,
                "ticket",
                f"Ticket id {ticket.id} does not match expected prefix {prefix} for type {ticket.type}",
            ))

    children_by_parent: dict[str, list[TicketInfo]] = {}
    bugs_by_parent: dict[str, list[TicketInfo]] = {}
    for ticket in inventory.tickets:
        parent_id = ticket.parent_id
        if parent_id:
            target = bugs_by_parent if ticket.type == "bug" else children_by_parent
            target.setdefault(parent_id, []).append(ticket)

    context = ValidationContext(
        tickets=list(inventory.tickets),
        ticket_by_id=ticket_by_id,
        components=set(inventory.components),
        labels=set(inventory.labels),
        users=set(inventory.users),
        sprints={sprint.id: sprint for sprint in inventory.sprints},
        sprint_scopes={scope.id: scope for scope in inventory.sprint_scopes},
        backlog=inventory.backlog or BacklogInfo(ordered=[], path=BACKLOG_PATH),
        next_sprint=inventory.next_sprint or NextSprintInfo(candidates=[], path=NEXT_SPRINT_PATH),
        transitions=TransitionGraph.from_map(inventory.transitions),
        repo_ids={repo.id for repo in inventory.repos},
        children_by_parent=children_by_parent,
        bugs_by_parent=bugs_by_parent,
        max_history_bytes=max_history_bytes,
        history_tolerance_seconds=history_tolerance_seconds,
    )
    return context, errors
