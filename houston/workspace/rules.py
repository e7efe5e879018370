"""
Per-ticket validation rules.

Each rule takes one ticket and the context and returns every issue it finds.
Rules never stop at the first problem and never raise for bad data.
"""

from houston.lib.constants import (
    PARENT_TYPE,
    PR_MERGED,
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    STATUS_READY,
)
from houston.lib.dates import parse_date
from houston.workspace.context import ValidationContext
from houston.workspace.models import (
    TicketInfo,
    ValidationIssue,
    get_string,
    get_string_list,
)


def validate_components(ticket: TicketInfo, context: ValidationContext) -> list[ValidationIssue]:
    """Components must be non-empty and known; labels must be known."""
    errors = []
    components = get_string_list(ticket.data, "components")
    if not components:
        errors.append(ValidationIssue(ticket.path, "components", "components list must not be empty"))
    for component in components:
        if component not in context.components:
            errors.append(ValidationIssue(ticket.path, "components", f"Unknown component {component}"))

    for label in get_string_list(ticket.data, "labels"):
        if label not in context.labels:
            errors.append(ValidationIssue(ticket.path, "labels", f"Unknown label {label}"))
    return errors


def validate_people(ticket: TicketInfo, context: ValidationContext) -> list[ValidationIssue]:
    errors = []
    assignee = get_string(ticket.data, "assignee")
    if not assignee:
        errors.append(ValidationIssue(ticket.path, "people", "Missing assignee"))
    elif assignee not in context.users:
        errors.append(ValidationIssue(ticket.path, "people", f"Unknown assignee {assignee}"))

    for approver in get_string_list(ticket.data, "approvers"):
        if approver not in context.users:
            errors.append(ValidationIssue(ticket.path, "people", f"Unknown approver {approver}"))
    return errors


def validate_parent(ticket: TicketInfo, context: ValidationContext) -> list[ValidationIssue]:
    """Subtasks and bugs need a story parent; stories may only sit under an epic."""
    errors = []
    parent_id = ticket.parent_id
    expected = PARENT_TYPE.get(ticket.type)

    if ticket.type in ("subtask", "bug") and not parent_id:
        errors.append(ValidationIssue(
            ticket.path, "parent", f"{ticket.type.capitalize()} requires parent_id referencing a story"
        ))
    if not parent_id:
        return errors

    parent = context.ticket_by_id.get(parent_id)
    if parent is None:
        errors.append(ValidationIssue(ticket.path, "parent", f"Parent ticket {parent_id} not found"))
        return errors

    if expected and parent.type != expected:
        errors.append(ValidationIssue(
            ticket.path,
            "parent",
            f"{ticket.type.capitalize()} parent must be {'an' if expected == 'epic' else 'a'} {expected} "
            f"(got {parent.type})",
            details={"parent_id": parent_id, "expected": expected, "actual": parent.type},
        ))
    return errors


def validate_sprint(ticket: TicketInfo, context: ValidationContext) -> list[ValidationIssue]:
    sprint_id = ticket.sprint_id
    if sprint_id and sprint_id not in context.sprints:
        return [ValidationIssue(ticket.path, "sprint", f"Sprint {sprint_id} not found")]
    return []


def validate_due_dates(ticket: TicketInfo, context: ValidationContext) -> list[ValidationIssue]:
    """due_date must parse and fit inside its sprint, parent and epic.

    A comparator that cannot be resolved (no sprint, no parent, no parsable
    date on the other side) is skipped.
    """
    due = get_string(ticket.data, "due_date")
    due_date = parse_date(due)
    if due_date is None:
        return [ValidationIssue(ticket.path, "due-date", "Invalid or missing due_date")]

    errors = []

    sprint = context.sprints.get(ticket.sprint_id) if ticket.sprint_id else None
    if sprint is not None:
        sprint_end = parse_date(sprint.end_date)
        if sprint_end and due_date > sprint_end:
            errors.append(ValidationIssue(
                ticket.path, "due-date", f"due_date {due} exceeds sprint end {sprint.end_date}"
            ))

    parent = context.ticket_by_id.get(ticket.parent_id) if ticket.parent_id else None
    if parent is not None:
        parent_due_raw = get_string(parent.data, "due_date")
        parent_due = parse_date(parent_due_raw)
        if parent_due and due_date > parent_due:
            errors.append(ValidationIssue(
                ticket.path,
                "due-date",
                f"due_date {due} exceeds parent {parent.id} due date {parent_due_raw}",
            ))

    # Stories carry a separate epic bound on top of the parent bound
    if ticket.type == "story" and parent is not None and parent.type == "epic":
        epic_due_raw = get_string(parent.data, "due_date")
        epic_due = parse_date(epic_due_raw)
        if epic_due and due_date > epic_due:
            errors.append(ValidationIssue(
                ticket.path,
                "due-date",
                f"Story due_date {due} exceeds epic {parent.id} due date {epic_due_raw}",
            ))
    return errors


def validate_code_repos(ticket: TicketInfo, context: ValidationContext) -> list[ValidationIssue]:
    """Linked repos must be registered and carry branches; Done needs merged PRs."""
    errors = []
    code = ticket.code
    raw_repos = code.get("repos")
    repos = [entry for entry in raw_repos if isinstance(entry, dict)] if isinstance(raw_repos, list) else []
    branch_count = sum(1 for entry in repos if get_string(entry, "branch"))
    auto_create = code.get("auto_create_branch") is not False
    status = ticket.status

    if auto_create and status in (STATUS_READY, STATUS_IN_PROGRESS) and branch_count == 0:
        errors.append(ValidationIssue(
            ticket.path, "code", f"Status {status} requires at least one branch entry"
        ))

    if ticket.type in ("subtask", "bug") and status == STATUS_IN_PROGRESS and branch_count == 0:
        errors.append(ValidationIssue(
            ticket.path, "code", f"{ticket.type} in {STATUS_IN_PROGRESS} must have at least one branch"
        ))

    for entry in repos:
        repo_id = get_string(entry, "repo_id")
        if not repo_id:
            errors.append(ValidationIssue(ticket.path, "code", "Linked code entry missing repo_id"))
            continue
        if repo_id not in context.repo_ids:
            errors.append(ValidationIssue(ticket.path, "code", f"Unknown repo reference {repo_id}"))
        if not get_string(entry, "branch"):
            errors.append(ValidationIssue(ticket.path, "code", f"Repo {repo_id} missing branch name"))

        pr = entry.get("pr")
        if status == STATUS_DONE and isinstance(pr, dict):
            state = get_string(pr, "state")
            if state and state != PR_MERGED:
                errors.append(ValidationIssue(
                    ticket.path,
                    "code",
                    f"Ticket Done requires merged PR for repo {repo_id}",
                    details={"pr_state": state},
                ))
    return errors


TICKET_RULES = (
    validate_components,
    validate_people,
    validate_parent,
    validate_sprint,
    validate_due_dates,
    validate_code_repos,
)
