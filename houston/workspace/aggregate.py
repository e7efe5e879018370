"""Workspace-wide rules that look across tickets, scopes and the backlog."""

from houston.lib.constants import SCOPE_KEYS, STATUS_CANCELED, STATUS_DONE
from houston.workspace.context import ValidationContext
from houston.workspace.models import SprintScopeInfo, ValidationIssue, get_string_list


def validate_story_completion(context: ValidationContext) -> list[ValidationIssue]:
    """A Done story may not have open subtasks or unresolved bugs."""
    errors = []
    for ticket in context.tickets:
        if ticket.type != "story" or ticket.status != STATUS_DONE:
            continue

        for child in context.children_by_parent.get(ticket.id, []):
            if child.type != "subtask":
                continue
            status = child.status
            if status and status != STATUS_DONE:
                errors.append(ValidationIssue(
                    ticket.path, "completion", f"Story cannot be Done while subtask {child.id} is {status}"
                ))

        for bug in context.bugs_by_parent.get(ticket.id, []):
            status = bug.status
            if status and status not in (STATUS_DONE, STATUS_CANCELED):
                errors.append(ValidationIssue(
                    ticket.path, "completion", f"Story cannot be Done while bug {bug.id} is {status}"
                ))
    return errors


def validate_scope_list(scope: SprintScopeInfo, key: str, expected_type: str, context: ValidationContext) -> list[ValidationIssue]:
    errors = []
    for ticket_id in get_string_list(scope.data, key):
        ticket = context.ticket_by_id.get(ticket_id)
        if ticket is None:
            errors.append(ValidationIssue(scope.path, "scope", f"{key} references unknown ticket {ticket_id}"))
        elif ticket.type != expected_type:
            errors.append(ValidationIssue(
                scope.path, "scope", f"{key} expects {expected_type} but {ticket_id} is {ticket.type}"
            ))
    return errors


def validate_scopes(context: ValidationContext) -> list[ValidationIssue]:
    errors = []
    for scope in context.sprint_scopes.values():
        for key, expected_type in SCOPE_KEYS:
            errors.extend(validate_scope_list(scope, key, expected_type, context))
    return errors


def validate_backlog(context: ValidationContext) -> list[ValidationIssue]:
    errors = []
    for ticket_id in context.backlog.ordered:
        if ticket_id not in context.ticket_by_id:
            errors.append(ValidationIssue(
                context.backlog.path, "backlog", f"Backlog references unknown ticket {ticket_id}"
            ))
    for ticket_id in context.next_sprint.candidates:
        if ticket_id not in context.ticket_by_id:
            errors.append(ValidationIssue(
                context.next_sprint.path, "backlog", f"Next sprint candidates reference unknown ticket {ticket_id}"
            ))
    return errors


AGGREGATE_RULES = (
    validate_story_completion,
    validate_scopes,
    validate_backlog,
)
