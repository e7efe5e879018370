"""
Workspace consistency validator.

Runs every check over a workspace and returns one result holding all issues:
load issues, schema and signature checks per document, duplicate ids,
per-ticket rules, history replay and workspace-wide rules. Nothing short
circuits; one broken ticket never hides findings on another.
"""

import logging
from typing import Any, Optional

from houston.lib.config import WorkspaceConfig, bundled_schema_dir
from houston.lib.constants import (
    DEFAULT_HISTORY_TOLERANCE_SECONDS,
    DEFAULT_MAX_HISTORY_BYTES,
    DEFAULT_SIGNATURE_PREFIX,
)
from houston.lib.schemas import SchemaRegistry, get_registry
from houston.lib.signature import has_valid_signature
from houston.workspace.aggregate import AGGREGATE_RULES
from houston.workspace.context import ValidationContext, build_validation_context
from houston.workspace.history import validate_history
from houston.workspace.inventory import (
    collect_workspace_inventory,
    is_scope_file,
    is_sprint_file,
    is_ticket_file,
)
from houston.workspace.models import (
    ValidationIssue,
    WorkspaceDocument,
    WorkspaceInventory,
    WorkspaceValidationResult,
)
from houston.workspace.rules import TICKET_RULES

logger = logging.getLogger(__name__)

INVENTORY_RULE = {"parse": "parse", "schema": "schema"}


def infer_schema_key(relative_path: str, data: Any) -> Optional[str]:
    """Schema key for a workspace document, or None if it has no schema."""
    if is_ticket_file(relative_path):
        ticket_type = data.get("type") if isinstance(data, dict) else None
        if isinstance(ticket_type, str) and ticket_type:
            return f"ticket.{ticket_type}"
        return "ticket.base"
    if is_sprint_file(relative_path):
        return "sprint"
    if is_scope_file(relative_path):
        return "sprint.scope"
    if relative_path.startswith("backlog/"):
        return "backlog"
    if relative_path == "repos/repos.yaml":
        return "repos"
    if relative_path == "repos/component-routing.yaml":
        return "component-routing"
    if relative_path == "transitions.yaml":
        return "transitions"
    return None


def validate_document(
    document: WorkspaceDocument,
    registry: SchemaRegistry,
    signature_prefix: str = DEFAULT_SIGNATURE_PREFIX,
) -> list[ValidationIssue]:
    """Schema and signature checks for one parsed document."""
    errors = []
    schema_key = infer_schema_key(document.relative_path, document.data)
    if schema_key and not registry.has(schema_key):
        errors.append(ValidationIssue(
            document.relative_path, "schema", f"No schema registered for {schema_key}"
        ))
    elif schema_key:
        for error in registry.validate(schema_key, document.data).errors:
            errors.append(ValidationIssue(
                document.relative_path,
                "schema",
                f"{error.path} {error.message}".strip(),
                details=error.params,
            ))

    data = document.data
    if isinstance(data, dict) and "generated_by" in data and not has_valid_signature(data, signature_prefix):
        errors.append(ValidationIssue(
            document.relative_path, "signature", f"generated_by must start with {signature_prefix}"
        ))
    return errors


def run_rules(context: ValidationContext) -> list[ValidationIssue]:
    """Per-ticket rules, history replay, then workspace-wide rules."""
    errors = []
    for ticket in context.tickets:
        for rule in TICKET_RULES:
            errors.extend(rule(ticket, context))
        errors.extend(validate_history(ticket, context))

    for rule in AGGREGATE_RULES:
        errors.extend(rule(context))
    return errors


def sort_issues(issues: list[ValidationIssue]) -> list[ValidationIssue]:
    return sorted(issues, key=lambda issue: (issue.file, issue.rule, issue.message))


def validate_inventory(
    inventory: WorkspaceInventory,
    registry: SchemaRegistry,
    signature_prefix: str = DEFAULT_SIGNATURE_PREFIX,
    max_history_bytes: int = DEFAULT_MAX_HISTORY_BYTES,
    history_tolerance_seconds: float = DEFAULT_HISTORY_TOLERANCE_SECONDS,
) -> WorkspaceValidationResult:
    """Validate an already-loaded inventory. Reads only history files."""
    errors: list[ValidationIssue] = []

    for issue in inventory.issues:
        errors.append(ValidationIssue(issue.file, INVENTORY_RULE.get(issue.kind, "io"), issue.message))

    for document in inventory.documents:
        errors.extend(validate_document(document, registry, signature_prefix))

    context, context_errors = build_validation_context(inventory, max_history_bytes, history_tolerance_seconds)
    errors.extend(context_errors)
    errors.extend(run_rules(context))

    return WorkspaceValidationResult(
        checked_files=list(inventory.checked_files),
        errors=sort_issues(errors),
    )


def validate_workspace(config: WorkspaceConfig, target: Optional[str] = None) -> WorkspaceValidationResult:
    """
    Validate a whole workspace, or a single target file within it.

    Raises:
        SchemaRegistryError: if the schema directory cannot be loaded
        InventoryError: if the workspace holds nothing to validate
    """
    registry = get_registry(config.schema_dir, [bundled_schema_dir()])
    inventory = collect_workspace_inventory(config, target)

    result = validate_inventory(
        inventory,
        registry,
        signature_prefix=config.signature_prefix,
        max_history_bytes=config.max_history_bytes,
        history_tolerance_seconds=config.history_tolerance_seconds,
    )
    logger.info(f"[CHECK] {len(result.checked_files)} file(s) checked, {len(result.errors)} issue(s)")
    return result
