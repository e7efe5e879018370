"""
Workspace module for houston.

Loads a tracking workspace from disk and validates its consistency: schemas,
references between tickets, sprints and the backlog, and each ticket's
history against its declared status.
"""

from houston.workspace.inventory import InventoryError, collect_workspace_inventory
from houston.workspace.models import (
    TicketInfo,
    ValidationIssue,
    WorkspaceInventory,
    WorkspaceValidationResult,
)
from houston.workspace.validator import (
    infer_schema_key,
    validate_inventory,
    validate_workspace,
)

__all__ = [
    "InventoryError",
    "collect_workspace_inventory",
    "TicketInfo",
    "ValidationIssue",
    "WorkspaceInventory",
    "WorkspaceValidationResult",
    "infer_schema_key",
    "validate_inventory",
    "validate_workspace",
]
