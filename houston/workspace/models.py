"""
Data models for workspace validation.

Records are thin wrappers over the parsed YAML mappings: the validator reads
fields defensively through the accessors below rather than trusting shapes.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional


def get_string(source: Any, key: str) -> Optional[str]:
    """Non-blank string value of source[key], else None."""
    if not isinstance(source, dict):
        return None
    value = source.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


def get_string_list(source: Any, key: str) -> list[str]:
    """Non-blank string entries of the list at source[key]."""
    if not isinstance(source, dict):
        return []
    value = source.get(key)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()]


@dataclass
class TicketInfo:
    """A work item record plus where its history lives."""
    id: str                    # EPIC-..., ST-..., SB-..., BG-...
    type: str                  # epic, story, subtask, bug
    path: str                  # Workspace-relative ticket.yaml
    history_path: Path
    history_relative: str
    data: dict = field(default_factory=dict)

    @property
    def status(self) -> Optional[str]:
        return get_string(self.data, "status")

    @property
    def parent_id(self) -> Optional[str]:
        return get_string(self.data, "parent_id")

    @property
    def sprint_id(self) -> Optional[str]:
        return get_string(self.data, "sprint_id")

    @property
    def code(self) -> dict:
        code = self.data.get("code")
        return code if isinstance(code, dict) else {}


@dataclass
class SprintInfo:
    id: str
    path: str
    data: dict = field(default_factory=dict)

    @property
    def end_date(self) -> Optional[str]:
        return get_string(self.data, "end_date")


@dataclass
class SprintScopeInfo:
    id: str  # Sprint directory name
    path: str
    data: dict = field(default_factory=dict)


@dataclass
class BacklogInfo:
    ordered: list[str]
    path: str


@dataclass
class NextSprintInfo:
    candidates: list[str]
    path: str


@dataclass
class RepoConfig:
    id: str
    provider: str = "local"
    remote: Optional[str] = None
    default_branch: str = "main"


@dataclass
class WorkspaceDocument:
    relative_path: str
    data: Any


@dataclass
class InventoryIssue:
    file: str
    kind: str  # missing, io, parse, schema
    message: str


@dataclass
class WorkspaceInventory:
    """Everything the validator needs, already loaded from disk."""
    documents: list[WorkspaceDocument] = field(default_factory=list)
    tickets: list[TicketInfo] = field(default_factory=list)
    sprints: list[SprintInfo] = field(default_factory=list)
    sprint_scopes: list[SprintScopeInfo] = field(default_factory=list)
    backlog: Optional[BacklogInfo] = None
    next_sprint: Optional[NextSprintInfo] = None
    components: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    users: list[str] = field(default_factory=list)
    transitions: dict = field(default_factory=dict)
    repos: list[RepoConfig] = field(default_factory=list)
    checked_files: list[str] = field(default_factory=list)
    issues: list[InventoryIssue] = field(default_factory=list)


@dataclass
class ValidationIssue:
    """A single finding. Never raised, always collected."""
    file: str
    rule: str
    message: str
    details: Any = None

    def to_dict(self) -> dict:
        result = {"file": self.file, "rule": self.rule, "message": self.message}
        if self.details is not None:
            result["details"] = self.details
        return result


@dataclass
class WorkspaceValidationResult:
    checked_files: list[str] = field(default_factory=list)
    errors: list[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "checkedFiles": list(self.checked_files),
            "errors": [issue.to_dict() for issue in self.errors],
        }
