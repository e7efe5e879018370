"""
Workspace inventory loader.

Walks the tracking root and parses every tracked YAML document:

  tickets/<TYPE>/<id>/ticket.yaml      work items (history.ndjson alongside)
  sprints/<id>/sprint.yaml, scope.yaml sprint metadata and scope lists
  backlog/backlog.yaml                 ordered backlog
  backlog/next-sprint-candidates.yaml  next sprint candidates
  repos/repos.yaml                     repo registry
  taxonomies/components.yaml, labels.yaml
  people/users.yaml
  transitions.yaml

Unreadable or unparseable files become InventoryIssues; only a missing
tracking root or an empty workspace is fatal.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from houston.lib.config import WorkspaceConfig
from houston.lib.constants import (
    BACKLOG_PATH,
    HISTORY_FILENAME,
    NEXT_SPRINT_PATH,
    TICKET_TYPES,
)
from houston.lib.yamlio import read_yaml_file
from houston.workspace.models import (
    BacklogInfo,
    InventoryIssue,
    NextSprintInfo,
    RepoConfig,
    SprintInfo,
    SprintScopeInfo,
    TicketInfo,
    WorkspaceDocument,
    WorkspaceInventory,
    get_string,
    get_string_list,
)

logger = logging.getLogger(__name__)

WORKSPACE_PATTERNS = (
    "tickets/**/ticket.yaml",
    "sprints/**/sprint.yaml",
    "sprints/**/scope.yaml",
    "backlog/*.yaml",
    "repos/*.yaml",
    "taxonomies/*.yaml",
    "people/users.yaml",
    "transitions.yaml",
)

COMPONENTS_PATH = "taxonomies/components.yaml"
LABELS_PATH = "taxonomies/labels.yaml"
USERS_PATH = "people/users.yaml"
TRANSITIONS_PATH = "transitions.yaml"
REPOS_PATH = "repos/repos.yaml"


class InventoryError(Exception):
    """The workspace cannot be inventoried at all."""


def is_ticket_file(relative: str) -> bool:
    return relative.startswith("tickets/") and relative.endswith("ticket.yaml")


def is_sprint_file(relative: str) -> bool:
    return relative.startswith("sprints/") and relative.endswith("sprint.yaml")


def is_scope_file(relative: str) -> bool:
    return relative.startswith("sprints/") and relative.endswith("scope.yaml")


def _relative(path: Path, base: Path) -> str:
    try:
        return path.resolve().relative_to(base.resolve()).as_posix()
    except ValueError:
        return path.name


def resolve_workspace_files(config: WorkspaceConfig, target: Optional[str] = None) -> list[tuple[Path, str]]:
    """Return (absolute, relative) pairs for the files to check, sorted."""
    base = config.tracking_root

    if target:
        absolute = (config.workspace_root / target).resolve()
        return [(absolute, _relative(absolute, base))]

    matches: set[Path] = set()
    for pattern in WORKSPACE_PATTERNS:
        for path in base.glob(pattern):
            if path.is_file():
                matches.add(path.resolve())

    return [(path, _relative(path, base)) for path in sorted(matches)]


def _read_mapping_file(base: Path, relative: str, issues: list[InventoryIssue]) -> Optional[dict]:
    """Read a supporting YAML file, recording missing/parse issues."""
    path = base / relative
    if not path.exists():
        issues.append(InventoryIssue(relative, "missing", "File does not exist"))
        return None
    try:
        document = read_yaml_file(path)
    except (yaml.YAMLError, OSError, UnicodeDecodeError) as e:
        issues.append(InventoryIssue(relative, "parse", str(e)))
        return None
    return document if isinstance(document, dict) else {}


def read_string_list_file(base: Path, relative: str, key: str, issues: list[InventoryIssue]) -> list[str]:
    document = _read_mapping_file(base, relative, issues)
    if document is None:
        return []
    raw = document.get(key)
    return [item for item in raw if isinstance(item, str)] if isinstance(raw, list) else []


def read_users_file(base: Path, issues: list[InventoryIssue]) -> list[str]:
    document = _read_mapping_file(base, USERS_PATH, issues)
    if document is None:
        return []
    raw = document.get("users")
    if not isinstance(raw, list):
        return []
    return [entry["id"] for entry in raw if isinstance(entry, dict) and isinstance(entry.get("id"), str)]


def read_transitions_file(base: Path, issues: list[InventoryIssue]) -> dict:
    document = _read_mapping_file(base, TRANSITIONS_PATH, issues)
    if document is None:
        return {}
    allowed = document.get("allowed")
    if isinstance(allowed, dict):
        return allowed
    issues.append(InventoryIssue(TRANSITIONS_PATH, "schema", 'Missing "allowed" transitions map'))
    return {}


def read_repos_file(base: Path, issues: list[InventoryIssue]) -> list[RepoConfig]:
    path = base / REPOS_PATH
    if not path.exists():
        issues.append(InventoryIssue(REPOS_PATH, "io", f"Repos file not found at {path}"))
        return []
    try:
        document = read_yaml_file(path)
    except (yaml.YAMLError, OSError, UnicodeDecodeError) as e:
        issues.append(InventoryIssue(REPOS_PATH, "io", str(e)))
        return []

    repos = []
    raw = document.get("repos") if isinstance(document, dict) else None
    for entry in raw if isinstance(raw, list) else []:
        repo_id = get_string(entry, "id")
        if not repo_id:
            continue
        repos.append(RepoConfig(
            id=repo_id,
            provider=get_string(entry, "provider") or "local",
            remote=get_string(entry, "remote"),
            default_branch=get_string(entry, "default_branch") or "main",
        ))
    return repos


def _classify(inventory: WorkspaceInventory, config: WorkspaceConfig, absolute: Path, relative: str, document: Any) -> None:
    """Index a parsed document by where it lives."""
    data = document if isinstance(document, dict) else {}

    if is_ticket_file(relative):
        ticket_id = data.get("id")
        ticket_type = data.get("type")
        if not isinstance(ticket_id, str) or ticket_type not in TICKET_TYPES:
            logger.debug(f"[INVENTORY] {relative}: no usable id/type, schema check only")
            return
        history_path = absolute.parent / HISTORY_FILENAME
        inventory.tickets.append(TicketInfo(
            id=ticket_id,
            type=ticket_type,
            path=relative,
            history_path=history_path,
            history_relative=_relative(history_path, config.tracking_root),
            data=data,
        ))
    elif is_sprint_file(relative):
        sprint_id = data.get("id") if isinstance(data.get("id"), str) else absolute.parent.name
        inventory.sprints.append(SprintInfo(id=sprint_id, path=relative, data=data))
    elif is_scope_file(relative):
        inventory.sprint_scopes.append(SprintScopeInfo(id=absolute.parent.name, path=relative, data=data))
    elif relative == BACKLOG_PATH:
        inventory.backlog = BacklogInfo(ordered=get_string_list(data, "ordered"), path=relative)
    elif relative == NEXT_SPRINT_PATH:
        inventory.next_sprint = NextSprintInfo(candidates=get_string_list(data, "candidates"), path=relative)


def collect_workspace_inventory(config: WorkspaceConfig, target: Optional[str] = None) -> WorkspaceInventory:
    """
    Load every tracked document in the workspace.

    Args:
        config: Resolved workspace configuration
        target: Optional single file (relative to the workspace root) to check

    Returns:
        WorkspaceInventory with documents, typed records and load issues

    Raises:
        InventoryError: if the tracking root is missing or holds no documents
    """
    base = config.tracking_root
    if not base.is_dir():
        raise InventoryError(f"Tracking root not found: {base}")

    files = resolve_workspace_files(config, target)
    if not files:
        raise InventoryError(f"No workspace documents found under {base}")

    inventory = WorkspaceInventory(checked_files=[relative for _, relative in files])

    for absolute, relative in files:
        if not absolute.exists():
            inventory.issues.append(InventoryIssue(relative, "missing", "File does not exist"))
            continue
        if absolute.suffix.lower() not in (".yaml", ".yml"):
            continue

        try:
            document = read_yaml_file(absolute)
        except (yaml.YAMLError, OSError, UnicodeDecodeError) as e:
            inventory.issues.append(InventoryIssue(relative, "parse", str(e)))
            continue

        inventory.documents.append(WorkspaceDocument(relative_path=relative, data=document))
        _classify(inventory, config, absolute, relative, document)

    inventory.components = read_string_list_file(base, COMPONENTS_PATH, "components", inventory.issues)
    inventory.labels = read_string_list_file(base, LABELS_PATH, "labels", inventory.issues)
    inventory.users = read_users_file(base, inventory.issues)
    inventory.transitions = read_transitions_file(base, inventory.issues)
    inventory.repos = read_repos_file(base, inventory.issues)

    logger.info(
        f"[INVENTORY] {len(inventory.documents)} document(s), {len(inventory.tickets)} ticket(s), "
        f"{len(inventory.sprints)} sprint(s), {len(inventory.issues)} load issue(s)"
    )
    return inventory
