"""Shared fixtures: a healthy on-disk workspace and in-memory contexts."""

import json
from pathlib import Path

import pytest
import yaml

from houston.lib.config import build_config
from houston.workspace.context import build_validation_context
from houston.workspace.models import (
    RepoConfig,
    SprintInfo,
    SprintScopeInfo,
    TicketInfo,
    WorkspaceInventory,
)

T0 = "2025-10-01T09:00:00Z"
T1 = "2025-10-02T09:00:00Z"
T2 = "2025-10-03T09:00:00Z"
T3 = "2025-10-04T09:00:00Z"

WORKFLOW = {
    "Backlog": ["Ready", "Canceled"],
    "Ready": ["In Progress", "Backlog"],
    "In Progress": ["In Review", "Blocked"],
    "In Review": ["Done", "In Progress"],
    "Blocked": ["In Progress"],
    "Done": [],
    "Canceled": [],
}

TRANSITIONS = {ticket_type: dict(WORKFLOW) for ticket_type in ("epic", "story", "subtask", "bug")}

TYPE_DIRS = {"epic": "EPIC", "story": "STORY", "subtask": "SUBTASK", "bug": "BUG"}


def event(op, ts=T0, to=None, frm=None, actor="user:alice"):
    """Build a history event mapping."""
    payload = {"ts": ts, "actor": actor, "op": op}
    if frm is not None:
        payload["from"] = frm
    if to is not None:
        payload["to"] = to
    return payload


def ticket_data(ticket_id, ticket_type, **overrides):
    data = {
        "id": ticket_id,
        "type": ticket_type,
        "title": f"{ticket_type} {ticket_id}",
        "status": "Backlog",
        "assignee": "user:alice",
        "approvers": ["user:bob"],
        "components": ["web"],
        "labels": ["frontend"],
        "due_date": "2025-10-10",
        "created_at": T0,
        "updated_at": T0,
        "version": 1,
    }
    data.update(overrides)
    return data


class WorkspaceBuilder:
    """Writes workspace files under a root directory."""

    def __init__(self, root: Path):
        self.root = root

    def write_yaml(self, relative: str, data) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=False))
        return path

    def ticket_dir(self, ticket_id: str, ticket_type: str) -> Path:
        return self.root / "tickets" / TYPE_DIRS[ticket_type] / ticket_id

    def ticket_relative(self, ticket_id: str, ticket_type: str) -> str:
        return f"tickets/{TYPE_DIRS[ticket_type]}/{ticket_id}/ticket.yaml"

    def history_relative(self, ticket_id: str, ticket_type: str) -> str:
        return f"tickets/{TYPE_DIRS[ticket_type]}/{ticket_id}/history.ndjson"

    def add_ticket(self, ticket_id, ticket_type, history=None, **fields) -> Path:
        data = ticket_data(ticket_id, ticket_type, **{"generated_by": "houston@test", **fields})
        path = self.write_yaml(self.ticket_relative(ticket_id, ticket_type), data)
        if history is not None:
            self.write_history(ticket_id, ticket_type, history)
        return path

    def write_history(self, ticket_id, ticket_type, events) -> Path:
        path = self.ticket_dir(ticket_id, ticket_type) / "history.ndjson"
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = [e if isinstance(e, str) else json.dumps(e) for e in events]
        path.write_text("".join(line + "\n" for line in lines))
        return path

    def config(self, **raw):
        return build_config(self.root, raw or None)


def write_healthy_workspace(builder: WorkspaceBuilder) -> None:
    """A small workspace that passes every check."""
    builder.write_yaml("houston.config.yaml", {"tracking": {"root": "."}})
    builder.write_yaml("taxonomies/components.yaml", {"components": ["web", "api"]})
    builder.write_yaml("taxonomies/labels.yaml", {"labels": ["frontend", "backend"]})
    builder.write_yaml("people/users.yaml", {"users": [{"id": "user:alice"}, {"id": "user:bob"}]})
    builder.write_yaml("transitions.yaml", {"allowed": TRANSITIONS})
    builder.write_yaml("repos/repos.yaml", {
        "repos": [{"id": "repo.web", "provider": "github", "default_branch": "main"}],
    })
    builder.write_yaml("sprints/S-1/sprint.yaml", {
        "id": "S-1",
        "name": "Sprint 1",
        "start_date": "2025-10-01",
        "end_date": "2025-10-14",
        "generated_by": "houston@test",
    })
    builder.write_yaml("sprints/S-1/scope.yaml", {
        "epics": [],
        "stories": ["ST-1"],
        "subtasks": ["SB-1"],
        "bugs": [],
        "generated_by": "houston@test",
    })
    builder.write_yaml("backlog/backlog.yaml", {"ordered": ["BG-1"], "generated_by": "houston@test"})
    builder.write_yaml("backlog/next-sprint-candidates.yaml", {"candidates": [], "generated_by": "houston@test"})

    in_progress = [
        event("create", T0, to="Backlog"),
        event("status", T1, to="Ready", frm="Backlog"),
        event("status", T2, to="In Progress", frm="Ready"),
    ]
    code = {"auto_create_branch": True, "repos": [{"repo_id": "repo.web", "branch": "feat/work"}]}

    builder.add_ticket("EPIC-1", "epic", history=[event("create", T0, to="Backlog")], due_date="2025-12-31")
    builder.add_ticket(
        "ST-1", "story", history=in_progress,
        status="In Progress", parent_id="EPIC-1", sprint_id="S-1", updated_at=T2, code=code,
    )
    builder.add_ticket(
        "SB-1", "subtask", history=in_progress,
        status="In Progress", parent_id="ST-1", due_date="2025-10-09", updated_at=T2, code=code,
    )
    builder.add_ticket(
        "BG-1", "bug", history=[event("create", T0, to="Backlog")],
        parent_id="ST-1", due_date="2025-10-09",
    )


@pytest.fixture
def builder(tmp_path):
    return WorkspaceBuilder(tmp_path)


@pytest.fixture
def workspace(builder):
    """Builder over a healthy workspace."""
    write_healthy_workspace(builder)
    return builder


def make_ticket(ticket_id, ticket_type, history_path=None, **fields) -> TicketInfo:
    """In-memory ticket; history lives at history_path if given."""
    history_path = history_path or Path("/nonexistent") / ticket_id / "history.ndjson"
    return TicketInfo(
        id=ticket_id,
        type=ticket_type,
        path=f"tickets/{TYPE_DIRS[ticket_type]}/{ticket_id}/ticket.yaml",
        history_path=history_path,
        history_relative=f"tickets/{TYPE_DIRS[ticket_type]}/{ticket_id}/history.ndjson",
        data=ticket_data(ticket_id, ticket_type, **fields),
    )


def make_context(tickets, sprints=None, scopes=None, transitions=None, **inventory_fields):
    """Build a ValidationContext over in-memory records."""
    inventory = WorkspaceInventory(
        tickets=list(tickets),
        sprints=sprints or [SprintInfo(id="S-1", path="sprints/S-1/sprint.yaml", data={"end_date": "2025-10-14"})],
        sprint_scopes=scopes or [],
        components=inventory_fields.pop("components", ["web", "api"]),
        labels=inventory_fields.pop("labels", ["frontend", "backend"]),
        users=inventory_fields.pop("users", ["user:alice", "user:bob"]),
        transitions=TRANSITIONS if transitions is None else transitions,
        repos=inventory_fields.pop("repos", [RepoConfig(id="repo.web")]),
        **inventory_fields,
    )
    context, _ = build_validation_context(inventory, max_history_bytes=1024 * 1024, history_tolerance_seconds=1.0)
    return context


def scope(data, sprint_id="S-1") -> SprintScopeInfo:
    return SprintScopeInfo(id=sprint_id, path=f"sprints/{sprint_id}/scope.yaml", data=data)


def rules_of(issues, rule):
    return [issue for issue in issues if issue.rule == rule]
