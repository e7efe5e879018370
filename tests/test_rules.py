"""Tests for houston.workspace.rules module."""

from houston.workspace.models import SprintInfo
from houston.workspace.rules import (
    validate_code_repos,
    validate_components,
    validate_due_dates,
    validate_parent,
    validate_people,
    validate_sprint,
)

from conftest import make_context, make_ticket


def messages(issues):
    return [issue.message for issue in issues]


class TestComponents:

    def test_valid(self):
        ticket = make_ticket("ST-1", "story")
        assert validate_components(ticket, make_context([ticket])) == []

    def test_empty_components_reported_once(self):
        for empty in ([], None, [""], "web"):
            ticket = make_ticket("ST-1", "story", components=empty)
            issues = validate_components(ticket, make_context([ticket]))
            assert messages(issues) == ["components list must not be empty"]
            assert issues[0].rule == "components"

    def test_unknown_component_and_label(self):
        ticket = make_ticket("ST-1", "story", components=["web", "mobile"], labels=["frontend", "urgent"])
        issues = validate_components(ticket, make_context([ticket]))
        assert [(i.rule, i.message) for i in issues] == [
            ("components", "Unknown component mobile"),
            ("labels", "Unknown label urgent"),
        ]

    def test_labels_optional(self):
        ticket = make_ticket("ST-1", "story", labels=[])
        assert validate_components(ticket, make_context([ticket])) == []


class TestPeople:

    def test_valid(self):
        ticket = make_ticket("ST-1", "story")
        assert validate_people(ticket, make_context([ticket])) == []

    def test_missing_assignee(self):
        ticket = make_ticket("ST-1", "story", assignee=None)
        assert messages(validate_people(ticket, make_context([ticket]))) == ["Missing assignee"]

    def test_unknown_people(self):
        ticket = make_ticket("ST-1", "story", assignee="user:zed", approvers=["user:bob", "user:yan"])
        issues = validate_people(ticket, make_context([ticket]))
        assert messages(issues) == ["Unknown assignee user:zed", "Unknown approver user:yan"]


class TestParent:

    def test_valid_ladder(self):
        epic = make_ticket("EPIC-1", "epic")
        story = make_ticket("ST-1", "story", parent_id="EPIC-1")
        subtask = make_ticket("SB-1", "subtask", parent_id="ST-1")
        bug = make_ticket("BG-1", "bug", parent_id="ST-1")
        context = make_context([epic, story, subtask, bug])
        for ticket in (epic, story, subtask, bug):
            assert validate_parent(ticket, context) == []

    def test_story_without_parent_is_fine(self):
        story = make_ticket("ST-1", "story")
        assert validate_parent(story, make_context([story])) == []

    def test_subtask_and_bug_require_parent(self):
        subtask = make_ticket("SB-1", "subtask")
        bug = make_ticket("BG-1", "bug")
        context = make_context([subtask, bug])
        assert messages(validate_parent(subtask, context)) == ["Subtask requires parent_id referencing a story"]
        assert messages(validate_parent(bug, context)) == ["Bug requires parent_id referencing a story"]

    def test_parent_not_found(self):
        story = make_ticket("ST-1", "story", parent_id="EPIC-404")
        assert messages(validate_parent(story, make_context([story]))) == ["Parent ticket EPIC-404 not found"]

    def test_type_mismatches(self):
        epic = make_ticket("EPIC-1", "epic")
        story = make_ticket("ST-1", "story", parent_id="EPIC-1")
        other_story = make_ticket("ST-2", "story", parent_id="ST-1")
        subtask = make_ticket("SB-1", "subtask", parent_id="EPIC-1")
        bug = make_ticket("BG-1", "bug", parent_id="SB-1")
        context = make_context([epic, story, other_story, subtask, bug])

        cases = [
            (other_story, "Story parent must be an epic (got story)", "epic", "story"),
            (subtask, "Subtask parent must be a story (got epic)", "story", "epic"),
            (bug, "Bug parent must be a story (got subtask)", "story", "subtask"),
        ]
        for ticket, message, expected, actual in cases:
            issues = validate_parent(ticket, context)
            assert messages(issues) == [message]
            assert issues[0].details["expected"] == expected
            assert issues[0].details["actual"] == actual


class TestSprint:

    def test_known_sprint(self):
        ticket = make_ticket("ST-1", "story", sprint_id="S-1")
        assert validate_sprint(ticket, make_context([ticket])) == []

    def test_unknown_sprint(self):
        ticket = make_ticket("ST-1", "story", sprint_id="S-9")
        assert messages(validate_sprint(ticket, make_context([ticket]))) == ["Sprint S-9 not found"]

    def test_no_sprint(self):
        ticket = make_ticket("ST-1", "story")
        assert validate_sprint(ticket, make_context([ticket])) == []


class TestDueDates:

    def test_missing_or_invalid(self):
        for due in (None, "", "next week"):
            ticket = make_ticket("ST-1", "story", due_date=due)
            assert messages(validate_due_dates(ticket, make_context([ticket]))) == ["Invalid or missing due_date"]

    def test_within_all_bounds(self):
        epic = make_ticket("EPIC-1", "epic", due_date="2025-12-31")
        story = make_ticket("ST-1", "story", parent_id="EPIC-1", sprint_id="S-1", due_date="2025-10-14")
        subtask = make_ticket("SB-1", "subtask", parent_id="ST-1", due_date="2025-10-13T12:00:00Z")
        context = make_context([epic, story, subtask])
        for ticket in (epic, story, subtask):
            assert validate_due_dates(ticket, context) == []

    def test_exceeds_sprint_end(self):
        story = make_ticket("ST-1", "story", sprint_id="S-1", due_date="2025-10-20")
        issues = validate_due_dates(story, make_context([story]))
        assert messages(issues) == ["due_date 2025-10-20 exceeds sprint end 2025-10-14"]

    def test_story_exceeds_parent_and_epic(self):
        epic = make_ticket("EPIC-1", "epic", due_date="2025-10-01")
        story = make_ticket("ST-1", "story", parent_id="EPIC-1", due_date="2025-10-05")
        issues = validate_due_dates(story, make_context([epic, story]))
        assert messages(issues) == [
            "due_date 2025-10-05 exceeds parent EPIC-1 due date 2025-10-01",
            "Story due_date 2025-10-05 exceeds epic EPIC-1 due date 2025-10-01",
        ]

    def test_subtask_bounded_by_parent_only(self):
        """The epic above a subtask's story is not a comparator."""
        epic = make_ticket("EPIC-1", "epic", due_date="2025-10-01")
        story = make_ticket("ST-1", "story", parent_id="EPIC-1", due_date="2025-10-10")
        subtask = make_ticket("SB-1", "subtask", parent_id="ST-1", due_date="2025-10-05")
        assert validate_due_dates(subtask, make_context([epic, story, subtask])) == []

    def test_subtask_exceeds_story(self):
        story = make_ticket("ST-1", "story", due_date="2025-10-03")
        subtask = make_ticket("SB-1", "subtask", parent_id="ST-1", due_date="2025-10-05")
        issues = validate_due_dates(subtask, make_context([story, subtask]))
        assert messages(issues) == ["due_date 2025-10-05 exceeds parent ST-1 due date 2025-10-03"]

    def test_unresolvable_comparators_skipped(self):
        epic = make_ticket("EPIC-1", "epic", due_date=None)
        story = make_ticket("ST-1", "story", parent_id="EPIC-1", sprint_id="S-9", due_date="2030-01-01")
        orphan = make_ticket("SB-1", "subtask", parent_id="ST-404", due_date="2030-01-01")
        sprint = SprintInfo(id="S-1", path="sprints/S-1/sprint.yaml", data={})
        context = make_context([epic, story, orphan], sprints=[sprint])
        assert validate_due_dates(story, context) == []
        assert validate_due_dates(orphan, context) == []


class TestCodeRepos:

    def code(self, *repos, auto=True):
        return {"auto_create_branch": auto, "repos": list(repos)}

    def test_ready_requires_branch(self):
        story = make_ticket("ST-1", "story", status="Ready", code=self.code())
        assert messages(validate_code_repos(story, make_context([story]))) == [
            "Status Ready requires at least one branch entry"
        ]

    def test_auto_branch_disabled(self):
        story = make_ticket("ST-1", "story", status="In Progress", code=self.code(auto=False))
        assert validate_code_repos(story, make_context([story])) == []

    def test_auto_branch_defaults_on(self):
        story = make_ticket("ST-1", "story", status="In Progress")
        assert len(validate_code_repos(story, make_context([story]))) == 1

    def test_subtask_in_progress_needs_branch_regardless_of_flag(self):
        subtask = make_ticket("SB-1", "subtask", status="In Progress", code=self.code(auto=False))
        assert messages(validate_code_repos(subtask, make_context([subtask]))) == [
            "subtask in In Progress must have at least one branch"
        ]

    def test_bug_in_progress_reports_both(self):
        bug = make_ticket("BG-1", "bug", status="In Progress")
        assert len(validate_code_repos(bug, make_context([bug]))) == 2

    def test_repo_entry_checks(self):
        story = make_ticket("ST-1", "story", status="Backlog", code=self.code(
            {"branch": "feat/a"},
            {"repo_id": "repo.api", "branch": "feat/b"},
            {"repo_id": "repo.web"},
        ))
        assert messages(validate_code_repos(story, make_context([story]))) == [
            "Linked code entry missing repo_id",
            "Unknown repo reference repo.api",
            "Repo repo.web missing branch name",
        ]

    def test_done_requires_merged_pr(self):
        story = make_ticket("ST-1", "story", status="Done", code=self.code(
            {"repo_id": "repo.web", "branch": "feat/a", "pr": {"number": 1, "state": "open"}},
            {"repo_id": "repo.web", "branch": "feat/b", "pr": {"number": 2, "state": "merged"}},
            {"repo_id": "repo.web", "branch": "feat/c"},
        ))
        issues = validate_code_repos(story, make_context([story]))
        assert messages(issues) == ["Ticket Done requires merged PR for repo repo.web"]
        assert issues[0].details == {"pr_state": "open"}

    def test_open_pr_fine_before_done(self):
        story = make_ticket("ST-1", "story", status="In Review", code=self.code(
            {"repo_id": "repo.web", "branch": "feat/a", "pr": {"state": "open"}},
        ))
        assert validate_code_repos(story, make_context([story])) == []
