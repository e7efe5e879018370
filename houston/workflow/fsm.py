"""Ticket status workflows using the transitions library.

transitions.yaml declares, per ticket type, which statuses may follow which:

    allowed:
      story:
        Backlog: [Ready, Canceled]
        Ready: [In Progress, Backlog]

Each type becomes one Machine whose states are every status named on either
side of an edge. Every legal edge is registered under the single trigger
"advance", so legality is a lookup of (source, dest) on that trigger.

Usage:
    from houston.workflow.fsm import TransitionGraph

    graph = TransitionGraph.from_map(inventory.transitions)
    graph.allows("story", "Backlog", "Ready")  # True
"""

import logging

from transitions import Machine

logger = logging.getLogger(__name__)

ADVANCE = "advance"


def _status_list(value) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [v for v in value if isinstance(v, str)]
    return []


class TicketWorkflow:
    """Status machine for one ticket type."""

    def __init__(self, ticket_type: str, allowed: dict[str, list[str]]):
        self.ticket_type = ticket_type

        edges: list[dict] = []
        states: list[str] = []
        for source, targets in allowed.items():
            if source not in states:
                states.append(source)
            for dest in targets:
                if dest not in states:
                    states.append(dest)
                edges.append({"trigger": ADVANCE, "source": source, "dest": dest})

        self.states = states
        self.machine = None
        if edges:
            self.machine = Machine(
                model=self,
                states=states,
                transitions=edges,
                initial=states[0],
                auto_transitions=False,  # Only declared edges
            )

    def allows(self, source: str, dest: str) -> bool:
        """True if dest may directly follow source."""
        if self.machine is None or source not in self.states:
            return False
        return bool(self.machine.get_transitions(trigger=ADVANCE, source=source, dest=dest))

    def allowed_next(self, source: str) -> list[str]:
        if self.machine is None or source not in self.states:
            return []
        return [t.dest for t in self.machine.get_transitions(trigger=ADVANCE, source=source)]


class TransitionGraph:
    """Per-type legal status transitions, built once per validation run."""

    def __init__(self, workflows: dict[str, TicketWorkflow] | None = None):
        self.workflows = workflows or {}

    @classmethod
    def from_map(cls, transitions: dict | None) -> "TransitionGraph":
        """Build from the `allowed` mapping (type -> status -> [status])."""
        workflows: dict[str, TicketWorkflow] = {}
        for ticket_type, table in (transitions or {}).items():
            if not isinstance(table, dict):
                logger.warning(f"[FSM] Ignoring non-mapping transitions for {ticket_type}")
                continue
            allowed = {
                str(source): _status_list(targets)
                for source, targets in table.items()
            }
            workflows[str(ticket_type)] = TicketWorkflow(str(ticket_type), allowed)
        return cls(workflows)

    def workflow(self, ticket_type: str) -> TicketWorkflow | None:
        return self.workflows.get(ticket_type)

    def allows(self, ticket_type: str, source: str, dest: str) -> bool:
        workflow = self.workflow(ticket_type)
        return workflow is not None and workflow.allows(source, dest)

    def allowed_next(self, ticket_type: str, source: str) -> list[str]:
        workflow = self.workflow(ticket_type)
        return workflow.allowed_next(source) if workflow else []
