"""
Status transition tables for SPACs, filings and tasks.

Each table maps a status to the set of statuses it may move to. Statuses
absent from a table's keys, or mapped to an empty set, are terminal.
"""
from enum import Enum

from spacos.models.spac import SpacStatus
from spacos.models.filing import FilingStatus
from spacos.models.task import TaskStatus


class InvalidTransitionError(Exception):
    """Raised when a status change is not allowed by its transition table."""

    def __init__(self, current: Enum, requested: Enum):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot transition from {current.value} to {requested.value}")


SPAC_TRANSITIONS: dict[SpacStatus, set[SpacStatus]] = {
    SpacStatus.SEARCHING: {SpacStatus.LOI_SIGNED, SpacStatus.LIQUIDATING, SpacStatus.TERMINATED},
    SpacStatus.LOI_SIGNED: {SpacStatus.DA_ANNOUNCED, SpacStatus.SEARCHING, SpacStatus.TERMINATED},
    SpacStatus.DA_ANNOUNCED: {SpacStatus.SEC_REVIEW, SpacStatus.TERMINATED},
    SpacStatus.SEC_REVIEW: {SpacStatus.SHAREHOLDER_VOTE, SpacStatus.TERMINATED},
    SpacStatus.SHAREHOLDER_VOTE: {SpacStatus.CLOSING, SpacStatus.TERMINATED},
    SpacStatus.CLOSING: {SpacStatus.COMPLETED, SpacStatus.TERMINATED},
    SpacStatus.LIQUIDATING: {SpacStatus.LIQUIDATED},
    SpacStatus.COMPLETED: set(),
    SpacStatus.LIQUIDATED: set(),
    SpacStatus.TERMINATED: set(),
}

FILING_TRANSITIONS: dict[FilingStatus, set[FilingStatus]] = {
    FilingStatus.DRAFTING: {FilingStatus.INTERNAL_REVIEW},
    FilingStatus.INTERNAL_REVIEW: {FilingStatus.LEGAL_REVIEW, FilingStatus.DRAFTING},
    FilingStatus.LEGAL_REVIEW: {FilingStatus.BOARD_APPROVAL, FilingStatus.INTERNAL_REVIEW},
    FilingStatus.BOARD_APPROVAL: {FilingStatus.FILED, FilingStatus.LEGAL_REVIEW},
    FilingStatus.FILED: {FilingStatus.SEC_COMMENT, FilingStatus.EFFECTIVE},
    FilingStatus.SEC_COMMENT: {FilingStatus.RESPONSE_FILED},
    FilingStatus.RESPONSE_FILED: {FilingStatus.AMENDED, FilingStatus.EFFECTIVE, FilingStatus.SEC_COMMENT},
    FilingStatus.AMENDED: {FilingStatus.SEC_COMMENT, FilingStatus.EFFECTIVE},
    FilingStatus.EFFECTIVE: set(),
    FilingStatus.WITHDRAWN: set(),
}

TASK_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.NOT_STARTED: {
        TaskStatus.IN_PROGRESS, TaskStatus.BLOCKED, TaskStatus.CANCELLED, TaskStatus.COMPLETED,
    },
    TaskStatus.IN_PROGRESS: {
        TaskStatus.BLOCKED, TaskStatus.COMPLETED, TaskStatus.NOT_STARTED, TaskStatus.CANCELLED,
    },
    TaskStatus.BLOCKED: {TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED},
    TaskStatus.COMPLETED: {TaskStatus.IN_PROGRESS},
    TaskStatus.CANCELLED: {TaskStatus.NOT_STARTED},
}

TERMINAL_SPAC_STATUSES = {s for s, allowed in SPAC_TRANSITIONS.items() if not allowed}


def allowed_transitions(table: dict, current: Enum) -> list[str]:
    """Sorted status values reachable from current."""
    return sorted(s.value for s in table.get(current, set()))


def can_transition(table: dict, current: Enum, requested: Enum) -> bool:
    """Same-status updates are accepted as no-ops."""
    if current == requested:
        return True
    return requested in table.get(current, set())


def validate_transition(table: dict, current: Enum, requested: Enum) -> None:
    """Raise InvalidTransitionError unless current -> requested is allowed."""
    if not can_transition(table, current, requested):
        raise InvalidTransitionError(current, requested)
