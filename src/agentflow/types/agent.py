"""Agent-related types."""

from __future__ import annotations

from enum import StrEnum


class AgentState(StrEnum):
    """Lifecycle state of an agent."""

    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"
    ERROR = "error"


class StepStatus(StrEnum):
    """Status of a single plan step."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"

    @property
    def marker(self) -> str:
        return _STEP_MARKERS[self]

    @property
    def is_open(self) -> bool:
        """Whether the step still needs work."""
        return self in (StepStatus.NOT_STARTED, StepStatus.IN_PROGRESS)


_STEP_MARKERS: dict[StepStatus, str] = {
    StepStatus.NOT_STARTED: "[ ]",
    StepStatus.IN_PROGRESS: "[→]",
    StepStatus.COMPLETED: "[✓]",
    StepStatus.BLOCKED: "[!]",
}
