"""Agent and run result models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .state import State


class RunStatus(str, Enum):
    """Terminal status of one event's chain."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    STOPPED = "stopped"


@dataclass
class AgentResult:
    """Output of a single agent invocation."""

    output_state: State


@dataclass
class HopRecord:
    """One agent invocation within a run."""

    agent: str
    started_at: datetime
    finished_at: datetime
    next_agent: str | None = None


@dataclass
class RunResult:
    """Outcome of routing one event through the pipeline."""

    event_id: str
    status: RunStatus
    state: State
    started_at: datetime
    finished_at: datetime
    hops: list[HopRecord] = field(default_factory=list)
    error: str | None = None
    error_kind: str | None = None
    failed_agent: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == RunStatus.COMPLETED

    @property
    def agents(self) -> list[str]:
        """Names of agents invoked, in order."""
        return [hop.agent for hop in self.hops]

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "status": self.status.value,
            "state": self.state.to_dict(),
            "hops": [
                {
                    "agent": hop.agent,
                    "started_at": hop.started_at.isoformat(),
                    "finished_at": hop.finished_at.isoformat(),
                    "next_agent": hop.next_agent,
                }
                for hop in self.hops
            ],
            "error": self.error,
            "error_kind": self.error_kind,
            "failed_agent": self.failed_agent,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
        }
