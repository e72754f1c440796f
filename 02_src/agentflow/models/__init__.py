"""Core data models for agentflow."""

from .bus import BusMessage, Topic
from .events import ROUTE_METADATA_KEY, Event
from .results import AgentResult, HopRecord, RunResult, RunStatus
from .state import State
from .tracing import TraceEvent

__all__ = [
    # Pipeline
    "Event",
    "State",
    "ROUTE_METADATA_KEY",
    "AgentResult",
    "HopRecord",
    "RunResult",
    "RunStatus",
    # EventBus
    "BusMessage",
    "Topic",
    # Tracing
    "TraceEvent",
]
