"""Error hierarchy for the pipeline engine."""

from typing import Any


class AgentFlowError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context


class ConfigurationError(AgentFlowError):
    """Configuration is invalid or missing."""


class NotRunningError(AgentFlowError):
    """Runner lifecycle misuse (emit before start, emit after stop)."""


class AgentError(AgentFlowError):
    """A failure that terminates a single event's chain.

    Carries the name of the agent the failure originated from and a short
    error kind used in run results and trace events.
    """

    kind = "agent_error"

    def __init__(self, message: str, agent: str | None = None, **context: Any) -> None:
        super().__init__(message, **context)
        self.agent = agent


class ValidationError(AgentError):
    """A required state field is missing."""

    kind = "validation"


class CapabilityError(AgentError):
    """The external model provider call failed."""

    kind = "capability"


class UnknownAgentError(AgentError):
    """A route names an agent that is not registered."""

    kind = "unknown_agent"


class RoutingLoopError(AgentError):
    """The hop limit was exceeded."""

    kind = "routing_loop"


class RunTimeoutError(AgentError):
    """The per-run time limit was exceeded."""

    kind = "timeout"


class RunCancelledError(AgentError):
    """The run was cancelled while a hop was in flight."""

    kind = "cancelled"
