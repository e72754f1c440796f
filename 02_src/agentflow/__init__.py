"""agentflow: sequential multi-agent pipeline engine."""

from .app import Application, IApplication
from .config import Settings
from .errors import (
    AgentError,
    AgentFlowError,
    CapabilityError,
    ConfigurationError,
    NotRunningError,
    RoutingLoopError,
    RunCancelledError,
    RunTimeoutError,
    UnknownAgentError,
    ValidationError,
)
from .event_bus import EventBus, IEventBus
from .llm import EchoProvider, IModelProvider, LLMProvider, Prompt, Response
from .models import (
    ROUTE_METADATA_KEY,
    AgentResult,
    BusMessage,
    Event,
    HopRecord,
    RunResult,
    RunStatus,
    State,
    Topic,
    TraceEvent,
)
from .processing import (
    EnhancerAgent,
    FormatterAgent,
    IAgent,
    ProcessingLayer,
    ProcessorAgent,
    build_agents,
)
from .router import IRouter, Router
from .runner import IRunner, Runner, RunnerState
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Models
    "Event",
    "State",
    "ROUTE_METADATA_KEY",
    "AgentResult",
    "HopRecord",
    "RunResult",
    "RunStatus",
    "BusMessage",
    "Topic",
    "TraceEvent",
    # Errors
    "AgentFlowError",
    "ConfigurationError",
    "NotRunningError",
    "AgentError",
    "ValidationError",
    "CapabilityError",
    "UnknownAgentError",
    "RoutingLoopError",
    "RunTimeoutError",
    "RunCancelledError",
    # Components
    "IStorage",
    "Storage",
    "IEventBus",
    "EventBus",
    "ITracker",
    "Tracker",
    "IModelProvider",
    "LLMProvider",
    "EchoProvider",
    "Prompt",
    "Response",
    "IAgent",
    "ProcessorAgent",
    "EnhancerAgent",
    "FormatterAgent",
    "ProcessingLayer",
    "build_agents",
    "IRouter",
    "Router",
    "IRunner",
    "Runner",
    "RunnerState",
]
