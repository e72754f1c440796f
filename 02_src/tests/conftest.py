"""Pytest configuration and fixtures."""

import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from agentflow.errors import ValidationError  # noqa: E402
from agentflow.llm import Response  # noqa: E402
from agentflow.models import ROUTE_METADATA_KEY, AgentResult, Event, State  # noqa: E402


class AppendAgent:
    """Deterministic stub: appends its name to the ``message`` field."""

    def __init__(self, name: str, next_agent: str | None = None, delay: float = 0.0):
        self._name = name
        self._next_agent = next_agent
        self._delay = delay
        self.calls = 0
        self.started = asyncio.Event()

    @property
    def name(self) -> str:
        return self._name

    async def run(self, event: Event, state: State) -> AgentResult:
        self.calls += 1
        self.started.set()
        if self._delay:
            await asyncio.sleep(self._delay)

        if "message" in state:
            base = state.get("message")
        elif "input" in event.data:
            base = event.data["input"]
        else:
            raise ValidationError("no input provided")

        output = State()
        output.set("message", f"{base}:{self._name}")
        output.set(f"{self._name}_done", True)
        if self._next_agent:
            output.set_meta(ROUTE_METADATA_KEY, self._next_agent)
        return AgentResult(output_state=output)


class RequireKeyAgent:
    """Stub that fails with ValidationError unless ``key`` is in state."""

    def __init__(self, name: str, key: str, next_agent: str | None = None):
        self._name = name
        self._key = key
        self._next_agent = next_agent
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def run(self, event: Event, state: State) -> AgentResult:
        self.calls += 1
        if self._key not in state:
            raise ValidationError(f"no {self._key} found")
        output = State({"checked": state.get(self._key)})
        if self._next_agent:
            output.set_meta(ROUTE_METADATA_KEY, self._next_agent)
        return AgentResult(output_state=output)


class BlockingAgent:
    """Stub that waits until ``release`` is set (or forever)."""

    def __init__(self, name: str, next_agent: str | None = None):
        self._name = name
        self._next_agent = next_agent
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def run(self, event: Event, state: State) -> AgentResult:
        self.calls += 1
        self.started.set()
        await self.release.wait()
        output = State({"blocked": self._name})
        if self._next_agent:
            output.set_meta(ROUTE_METADATA_KEY, self._next_agent)
        return AgentResult(output_state=output)


def make_event(text: str = "X", route: str | None = "processor", **metadata) -> Event:
    """Build an event the way the demo producer does."""
    if route:
        metadata[ROUTE_METADATA_KEY] = route
    return Event.create(source="test", data={"input": text}, metadata=metadata)


@pytest.fixture
def chain_agents():
    """processor -> enhancer -> formatter stubs."""
    return {
        "processor": AppendAgent("processor", next_agent="enhancer"),
        "enhancer": AppendAgent("enhancer", next_agent="formatter"),
        "formatter": AppendAgent("formatter"),
    }


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from agentflow.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def event_bus(storage):
    """Create EventBus with storage."""
    from agentflow.event_bus import EventBus

    return EventBus(storage)


@pytest.fixture
def tracker(storage, event_bus):
    """Create Tracker with storage and event bus."""
    from agentflow.tracker import Tracker

    return Tracker(event_bus=event_bus, storage=storage)


@pytest.fixture
def mock_llm():
    """Create mock model provider."""
    llm = Mock()
    llm.call = AsyncMock(return_value=Response(content="Test response"))
    return llm


@pytest_asyncio.fixture
async def runner(chain_agents):
    """Started Runner over the stub chain."""
    from agentflow.runner import Runner

    rn = Runner(agents=chain_agents, default_route="processor", max_hops=8)
    await rn.start()
    yield rn
    await rn.stop(grace_period=1)


@pytest.fixture
def echo_settings():
    """Settings using the offline echo provider."""
    from agentflow.config import Settings

    return Settings(provider="echo", max_hops=8, workers=2)
