"""ProcessingLayer: the registry of agents available as routing targets."""

from types import MappingProxyType
from typing import Mapping, Protocol

from ..errors import ConfigurationError, UnknownAgentError
from ..llm import IModelProvider
from ..logging_config import get_logger
from .agents import EnhancerAgent, FormatterAgent, IAgent, LLMAgent, ProcessorAgent

logger = get_logger(__name__)

AGENT_TYPES: dict[str, type[LLMAgent]] = {
    "processor": ProcessorAgent,
    "enhancer": EnhancerAgent,
    "formatter": FormatterAgent,
}


class IProcessingLayer(Protocol):
    """Name -> agent lookup, fixed once the runner starts."""

    def register_agent(self, agent: IAgent) -> None:
        """Register an agent under its name."""
        ...

    def get(self, name: str) -> IAgent:
        """Look up an agent, failing closed on unknown names."""
        ...

    @property
    def agents(self) -> Mapping[str, IAgent]:
        """Read-only view of registered agents."""
        ...


class ProcessingLayer:
    """Holds registered agents; frozen before dispatch begins."""

    def __init__(self, agents: list[IAgent] | None = None):
        self._agents: dict[str, IAgent] = {}
        self._frozen = False
        for agent in agents or []:
            self.register_agent(agent)

    def register_agent(self, agent: IAgent) -> None:
        """Register an agent."""
        if self._frozen:
            raise RuntimeError("ProcessingLayer is frozen")
        if agent.name in self._agents:
            raise ConfigurationError(
                f"Agent already registered: {agent.name}", agent=agent.name
            )
        self._agents[agent.name] = agent
        logger.debug("Registered agent %s", agent.name)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def agents(self) -> Mapping[str, IAgent]:
        return MappingProxyType(self._agents)

    def get(self, name: str) -> IAgent:
        try:
            return self._agents[name]
        except KeyError:
            raise UnknownAgentError(f"Unknown agent: {name}", agent=name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._agents

    def __len__(self) -> int:
        return len(self._agents)


def build_agents(
    llm_provider: IModelProvider, chain: tuple[str, ...] | list[str]
) -> ProcessingLayer:
    """Create the built-in agents for a chain like processor,enhancer,formatter.

    Each agent routes to the one after it; the last agent ends the chain.
    """
    unknown = [name for name in chain if name not in AGENT_TYPES]
    if unknown:
        raise ConfigurationError(
            f"Unknown agents in chain: {', '.join(unknown)}",
            available=sorted(AGENT_TYPES),
        )
    if len(set(chain)) != len(chain):
        raise ConfigurationError("Chain lists an agent more than once", chain=list(chain))

    layer = ProcessingLayer()
    for i, name in enumerate(chain):
        next_agent = chain[i + 1] if i + 1 < len(chain) else None
        layer.register_agent(
            AGENT_TYPES[name](name=name, llm_provider=llm_provider, next_agent=next_agent)
        )
    return layer
