"""Agent contract and the shared base for model-backed agents."""

from typing import Any, Protocol

from ...errors import CapabilityError, ValidationError
from ...llm import IModelProvider, Prompt
from ...logging_config import get_logger
from ...models import ROUTE_METADATA_KEY, AgentResult, Event, State

logger = get_logger(__name__)


class IAgent(Protocol):
    """A single pipeline step."""

    @property
    def name(self) -> str:
        """Agent identifier used as a routing target."""
        ...

    async def run(self, event: Event, state: State) -> AgentResult:
        """Consume the event and current state, return the output state.

        Raises AgentError (ValidationError, CapabilityError) on failure.
        """
        ...


class LLMAgent:
    """Base for agents that make one provider call per hop.

    Subclasses set ``system_prompt``, ``input_keys`` (tried in order) and
    ``output_key``, and implement ``build_user_prompt``.
    """

    system_prompt: str = ""
    input_keys: tuple[str, ...] = ()
    output_key: str = "message"

    def __init__(
        self,
        name: str,
        llm_provider: IModelProvider,
        next_agent: str | None = None,
    ):
        self._name = name
        self._llm = llm_provider
        self._next_agent = next_agent

    @property
    def name(self) -> str:
        return self._name

    @property
    def next_agent(self) -> str | None:
        return self._next_agent

    def build_user_prompt(self, value: Any) -> str:
        raise NotImplementedError

    def read_input(self, event: Event, state: State) -> Any:
        """Return the first present input key from state."""
        for key in self.input_keys:
            if key in state:
                return state.get(key)
        raise ValidationError(
            f"no {' or '.join(self.input_keys)} found",
            agent=self._name,
            expected=list(self.input_keys),
        )

    async def run(self, event: Event, state: State) -> AgentResult:
        value = self.read_input(event, state)

        prompt = Prompt(system=self.system_prompt, user=self.build_user_prompt(value))
        try:
            response = await self._llm.call(prompt)
        except CapabilityError as e:
            e.agent = e.agent or self._name
            raise
        except Exception as e:
            raise CapabilityError(str(e), agent=self._name) from e

        output = State()
        output.set(self.output_key, response.content)
        output.set("message", response.content)
        if self._next_agent:
            output.set_meta(ROUTE_METADATA_KEY, self._next_agent)

        logger.info(
            "Agent %s produced %s chars for event %s (next: %s)",
            self._name,
            len(response.content),
            event.id,
            self._next_agent or "end",
        )
        return AgentResult(output_state=output)
