"""Model provider implementations (Anthropic Claude API and offline echo)."""

import os
from dataclasses import dataclass
from typing import Protocol

import anthropic

from ..config import DEFAULT_MODEL
from ..errors import CapabilityError, ConfigurationError


@dataclass(frozen=True)
class Prompt:
    """A single-turn prompt."""

    system: str
    user: str


@dataclass(frozen=True)
class Response:
    """Provider output."""

    content: str


class IModelProvider(Protocol):
    """Abstraction for model access."""

    async def call(self, prompt: Prompt) -> Response:
        """Generate a response for the prompt."""
        ...


class LLMProvider:
    """Anthropic Claude API provider."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 1024,
    ):
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self._api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY environment variable not set")

        self._model = model
        self._max_tokens = max_tokens
        self._client = anthropic.AsyncAnthropic(api_key=self._api_key)

    @property
    def model(self) -> str:
        return self._model

    async def call(self, prompt: Prompt) -> Response:
        """Generate a response using Claude API."""
        try:
            response = await self._client.messages.create(
                model=self._model,
                system=prompt.system,
                messages=[{"role": "user", "content": prompt.user}],
                max_tokens=self._max_tokens,
            )
        except Exception as e:
            # Re-raise for handling by the calling agent
            raise CapabilityError(f"LLM API error: {e}", model=self._model) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "text", None)
        )
        return Response(content=text)


class EchoProvider:
    """Deterministic offline provider: answers with the user prompt."""

    def __init__(self, prefix: str = ""):
        self._prefix = prefix
        self.calls: list[Prompt] = []

    async def call(self, prompt: Prompt) -> Response:
        self.calls.append(prompt)
        return Response(content=f"{self._prefix}{prompt.user}")


def create_provider(name: str, model: str = DEFAULT_MODEL) -> IModelProvider:
    """Resolve a provider by name (anthropic or echo)."""
    if name == "anthropic":
        return LLMProvider(model=model)
    if name == "echo":
        return EchoProvider()
    raise ConfigurationError(f"Unknown provider: {name}", provider=name)
