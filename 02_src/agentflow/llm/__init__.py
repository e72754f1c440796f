"""LLM module."""

from .llm_provider import (
    EchoProvider,
    IModelProvider,
    LLMProvider,
    Prompt,
    Response,
    create_provider,
)

__all__ = [
    "EchoProvider",
    "IModelProvider",
    "LLMProvider",
    "Prompt",
    "Response",
    "create_provider",
]
