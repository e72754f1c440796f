"""Built-in agents."""

from .base import IAgent, LLMAgent
from .enhancer import EnhancerAgent
from .formatter import FormatterAgent
from .processor import ProcessorAgent

__all__ = [
    "IAgent",
    "LLMAgent",
    "ProcessorAgent",
    "EnhancerAgent",
    "FormatterAgent",
]
