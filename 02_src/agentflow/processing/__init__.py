"""Processing module."""

from .agents import EnhancerAgent, FormatterAgent, IAgent, LLMAgent, ProcessorAgent
from .layer import AGENT_TYPES, IProcessingLayer, ProcessingLayer, build_agents

__all__ = [
    "AGENT_TYPES",
    "EnhancerAgent",
    "FormatterAgent",
    "IAgent",
    "IProcessingLayer",
    "LLMAgent",
    "ProcessingLayer",
    "ProcessorAgent",
    "build_agents",
]
