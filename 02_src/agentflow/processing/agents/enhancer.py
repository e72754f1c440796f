"""Enhancer agent."""

from typing import Any

from .base import LLMAgent


class EnhancerAgent(LLMAgent):
    """Adds insights and context to the processed result."""

    system_prompt = (
        "You are an enhancer agent. "
        "Add insights, context, and additional valuable information."
    )
    input_keys = ("processed", "message")
    output_key = "enhanced"

    def build_user_prompt(self, value: Any) -> str:
        return f"Enhance this response with additional insights: {value}"
