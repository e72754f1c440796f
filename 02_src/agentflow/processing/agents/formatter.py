"""Formatter agent."""

from typing import Any

from .base import LLMAgent


class FormatterAgent(LLMAgent):
    """Presents the enhanced result; last step of the default chain."""

    system_prompt = (
        "You are a formatter agent. "
        "Present information in a clear, professional, and well-structured manner."
    )
    input_keys = ("enhanced", "message")
    output_key = "final_response"

    def build_user_prompt(self, value: Any) -> str:
        return f"Format this response in a clear, professional manner: {value}"
