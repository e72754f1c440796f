"""Processor agent: extracts and organizes key information from the request."""

from typing import Any

from ...errors import ValidationError
from ...models import Event, State
from .base import LLMAgent


class ProcessorAgent(LLMAgent):
    """First step of the default chain."""

    system_prompt = (
        "You are a processor agent. "
        "Extract and organize key information from user requests."
    )
    input_keys = ("input",)
    output_key = "processed"

    def read_input(self, event: Event, state: State) -> Any:
        # The triggering event wins over state on the first hop
        value = event.data.get("input")
        if value is None:
            value = state.get("input")
        if not isinstance(value, str) or not value:
            raise ValidationError("no input provided", agent=self.name)
        return value

    def build_user_prompt(self, value: Any) -> str:
        return f"Process this request and extract key information: {value}"
