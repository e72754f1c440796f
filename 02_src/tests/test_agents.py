"""Tests for built-in agents and the ProcessingLayer."""

from unittest.mock import AsyncMock

import pytest

from agentflow.errors import CapabilityError, ConfigurationError, UnknownAgentError, ValidationError
from agentflow.llm import EchoProvider, Response
from agentflow.models import ROUTE_METADATA_KEY, Event, RunStatus, State
from agentflow.processing import (
    EnhancerAgent,
    FormatterAgent,
    ProcessingLayer,
    ProcessorAgent,
    build_agents,
)
from agentflow.runner import Runner


def _event(data=None):
    return Event.create("test", data or {}, {ROUTE_METADATA_KEY: "processor"})


class TestProcessorAgent:
    """Tests for ProcessorAgent."""

    @pytest.mark.asyncio
    async def test_run_writes_processed_and_routes(self, mock_llm):
        """Test output fields and routing directive."""
        agent = ProcessorAgent("processor", mock_llm, next_agent="enhancer")
        result = await agent.run(_event({"input": "Explain qubits"}), State())

        out = result.output_state
        assert out.get("processed") == "Test response"
        assert out.get("message") == "Test response"
        assert out.get_meta(ROUTE_METADATA_KEY) == "enhancer"

    @pytest.mark.asyncio
    async def test_prompt_contents(self, mock_llm):
        """Test the prompt sent to the provider."""
        agent = ProcessorAgent("processor", mock_llm)
        await agent.run(_event({"input": "Explain qubits"}), State())

        prompt = mock_llm.call.call_args.args[0]
        assert "processor agent" in prompt.system
        assert prompt.user.endswith("Explain qubits")

    @pytest.mark.asyncio
    async def test_falls_back_to_state_input(self, mock_llm):
        """Test that input can come from state when the event has none."""
        agent = ProcessorAgent("processor", mock_llm)
        result = await agent.run(_event(), State({"input": "from state"}))

        assert result.output_state.get("processed") == "Test response"
        assert mock_llm.call.call_args.args[0].user.endswith("from state")

    @pytest.mark.asyncio
    async def test_missing_input_raises_validation_error(self, mock_llm):
        """Test that a missing input is a ValidationError."""
        agent = ProcessorAgent("processor", mock_llm)

        with pytest.raises(ValidationError) as exc_info:
            await agent.run(_event(), State())

        assert exc_info.value.agent == "processor"
        mock_llm.call.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_next_agent_ends_chain(self, mock_llm):
        """Test that without a next agent no directive is written."""
        agent = ProcessorAgent("processor", mock_llm)
        result = await agent.run(_event({"input": "x"}), State())
        assert result.output_state.get_meta(ROUTE_METADATA_KEY) is None


class TestEnhancerAgent:
    """Tests for EnhancerAgent."""

    @pytest.mark.asyncio
    async def test_reads_processed(self, mock_llm):
        """Test that enhancer prefers the processed field."""
        agent = EnhancerAgent("enhancer", mock_llm, next_agent="formatter")
        result = await agent.run(
            _event(), State({"processed": "facts", "message": "other"})
        )

        assert mock_llm.call.call_args.args[0].user.endswith("facts")
        assert result.output_state.get("enhanced") == "Test response"
        assert result.output_state.get_meta(ROUTE_METADATA_KEY) == "formatter"

    @pytest.mark.asyncio
    async def test_falls_back_to_message(self, mock_llm):
        """Test the message fallback."""
        agent = EnhancerAgent("enhancer", mock_llm)
        await agent.run(_event(), State({"message": "msg"}))
        assert mock_llm.call.call_args.args[0].user.endswith("msg")

    @pytest.mark.asyncio
    async def test_missing_data(self, mock_llm):
        """Test that neither processed nor message is a ValidationError."""
        agent = EnhancerAgent("enhancer", mock_llm)
        with pytest.raises(ValidationError, match="processed or message"):
            await agent.run(_event(), State())


class TestFormatterAgent:
    """Tests for FormatterAgent."""

    @pytest.mark.asyncio
    async def test_writes_final_response(self, mock_llm):
        """Test that formatter writes final_response and ends the chain."""
        agent = FormatterAgent("formatter", mock_llm)
        result = await agent.run(_event(), State({"enhanced": "rich"}))

        assert result.output_state.get("final_response") == "Test response"
        assert result.output_state.get_meta(ROUTE_METADATA_KEY) is None

    @pytest.mark.asyncio
    async def test_provider_failure_is_capability_error(self, mock_llm):
        """Test that provider errors become CapabilityError tagged with the agent."""
        mock_llm.call = AsyncMock(side_effect=ConnectionError("network down"))
        agent = FormatterAgent("formatter", mock_llm)

        with pytest.raises(CapabilityError) as exc_info:
            await agent.run(_event(), State({"enhanced": "rich"}))

        assert exc_info.value.agent == "formatter"
        assert exc_info.value.kind == "capability"

    @pytest.mark.asyncio
    async def test_provider_capability_error_gets_agent(self, mock_llm):
        """Test that a CapabilityError from the provider is tagged, not rewrapped."""
        original = CapabilityError("LLM API error: overloaded")
        mock_llm.call = AsyncMock(side_effect=original)
        agent = FormatterAgent("formatter", mock_llm)

        with pytest.raises(CapabilityError) as exc_info:
            await agent.run(_event(), State({"enhanced": "rich"}))

        assert exc_info.value is original
        assert exc_info.value.agent == "formatter"


class TestProcessingLayer:
    """Tests for ProcessingLayer and build_agents()."""

    def test_register_and_get(self, mock_llm):
        """Test registering and looking up agents."""
        layer = ProcessingLayer()
        agent = ProcessorAgent("processor", mock_llm)
        layer.register_agent(agent)

        assert layer.get("processor") is agent
        assert "processor" in layer
        assert len(layer) == 1

    def test_get_unknown_fails_closed(self):
        """Test that unknown names raise UnknownAgentError."""
        with pytest.raises(UnknownAgentError):
            ProcessingLayer().get("ghost")

    def test_duplicate_name_rejected(self, mock_llm):
        """Test that an agent name can only be registered once."""
        layer = ProcessingLayer([ProcessorAgent("processor", mock_llm)])
        with pytest.raises(ConfigurationError):
            layer.register_agent(ProcessorAgent("processor", mock_llm))

    def test_agents_view_is_read_only(self, mock_llm):
        """Test that the agents mapping cannot be modified."""
        layer = ProcessingLayer([ProcessorAgent("processor", mock_llm)])
        with pytest.raises(TypeError):
            layer.agents["other"] = None

    def test_build_agents_wires_chain(self, mock_llm):
        """Test that each agent routes to the next one in the chain."""
        layer = build_agents(mock_llm, ("processor", "enhancer", "formatter"))

        assert layer.get("processor").next_agent == "enhancer"
        assert layer.get("enhancer").next_agent == "formatter"
        assert layer.get("formatter").next_agent is None

    def test_build_agents_custom_order(self, mock_llm):
        """Test a shorter chain."""
        layer = build_agents(mock_llm, ["processor", "formatter"])
        assert layer.get("processor").next_agent == "formatter"
        assert "enhancer" not in layer

    def test_build_agents_unknown_name(self, mock_llm):
        """Test that unknown names in the chain are a configuration error."""
        with pytest.raises(ConfigurationError, match="summarizer"):
            build_agents(mock_llm, ["processor", "summarizer"])

    def test_build_agents_duplicate_name(self, mock_llm):
        """Test that repeated names in the chain are rejected."""
        with pytest.raises(ConfigurationError):
            build_agents(mock_llm, ["processor", "processor"])


class TestBuiltInChain:
    """End-to-end run of the built-in agents with the echo provider."""

    @pytest.mark.asyncio
    async def test_demo_chain(self):
        """Test processor -> enhancer -> formatter over EchoProvider."""
        provider = EchoProvider()
        layer = build_agents(provider, ("processor", "enhancer", "formatter"))

        async with Runner(agents=layer) as runner:
            result = await runner.run(
                Event.create(
                    "test",
                    {"input": "Explain quantum computing in simple terms"},
                    {ROUTE_METADATA_KEY: "processor"},
                )
            )

        assert result.status == RunStatus.COMPLETED
        assert result.agents == ["processor", "enhancer", "formatter"]
        assert len(provider.calls) == 3
        final = result.state.get("final_response")
        assert final.startswith("Format this response")
        assert final.endswith("Explain quantum computing in simple terms")
        assert result.state.get("message") == final
        assert result.state.get("processed")
        assert result.state.get("enhanced")

    @pytest.mark.asyncio
    async def test_provider_failure_fails_run(self, mock_llm):
        """Test that a provider failure mid-chain keeps earlier output."""
        mock_llm.call = AsyncMock(
            side_effect=[Response(content="step one"), RuntimeError("rate limited")]
        )
        layer = build_agents(mock_llm, ("processor", "enhancer", "formatter"))

        async with Runner(agents=layer) as runner:
            result = await runner.run(_event({"input": "x"}))

        assert result.status == RunStatus.FAILED
        assert result.error_kind == "capability"
        assert result.failed_agent == "enhancer"
        assert result.state.get("processed") == "step one"
        assert result.agents == ["processor"]
        assert mock_llm.call.await_count == 2
