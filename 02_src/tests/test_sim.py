"""Tests for the SIM traffic generator."""

import json
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from sim import SCENARIO, Sim


@pytest.fixture
def fake_api(monkeypatch):
    """Route SIM HTTP calls to an in-process handler."""
    received = []
    real_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        received.append(body)
        if body["input"] == "boom":
            return httpx.Response(500, json={"detail": "error"})
        return httpx.Response(
            200,
            json={
                "event_id": f"e{len(received)}",
                "status": "completed",
                "hops": [{"agent": body.get("route") or "processor"}],
            },
        )

    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(
        "sim.sim.httpx.AsyncClient", lambda: real_client(transport=transport)
    )
    return received


class TestSim:
    """Tests for Sim scenario runs."""

    @pytest.mark.asyncio
    async def test_runs_scenario(self, fake_api):
        """Test that every scenario item is posted and recorded."""
        tracker = Mock()
        tracker.track = AsyncMock()
        sim = Sim(tracker=tracker, delay_range=(0.0, 0.0))

        await sim.start()
        await sim._task
        await sim.stop()

        assert fake_api == SCENARIO
        assert [r["status"] for r in sim.results] == ["completed"] * len(SCENARIO)
        assert not sim.running

        event_types = [c.args[0] for c in tracker.track.await_args_list]
        assert event_types == ["sim_started", "sim_completed"]
        assert tracker.track.await_args_list[-1].args[2]["sent"] == len(SCENARIO)

    @pytest.mark.asyncio
    async def test_error_responses_not_recorded(self, fake_api):
        """Test that non-200 responses are skipped."""
        sim = Sim(
            scenario=[{"input": "boom"}, {"input": "fine", "route": "formatter"}],
            delay_range=(0.0, 0.0),
        )

        await sim.start()
        await sim._task
        await sim.stop()

        assert len(fake_api) == 2
        assert [r["hops"][0]["agent"] for r in sim.results] == ["formatter"]

    @pytest.mark.asyncio
    async def test_stop_before_finish(self, fake_api):
        """Test that stop() cancels a running scenario."""
        sim = Sim(delay_range=(10.0, 10.0))

        await sim.start()
        await sim.stop()

        assert not sim.running
        assert len(fake_api) <= 1
