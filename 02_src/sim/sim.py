"""SIM implementation - hardcoded scenario for exercising the pipeline."""

import asyncio
import random
from typing import Protocol

import httpx

from agentflow.logging_config import get_logger
from agentflow.tracker import ITracker

logger = get_logger(__name__)

SCENARIO = [
    {"input": "Explain quantum computing in simple terms", "route": "processor"},
    {"input": "Summarize how public key cryptography works", "route": "processor"},
    {"input": "List three benefits of unit testing", "route": "processor"},
]


class ISim(Protocol):
    """Generate test traffic. Hardcoded scenario."""

    async def start(self) -> None:
        """Start hardcoded scenario."""
        ...

    async def stop(self) -> None:
        """Stop scenario."""
        ...


class Sim:
    """SIM with hardcoded scenario for testing."""

    def __init__(
        self,
        api_url: str = "http://localhost:8000",
        tracker: ITracker | None = None,
        scenario: list[dict] | None = None,
        delay_range: tuple[float, float] = (1.0, 3.0),
    ):
        self._api_url = api_url
        self._tracker = tracker
        self._scenario = scenario if scenario is not None else SCENARIO
        self._delay_range = delay_range
        self._running = False
        self._task: asyncio.Task | None = None
        self._client: httpx.AsyncClient | None = None
        self.results: list[dict] = []

    def set_tracker(self, tracker: ITracker) -> None:
        """Inject tracker for SIM trace events."""
        self._tracker = tracker

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start hardcoded scenario."""
        if self._running:
            return

        self._running = True
        self._client = httpx.AsyncClient()

        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop scenario."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._client:
            await self._client.aclose()
            self._client = None

    async def _run_scenario(self) -> None:
        """Run hardcoded scenario."""
        try:
            if self._tracker:
                await self._tracker.track(
                    "sim_started",
                    "sim",
                    {"scenario": "hardcoded", "event_count": len(self._scenario)},
                )

            for item in self._scenario:
                if not self._running:
                    break

                await self._send_event(item)
                await asyncio.sleep(random.uniform(*self._delay_range))

        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            self._running = False
            if self._tracker:
                await self._tracker.track(
                    "sim_completed",
                    "sim",
                    {
                        "scenario": "hardcoded",
                        "event_count": len(self._scenario),
                        "sent": len(self.results),
                    },
                )

    async def _send_event(self, item: dict) -> None:
        """Emit an event via HTTP API and record the run result."""
        if not self._client:
            return

        try:
            response = await self._client.post(
                f"{self._api_url}/api/events",
                json=item,
                timeout=120.0,
            )
        except httpx.HTTPError as e:
            logger.error("SIM: Failed to emit event: %s", e)
            return

        if response.status_code == 200:
            data = response.json()
            self.results.append(data)
            logger.info(
                "SIM: %s -> %s (%s)",
                item["input"],
                data.get("status"),
                " -> ".join(hop["agent"] for hop in data.get("hops", [])),
            )
        else:
            logger.error("SIM: Error emitting event: %s", response.status_code)
