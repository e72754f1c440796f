"""Runner: event lifecycle and sequential hop dispatch."""

import asyncio
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Protocol

from ..errors import (
    AgentError,
    NotRunningError,
    RoutingLoopError,
    RunCancelledError,
    RunTimeoutError,
    UnknownAgentError,
)
from ..event_bus import IEventBus
from ..logging_config import get_event_logger, get_logger
from ..models import (
    AgentResult,
    BusMessage,
    Event,
    HopRecord,
    RunResult,
    RunStatus,
    State,
    Topic,
)
from ..processing import IAgent, ProcessingLayer
from ..router import IRouter, Router
from ..storage import IStorage

logger = get_logger(__name__)


class RunnerState(str, Enum):
    """Runner lifecycle."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class IRunner(Protocol):
    """Routes emitted events through registered agents."""

    async def start(self) -> None:
        """Begin accepting events."""
        ...

    def emit(self, event: Event) -> "asyncio.Future[RunResult]":
        """Enqueue an event; returns its completion future."""
        ...

    async def stop(self, grace_period: float | None = None) -> None:
        """Stop accepting events and drain in-flight runs."""
        ...


@dataclass
class _Run:
    """Mutable progress of one event's chain, visible after failure."""

    state: State
    hops: list[HopRecord] = field(default_factory=list)
    current_agent: str | None = None
    stopped: bool = False


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Runner:
    """Runs each event's chain sequentially; distinct events run concurrently."""

    def __init__(
        self,
        agents: ProcessingLayer | Mapping[str, IAgent],
        router: IRouter | None = None,
        event_bus: IEventBus | None = None,
        storage: IStorage | None = None,
        default_route: str | None = None,
        max_hops: int = 16,
        run_timeout: float | None = None,
        workers: int = 4,
        max_results: int = 1000,
    ):
        if max_hops < 1:
            raise ValueError("max_hops must be at least 1")
        if workers < 1:
            raise ValueError("workers must be at least 1")
        if max_results < 1:
            raise ValueError("max_results must be at least 1")

        if isinstance(agents, ProcessingLayer):
            agents.freeze()
            self._agents = agents.agents
        else:
            self._agents = MappingProxyType(dict(agents))

        self._router = router or Router()
        self._event_bus = event_bus
        self._storage = storage
        self._default_route = default_route
        self._max_hops = max_hops
        self._run_timeout = run_timeout
        self._worker_count = workers
        self._max_results = max_results

        self._state = RunnerState.IDLE
        self._queue: asyncio.Queue[Event] | None = None
        self._workers: list[asyncio.Task] = []
        self._futures: dict[str, asyncio.Future[RunResult]] = {}
        self._inflight: dict[str, asyncio.Task] = {}
        # Most recent finished runs; older ones are only in storage
        self._results: OrderedDict[str, RunResult] = OrderedDict()

    # Lifecycle
    @property
    def state(self) -> RunnerState:
        return self._state

    @property
    def agents(self) -> Mapping[str, IAgent]:
        return self._agents

    @property
    def results(self) -> Mapping[str, RunResult]:
        """Most recent finished runs by event id (at most ``max_results``)."""
        return MappingProxyType(self._results)

    @property
    def pending(self) -> int:
        """Events emitted but not finished."""
        return len(self._futures)

    async def start(self) -> None:
        """Start worker tasks and begin accepting events."""
        if self._state is RunnerState.RUNNING:
            return
        if self._state is not RunnerState.IDLE:
            raise NotRunningError("Runner cannot be restarted after stop")

        self._queue = asyncio.Queue()
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"agentflow-worker-{i}")
            for i in range(self._worker_count)
        ]
        self._state = RunnerState.RUNNING
        logger.info(
            "Runner started with %s workers and agents: %s",
            self._worker_count,
            ", ".join(self._agents),
        )

    def emit(self, event: Event) -> "asyncio.Future[RunResult]":
        """Enqueue an event for processing.

        Returns a future resolved with the RunResult once the chain ends.
        Raises NotRunningError before start() or after stop().
        """
        # No await between the check and the enqueue
        if self._state is not RunnerState.RUNNING or self._queue is None:
            raise NotRunningError(
                f"Runner is {self._state.value}", event_id=event.id
            )
        if event.id in self._futures:
            raise ValueError(f"Event {event.id} is already pending")

        future: asyncio.Future[RunResult] = asyncio.get_running_loop().create_future()
        self._futures[event.id] = future
        self._queue.put_nowait(event)
        logger.debug("Event %s queued (route: %s)", event.id, event.route)
        return future

    async def run(self, event: Event) -> RunResult:
        """Emit an event and wait for its result."""
        return await self.emit(event)

    async def wait(self, event_id: str) -> RunResult:
        """Wait for a previously emitted event.

        Runs evicted from ``results`` are read back from storage when one is
        configured.
        """
        if event_id in self._results:
            return self._results[event_id]
        future = self._futures.get(event_id)
        if future is not None:
            return await asyncio.shield(future)
        if self._storage is not None:
            stored = await self._storage.get_run(event_id)
            if stored is not None:
                return stored
        raise KeyError(f"Unknown event: {event_id}")

    def cancel(self, event_id: str) -> bool:
        """Cancel an in-flight chain. Its result status becomes cancelled."""
        task = self._inflight.get(event_id)
        if task is None or task.done():
            return False
        return task.cancel()

    async def stop(self, grace_period: float | None = 30.0) -> None:
        """Stop accepting events; finish current hops, start no new ones.

        Queued events that were never dispatched resolve as stopped. Hops
        still running after ``grace_period`` seconds are cancelled.
        """
        if self._state is RunnerState.IDLE:
            self._state = RunnerState.STOPPED
            return
        if self._state is not RunnerState.RUNNING:
            return

        self._state = RunnerState.STOPPING
        logger.info("Runner stopping (%s pending)", self.pending)

        assert self._queue is not None
        try:
            await asyncio.wait_for(self._queue.join(), timeout=grace_period)
        except asyncio.TimeoutError:
            logger.warning(
                "Grace period expired, cancelling %s in-flight runs",
                len(self._inflight),
            )
            for task in list(self._inflight.values()):
                task.cancel()
            await self._queue.join()

        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self._state = RunnerState.STOPPED
        logger.info("Runner stopped")

    async def __aenter__(self) -> "Runner":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    # Dispatch
    async def _worker(self, index: int) -> None:
        assert self._queue is not None
        while True:
            event = await self._queue.get()
            try:
                if self._state is RunnerState.RUNNING:
                    result = await self._dispatch(event)
                else:
                    now = _now()
                    result = RunResult(
                        event_id=event.id,
                        status=RunStatus.STOPPED,
                        state=self._initial_state(event),
                        started_at=now,
                        finished_at=now,
                    )
                await self._finish(event, result)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Worker %s failed to finish event %s", index, event.id)
                self._resolve(
                    event.id,
                    RunResult(
                        event_id=event.id,
                        status=RunStatus.FAILED,
                        state=self._initial_state(event),
                        started_at=_now(),
                        finished_at=_now(),
                        error="internal runner error",
                        error_kind=AgentError.kind,
                    ),
                )
            finally:
                self._queue.task_done()

    async def _dispatch(self, event: Event) -> RunResult:
        # Each chain runs in its own task so it can be cancelled on its own
        task = asyncio.create_task(self._process(event))
        self._inflight[event.id] = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            self._inflight.pop(event.id, None)

        if task.cancelled():
            # Cancelled before its first step ran
            now = _now()
            return RunResult(
                event_id=event.id,
                status=RunStatus.CANCELLED,
                state=self._initial_state(event),
                started_at=now,
                finished_at=now,
                error="Run cancelled",
                error_kind=RunCancelledError.kind,
            )
        return task.result()

    def _initial_state(self, event: Event) -> State:
        metadata = {
            key: value
            for key, value in event.metadata.items()
            if key != self._router.metadata_key
        }
        return State(fields=dict(event.data), metadata=metadata)

    async def _process(self, event: Event) -> RunResult:
        log = get_event_logger(__name__, event_id=event.id)
        run = _Run(state=self._initial_state(event))
        started_at = _now()
        status = RunStatus.COMPLETED
        error: AgentError | None = None

        try:
            await self._publish(
                Topic.RUN_STARTED,
                {"event_id": event.id, "route": event.route, "source": event.source},
            )
            await asyncio.wait_for(self._run_chain(event, run), timeout=self._run_timeout)
        except AgentError as e:
            status, error = RunStatus.FAILED, e
        except asyncio.TimeoutError:
            status = RunStatus.FAILED
            error = RunTimeoutError(
                f"Run exceeded {self._run_timeout}s", agent=run.current_agent
            )
        except asyncio.CancelledError:
            status = RunStatus.CANCELLED
            error = RunCancelledError("Run cancelled", agent=run.current_agent)
        except Exception as e:
            log.exception("Unexpected runner error")
            status = RunStatus.FAILED
            error = AgentError(str(e) or type(e).__name__, agent=run.current_agent)

        if error is None and run.stopped:
            status = RunStatus.STOPPED

        if error is not None:
            log.error(
                "Run failed at agent %s (%s): %s",
                error.agent,
                error.kind,
                error.message,
                extra={"context": {"agent": error.agent, "kind": error.kind}},
            )
        else:
            log.info("Run %s after %s hops", status.value, len(run.hops))

        return RunResult(
            event_id=event.id,
            status=status,
            state=run.state,
            started_at=started_at,
            finished_at=_now(),
            hops=run.hops,
            error=error.message if error else None,
            error_kind=error.kind if error else None,
            failed_agent=error.agent if error else None,
        )

    async def _run_chain(self, event: Event, run: _Run) -> None:
        name = event.route or self._default_route
        if not name:
            raise UnknownAgentError("Event has no route and no default route is set")

        while True:
            if self._state is not RunnerState.RUNNING:
                run.stopped = True
                return
            if len(run.hops) >= self._max_hops:
                raise RoutingLoopError(
                    f"Exceeded {self._max_hops} hops", agent=name, hops=len(run.hops)
                )

            agent = self._agents.get(name)
            if agent is None:
                raise UnknownAgentError(f"Unknown agent: {name}", agent=name)

            run.current_agent = name
            started_at = _now()
            output = await self._invoke(agent, name, event, run.state.clone())

            next_name, has_next = self._router.next_agent(output)
            run.state.merge(output, exclude_meta=(self._router.metadata_key,))
            run.hops.append(
                HopRecord(
                    agent=name,
                    started_at=started_at,
                    finished_at=_now(),
                    next_agent=next_name,
                )
            )
            run.current_agent = None

            await self._publish(
                Topic.HOP_COMPLETED,
                {"event_id": event.id, "agent": name, "next_agent": next_name},
            )

            if not has_next:
                return
            name = next_name

    async def _invoke(
        self, agent: IAgent, name: str, event: Event, state: State
    ) -> State:
        try:
            result = await agent.run(event, state)
        except AgentError as e:
            if e.agent is None:
                e.agent = name
            raise
        except Exception as e:
            raise AgentError(str(e) or type(e).__name__, agent=name) from e

        if not isinstance(result, AgentResult) or not isinstance(
            result.output_state, State
        ):
            raise AgentError("Agent returned no output state", agent=name)
        return result.output_state

    async def _finish(self, event: Event, result: RunResult) -> None:
        self._results[event.id] = result
        while len(self._results) > self._max_results:
            self._results.popitem(last=False)
        try:
            if self._storage is not None:
                await self._storage.save_run(result)
            await self._publish(
                Topic.RUN_FINISHED,
                {
                    "event_id": event.id,
                    "status": result.status.value,
                    "agents": result.agents,
                    "error": result.error,
                    "error_kind": result.error_kind,
                    "failed_agent": result.failed_agent,
                },
            )
        finally:
            self._resolve(event.id, result)

    def _resolve(self, event_id: str, result: RunResult) -> None:
        future = self._futures.pop(event_id, None)
        if future is not None and not future.done():
            future.set_result(result)

    async def _publish(self, topic: Topic, payload: dict) -> None:
        if self._event_bus is None:
            return
        await self._event_bus.publish(
            BusMessage(
                id=str(uuid.uuid4()),
                topic=topic,
                payload=payload,
                source="runner",
                timestamp=_now(),
            )
        )
