"""Application bootstrap and lifecycle management."""

from typing import Any, Protocol

from .config import Settings
from .event_bus import EventBus
from .llm import IModelProvider, create_provider
from .logging_config import get_logger
from .models import ROUTE_METADATA_KEY, Event, RunResult
from .processing import ProcessingLayer, build_agents
from .router import Router
from .runner import Runner
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...

    async def process(
        self,
        text: str,
        route: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> RunResult:
        """Emit one event and wait for its result."""
        ...

    @property
    def storage(self) -> IStorage:
        """Storage handle for runs and trace events."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        settings: Settings | None = None,
        db_path: str | None = None,
        llm_provider: IModelProvider | None = None,
    ):
        self._settings = settings or Settings.from_env()
        self._db_path = db_path if db_path is not None else self._settings.database_url
        self._provided_llm = llm_provider

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._event_bus: EventBus | None = None
        self._tracker: ITracker | None = None
        self._llm: IModelProvider | None = None
        self._processing_layer: ProcessingLayer | None = None
        self._runner: Runner | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")
        try:
            await self._start_components()
        except Exception:
            logger.exception("Application startup failed, rolling back")
            await self.stop()
            raise
        logger.info("All components initialized successfully")

    async def _start_components(self) -> None:
        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. EventBus (depends on Storage for persistence)
        self._event_bus = EventBus(self._storage)

        # 3. Tracker (depends on EventBus + Storage)
        self._tracker = Tracker(self._event_bus, self._storage)
        await self._tracker.start()

        # 4. Model provider (no internal dependencies)
        self._llm = self._provided_llm or create_provider(
            self._settings.provider, model=self._settings.model
        )
        logger.info("Model provider initialized: %s", type(self._llm).__name__)

        # 5. Agents, wired along the configured chain
        self._processing_layer = build_agents(self._llm, self._settings.chain)

        # 6. Runner (depends on agents, EventBus, Storage)
        await self._start_runner()

    async def _start_runner(self) -> None:
        self._runner = Runner(
            agents=self._processing_layer,
            router=Router(),
            event_bus=self._event_bus,
            storage=self._storage,
            default_route=self._settings.start_route,
            max_hops=self._settings.max_hops,
            run_timeout=self._settings.run_timeout,
            workers=self._settings.workers,
        )
        await self._runner.start()

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._runner:
            await self._runner.stop()
        if self._tracker:
            await self._tracker.stop()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        # 1. Drain and stop the current runner
        if self._runner:
            await self._runner.stop()

        # 2. Clear storage
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

        # 3. Runners cannot restart, so build a fresh one
        if self._processing_layer is not None:
            await self._start_runner()
            logger.info("Reset complete")

    async def process(
        self,
        text: str,
        route: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> RunResult:
        """Emit one event carrying ``text`` as input and wait for its result.

        ``text`` is also the initial ``message``, so a route naming a later
        agent in the chain starts from the raw input.
        """
        payload = dict(data or {})
        payload["input"] = text
        payload.setdefault("message", text)
        metadata = {ROUTE_METADATA_KEY: route} if route else {}
        event = Event.create(source="application", data=payload, metadata=metadata)
        return await self.runner.run(event)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def runner(self) -> Runner:
        """Get runner instance."""
        if not self._runner:
            raise RuntimeError("Application not started")
        return self._runner

    @property
    def tracker(self) -> ITracker:
        """Get tracker instance."""
        if not self._tracker:
            raise RuntimeError("Application not started")
        return self._tracker

    @property
    def processing_layer(self) -> ProcessingLayer:
        """Get processing layer instance."""
        if self._processing_layer is None:
            raise RuntimeError("Application not started")
        return self._processing_layer
