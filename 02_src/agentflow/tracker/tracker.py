"""Tracker implementation for creating TraceEvents."""

import uuid
from datetime import datetime, timezone
from typing import Protocol

from ..event_bus import IEventBus
from ..models import BusMessage, Topic, TraceEvent
from ..storage import IStorage


class ITracker(Protocol):
    """Creating TraceEvents. Two channels: EventBus subscription + direct calls."""

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        ...

    async def start(self) -> None:
        """Subscribe to EventBus topics."""
        ...

    async def stop(self) -> None:
        """Unsubscribe from EventBus."""
        ...


class Tracker:
    """Creates TraceEvents via EventBus subscription and direct track() calls."""

    def __init__(self, event_bus: IEventBus, storage: IStorage):
        self._event_bus = event_bus
        self._storage = storage
        self._subscribed = False

    async def start(self) -> None:
        """Subscribe to all EventBus topics."""
        if self._subscribed:
            return
        for topic in Topic:
            self._event_bus.subscribe(topic, self._handle_bus_message)
        self._subscribed = True

    async def stop(self) -> None:
        """Unsubscribe from all EventBus topics."""
        if not self._subscribed:
            return
        for topic in Topic:
            self._event_bus.unsubscribe(topic, self._handle_bus_message)
        self._subscribed = False

    async def _handle_bus_message(self, bus_message: BusMessage) -> None:
        """Turn a runner lifecycle message into a TraceEvent."""
        payload = dict(bus_message.payload)

        # Hop events are attributed to the agent that ran
        if bus_message.topic == Topic.HOP_COMPLETED and payload.get("agent"):
            actor = f"agent:{payload['agent']}"
        else:
            actor = bus_message.source

        await self.track(
            event_type=bus_message.topic.value,
            actor=actor,
            data=payload,
        )

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        trace_event = TraceEvent(
            id=str(uuid.uuid4()),
            event_type=event_type,
            actor=actor,
            data=data,
            timestamp=datetime.now(timezone.utc),
        )
        await self._storage.save_trace_event(trace_event)
