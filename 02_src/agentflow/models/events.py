"""Event model: the immutable trigger of a pipeline run."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping

ROUTE_METADATA_KEY = "route"


@dataclass(frozen=True)
class Event:
    """An immutable envelope carrying initial input data and routing hints."""

    id: str
    data: Mapping[str, Any]
    metadata: Mapping[str, str]
    source: str = "external"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        # Freeze copies so callers cannot mutate the event after creation
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def __hash__(self) -> int:
        return hash(self.id)

    @classmethod
    def create(
        cls,
        source: str,
        data: Mapping[str, Any] | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> "Event":
        """Create an event with a fresh unique id."""
        return cls(
            id=str(uuid.uuid4()),
            data=data or {},
            metadata=metadata or {},
            source=source,
        )

    @property
    def route(self) -> str | None:
        """Starting agent requested by the producer, if any."""
        return self.metadata.get(ROUTE_METADATA_KEY) or None
