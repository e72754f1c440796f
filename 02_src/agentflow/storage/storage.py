"""SQLite storage implementation."""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import (
    BusMessage,
    HopRecord,
    RunResult,
    RunStatus,
    State,
    Topic,
    TraceEvent,
)


class IStorage(Protocol):
    """Persistent storage for observability data and finished runs (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        ...

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # BusMessages
    async def save_bus_message(self, message: BusMessage) -> None:
        """Save a bus message."""
        ...

    async def get_bus_messages(self, limit: int = 100) -> list[BusMessage]:
        """Get bus messages (newest first)."""
        ...

    # Runs
    async def save_run(self, result: RunResult) -> None:
        """Save a finished run."""
        ...

    async def get_run(self, event_id: str) -> RunResult | None:
        """Get a finished run by event id."""
        ...

    async def get_runs(
        self, status: RunStatus | None = None, limit: int = 100
    ) -> list[RunResult]:
        """Get finished runs (newest first)."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


def _ts(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


def _run_from_json(raw: str) -> RunResult:
    data = json.loads(raw)
    return RunResult(
        event_id=data["event_id"],
        status=RunStatus(data["status"]),
        state=State(data["state"]["fields"], data["state"]["metadata"]),
        started_at=_parse_ts(data["started_at"]),
        finished_at=_parse_ts(data["finished_at"]),
        hops=[
            HopRecord(
                agent=hop["agent"],
                started_at=_parse_ts(hop["started_at"]),
                finished_at=_parse_ts(hop["finished_at"]),
                next_agent=hop["next_agent"],
            )
            for hop in data["hops"]
        ],
        error=data["error"],
        error_kind=data["error_kind"],
        failed_agent=data["failed_agent"],
    )


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        # Read and execute schema
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        await self._conn.execute(
            """
            INSERT INTO trace_events (id, event_type, actor, data, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.id or str(uuid.uuid4()),
                event.event_type,
                event.actor,
                json.dumps(event.data, default=str),
                _ts(event.timestamp),
            ),
        )
        await self._conn.commit()

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        # Build query dynamically
        conditions = []
        params: list = []

        if after:
            conditions.append("timestamp > ?")
            params.append(_ts(after))
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC
            LIMIT ?
        """
        params.append(limit)

        cursor = await self._conn.execute(query, params)
        rows = await cursor.fetchall()

        return [
            TraceEvent(
                id=row[0],
                event_type=row[1],
                actor=row[2],
                data=json.loads(row[3]),
                timestamp=_parse_ts(row[4]),
            )
            for row in rows
        ]

    # BusMessages
    async def save_bus_message(self, message: BusMessage) -> None:
        """Save a bus message."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        await self._conn.execute(
            """
            INSERT INTO bus_messages (id, topic, payload, source, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                message.id or str(uuid.uuid4()),
                message.topic.value,
                json.dumps(message.payload, default=str),
                message.source,
                _ts(message.timestamp),
            ),
        )
        await self._conn.commit()

    async def get_bus_messages(self, limit: int = 100) -> list[BusMessage]:
        """Get bus messages (newest first)."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        cursor = await self._conn.execute(
            """
            SELECT id, topic, payload, source, timestamp
            FROM bus_messages
            ORDER BY timestamp DESC
            LIMIT ?
            """,
            (limit,),
        )
        rows = await cursor.fetchall()

        return [
            BusMessage(
                id=row[0],
                topic=Topic(row[1]),
                payload=json.loads(row[2]),
                source=row[3],
                timestamp=_parse_ts(row[4]),
            )
            for row in rows
        ]

    # Runs
    async def save_run(self, result: RunResult) -> None:
        """Save a finished run (replaces an earlier record for the same event)."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        await self._conn.execute(
            """
            INSERT OR REPLACE INTO runs
            (event_id, status, result, failed_agent, error_kind, finished_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                result.event_id,
                result.status.value,
                json.dumps(result.to_dict(), default=str),
                result.failed_agent,
                result.error_kind,
                _ts(result.finished_at),
            ),
        )
        await self._conn.commit()

    async def get_run(self, event_id: str) -> RunResult | None:
        """Get a finished run by event id."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        cursor = await self._conn.execute(
            "SELECT result FROM runs WHERE event_id = ?",
            (event_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return _run_from_json(row[0])

    async def get_runs(
        self, status: RunStatus | None = None, limit: int = 100
    ) -> list[RunResult]:
        """Get finished runs (newest first)."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        if status:
            cursor = await self._conn.execute(
                """
                SELECT result FROM runs
                WHERE status = ?
                ORDER BY finished_at DESC
                LIMIT ?
                """,
                (status.value, limit),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT result FROM runs ORDER BY finished_at DESC LIMIT ?",
                (limit,),
            )
        rows = await cursor.fetchall()

        return [_run_from_json(row[0]) for row in rows]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        for table in ["trace_events", "bus_messages", "runs"]:
            await self._conn.execute(f"DELETE FROM {table}")

        await self._conn.commit()
