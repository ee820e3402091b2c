"""
Embedded durable event store on SQLite.

Events are kept in a single ``event`` table keyed by the 32-byte event id.
Insertion is a single ``INSERT OR IGNORE`` so that idempotence is decided
by the engine and never by a check-then-insert race. Reads translate an
[EventFilter][notebrotr.models.filter.EventFilter] into a parameterized
``WHERE`` clause.

One ``aiosqlite`` connection is shared by readers and the writer. Writes
are serialized by an ``asyncio.Lock``; WAL journaling lets readers see a
consistent snapshot while a write is in flight.

See Also:
    [Event][notebrotr.models.event.Event]: Row conversion through
        ``to_db_params()`` / ``from_db_params()``.
    [Ingester][notebrotr.services.ingester.Ingester]: The only writer.
    [Api][notebrotr.services.api.Api]: Queries the store concurrently with
        ingestion.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Any, Literal, Self

import aiosqlite
from nostr_sdk import NostrSdkError
from pydantic import BaseModel, Field, field_validator

from notebrotr.models import Event, EventDbParams, EventFilter, Order

from .exceptions import StorageQueryError, StorageUnavailableError, StorageWriteError
from .logger import Logger
from .yaml import load_yaml


if TYPE_CHECKING:
    from collections.abc import Awaitable


_MIN_TIMEOUT_SECONDS = 0.1

_SCHEMA: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS event (
        id BLOB PRIMARY KEY,
        pubkey BLOB NOT NULL,
        created_at INTEGER NOT NULL,
        kind INTEGER NOT NULL,
        tags TEXT NOT NULL,
        content TEXT NOT NULL,
        sig BLOB NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_event_kind_created_at ON event (kind, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_event_pubkey_created_at ON event (pubkey, created_at)",
)

_COLUMNS = "id, pubkey, created_at, kind, tags, content, sig"


# ---------------------------------------------------------------------------
# Configuration Models
# ---------------------------------------------------------------------------


class StoreTimeoutsConfig(BaseModel):
    """Timeout settings for store operations (in seconds).

    Each timeout can be None for no limit or a float >= 0.1 seconds.
    """

    query: float | None = Field(default=10.0, description="Read timeout (seconds, None=infinite)")
    write: float | None = Field(default=10.0, description="Write timeout (seconds, None=infinite)")

    @field_validator("query", "write", mode="after")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        """Validate timeout: None (infinite) or >= 0.1 seconds."""
        if v is not None and v < _MIN_TIMEOUT_SECONDS:
            raise ValueError(
                f"Timeout must be None (infinite) or >= {_MIN_TIMEOUT_SECONDS} seconds"
            )
        return v


class StoreConfig(BaseModel):
    """Location and tuning of the embedded database."""

    path: str = Field(default="notebrotr.db", min_length=1, description="Database file path")
    journal_mode: Literal["WAL", "DELETE", "TRUNCATE", "MEMORY"] = Field(
        default="WAL", description="SQLite journal mode"
    )
    busy_timeout_ms: int = Field(
        default=5000, ge=0, description="How long SQLite waits on a locked database"
    )
    timeouts: StoreTimeoutsConfig = Field(default_factory=StoreTimeoutsConfig)


# ---------------------------------------------------------------------------
# Query Building
# ---------------------------------------------------------------------------


def build_where(event_filter: EventFilter) -> tuple[str, list[Any]]:
    """Translate a filter into a ``WHERE`` clause and its parameters.

    ``limit`` is not part of the clause. An empty filter yields an empty
    clause.
    """
    clauses: list[str] = []
    params: list[Any] = []

    if event_filter.author is not None:
        clauses.append("pubkey = ?")
        params.append(bytes.fromhex(event_filter.author))
    if event_filter.kind is not None:
        clauses.append("kind = ?")
        params.append(int(event_filter.kind))
    if event_filter.since is not None:
        clauses.append("created_at >= ?")
        params.append(event_filter.since)

    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


# ---------------------------------------------------------------------------
# EventStore
# ---------------------------------------------------------------------------


class EventStore:
    """Async handle over the local event database.

    Example:
        async with EventStore(StoreConfig(path="notes.db")) as store:
            written = await store.put_if_absent(event)
            latest = await store.query(EventFilter(kind=1, limit=10))
    """

    def __init__(self, config: StoreConfig | None = None) -> None:
        self._config = config or StoreConfig()
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()
        self._logger = Logger("store")

    @property
    def config(self) -> StoreConfig:
        """The store configuration (read-only)."""
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @classmethod
    def from_yaml(cls, config_path: str) -> EventStore:
        """Create a store from a YAML file holding ``StoreConfig`` fields."""
        return cls.from_dict(load_yaml(config_path))

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> EventStore:
        return cls(config=StoreConfig(**config_dict))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the database, apply pragmas and create the schema.

        Calling ``connect()`` on an open store is a no-op.

        Raises:
            StorageUnavailableError: If the file cannot be opened or the
                schema cannot be created.
        """
        if self._conn is not None:
            return

        path = Path(self._config.path)
        conn: aiosqlite.Connection | None = None
        try:
            if path.parent != Path():
                path.parent.mkdir(parents=True, exist_ok=True)
            conn = await aiosqlite.connect(str(path))
            await conn.execute(f"PRAGMA journal_mode={self._config.journal_mode};")
            await conn.execute("PRAGMA synchronous = NORMAL;")
            await conn.execute(f"PRAGMA busy_timeout = {self._config.busy_timeout_ms};")
            for statement in _SCHEMA:
                await conn.execute(statement)
            await conn.commit()
        except (aiosqlite.Error, OSError) as e:
            if conn is not None:
                await conn.close()
            self._logger.error("store_open_failed", path=str(path), error=str(e))
            raise StorageUnavailableError(f"Cannot open store at {path}: {e}") from e

        self._conn = conn
        self._logger.debug("store_connected", path=str(path), journal_mode=self._config.journal_mode)

    async def close(self) -> None:
        """Close the database connection. Idempotent."""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        async with self._write_lock:
            await conn.close()
        self._logger.debug("store_closed", path=self._config.path)

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StorageUnavailableError("Store is not connected; call connect() first")
        return self._conn

    @staticmethod
    async def _with_timeout(aw: Awaitable[Any], timeout: float | None) -> Any:  # noqa: ASYNC109
        if timeout is None:
            return await aw
        return await asyncio.wait_for(aw, timeout=timeout)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def put_if_absent(self, event: Event) -> bool:
        """Insert ``event`` unless a row with the same id exists.

        Returns:
            True if a row was written, False if the id was already stored.

        Raises:
            StorageUnavailableError: If the store is not connected.
            StorageWriteError: If the insert or commit fails or times out.
        """
        conn = self._require_conn()
        params = event.to_db_params()
        async with self._write_lock:
            try:
                return await self._with_timeout(
                    self._insert(conn, params), self._config.timeouts.write
                )
            except TimeoutError as e:
                # a cancelled insert may leave its transaction open
                await self._rollback(conn)
                raise StorageWriteError(f"Timed out storing event {event.id_hex}") from e
            except aiosqlite.Error as e:
                await self._rollback(conn)
                raise StorageWriteError(f"Failed to store event {event.id_hex}: {e}") from e

    async def _rollback(self, conn: aiosqlite.Connection) -> None:
        try:
            await conn.rollback()
        except aiosqlite.Error as e:
            self._logger.warning("rollback_failed", error=str(e))

    @staticmethod
    async def _insert(conn: aiosqlite.Connection, params: EventDbParams) -> bool:
        cursor = await conn.execute(
            f"INSERT OR IGNORE INTO event ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            tuple(params),
        )
        written = cursor.rowcount == 1
        await cursor.close()
        await conn.commit()
        return written

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def query(self, event_filter: EventFilter, order: Order = Order.DESC) -> list[Event]:
        """Return events matching ``event_filter`` in creation-time order.

        Ties on ``created_at`` are broken by id in the same direction, so the
        result order is total. ``event_filter.limit`` truncates the result;
        a limit of 0 returns an empty list.

        Raises:
            StorageUnavailableError: If the store is not connected.
            StorageQueryError: If the query fails or a row cannot be decoded.
            TimeoutError: If the query exceeds ``timeouts.query``.
        """
        conn = self._require_conn()
        if event_filter.limit == 0:
            return []

        where, params = build_where(event_filter)
        direction = "ASC" if order is Order.ASC else "DESC"
        sql = f"SELECT {_COLUMNS} FROM event{where} ORDER BY created_at {direction}, id {direction}"
        if event_filter.limit is not None:
            sql += " LIMIT ?"
            params.append(event_filter.limit)

        try:
            rows = await self._with_timeout(
                self._fetchall(conn, sql, params), self._config.timeouts.query
            )
            return [Event.from_db_params(EventDbParams(*row)) for row in rows]
        except (aiosqlite.Error, NostrSdkError, ValueError) as e:
            raise StorageQueryError(f"Event query failed: {e}") from e

    async def count(self, event_filter: EventFilter) -> int:
        """Return the number of rows matching ``event_filter``, ignoring its limit.

        Raises:
            StorageUnavailableError: If the store is not connected.
            StorageQueryError: If the query fails.
            TimeoutError: If the query exceeds ``timeouts.query``.
        """
        conn = self._require_conn()
        where, params = build_where(event_filter)
        try:
            rows = await self._with_timeout(
                self._fetchall(conn, f"SELECT COUNT(*) FROM event{where}", params),
                self._config.timeouts.query,
            )
        except aiosqlite.Error as e:
            raise StorageQueryError(f"Event count failed: {e}") from e
        return int(rows[0][0])

    @staticmethod
    async def _fetchall(
        conn: aiosqlite.Connection, sql: str, params: list[Any]
    ) -> list[tuple[Any, ...]]:
        async with conn.execute(sql, params) as cursor:
            return list(await cursor.fetchall())
