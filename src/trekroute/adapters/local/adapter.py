"""Local SQLite adapter — Queries a database file on the local disk.

Uses the standard library ``sqlite3`` driver. Each query opens its own
read-only connection in a worker thread and closes it before returning,
so no connection outlives a request.

Usage::

    adapter = LocalSQLiteAdapter(db_path="./data/trek.db")
    await adapter.initialize()
    record = await adapter.fetch_match("Picard")
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import time
from contextlib import closing
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from trekroute.adapters.base.adapter import AdapterHealth, BackendAdapter
from trekroute.adapters.base.exceptions import ConfigurationError, QueryError
from trekroute.models.experiment import Variant

logger = logging.getLogger(__name__)


class LocalSQLiteAdapter(BackendAdapter):
    """Backend adapter for a local SQLite file.

    Args:
        db_path: Path to the SQLite database file. Must already exist.
        table: Table holding the series dataset.
        timeout: Upper bound in seconds for one query.
    """

    variant = Variant.LOCAL

    def __init__(
        self,
        db_path: str = "",
        table: str = "star_trek_series",
        timeout: float = 10.0,
    ) -> None:
        super().__init__(table=table, timeout=timeout)
        self._db_path = Path(db_path).expanduser() if db_path else None

    @property
    def name(self) -> str:
        return "local"

    @property
    def _uri(self) -> str:
        return f"{self._db_path.resolve().as_uri()}?mode=ro"  # type: ignore[union-attr]

    async def initialize(self) -> None:
        """Check that the database file exists; nothing is held open."""
        if self._db_path is None:
            raise ConfigurationError("Local SQLite adapter requires 'db_path'.")
        if not self._db_path.is_file():
            raise ConfigurationError(f"Local SQLite database not found: {self._db_path}")
        logger.info("Using local SQLite database at %s", self._db_path)

    async def shutdown(self) -> None:
        """Nothing to release; connections are per query."""

    async def fetch_rows(self) -> list[dict[str, Any]]:
        if self._db_path is None:
            raise ConfigurationError("Local SQLite adapter not initialized.")
        return await asyncio.to_thread(self._select_all, self.query)

    def _select_all(self, sql: str) -> list[dict[str, Any]]:
        try:
            with closing(sqlite3.connect(self._uri, uri=True)) as conn:
                conn.row_factory = sqlite3.Row
                rows = conn.execute(sql).fetchall()
        except sqlite3.Error as e:
            raise QueryError(f"Local SQLite query failed: {e}") from e
        return [dict(row) for row in rows]

    async def health_check(self) -> AdapterHealth:
        """Open the file and run a trivial query."""
        if self._db_path is None or not self._db_path.is_file():
            return AdapterHealth(status="unhealthy", message=f"Database file missing: {self._db_path}")

        try:
            start = time.monotonic()
            await asyncio.to_thread(self._select_all, "SELECT 1")
            latency_ms = int((time.monotonic() - start) * 1000)
            return AdapterHealth(
                status="healthy",
                latency_ms=latency_ms,
                last_check=datetime.now(UTC).isoformat(),
                message=f"File: {self._db_path}",
            )
        except Exception as e:
            return AdapterHealth(status="unhealthy", message=str(e))
