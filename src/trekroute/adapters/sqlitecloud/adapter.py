"""SQLite Cloud adapter — Remote SQLite cluster over the Weblite SQL endpoint.

SQLite Cloud projects are addressed by a connection string of the form
``sqlitecloud://<host>:<port>/<database>?apikey=<key>``. Besides its native
protocol every node serves an HTTP API ("Weblite"); this adapter posts SQL
to ``/v2/weblite/sql`` using ``httpx`` and authenticates with the full
connection string as a Bearer token.

Usage::

    adapter = SQLiteCloudAdapter(
        connection_string="sqlitecloud://abc.sqlite.cloud:8860/test?apikey=KEY",
    )
    await adapter.initialize()
    record = await adapter.fetch_match("Sisko")
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import Any
from urllib.parse import parse_qs, urlsplit

import httpx

from trekroute.adapters.base.adapter import AdapterHealth, BackendAdapter
from trekroute.adapters.base.exceptions import ConfigurationError, ConnectionError, QueryError
from trekroute.models.experiment import Variant

logger = logging.getLogger(__name__)


class SQLiteCloudAdapter(BackendAdapter):
    """Backend adapter for SQLite Cloud.

    Args:
        connection_string: ``sqlitecloud://`` connection string including an ``apikey``.
        database: Database used when the connection string names none.
        weblite_port: Port serving the Weblite HTTP API.
        table: Table holding the series dataset.
        timeout: HTTP request timeout in seconds.
    """

    variant = Variant.REMOTE_B

    def __init__(
        self,
        connection_string: str = "",
        database: str = "test",
        weblite_port: int = 8090,
        table: str = "star_trek_series",
        timeout: float = 10.0,
    ) -> None:
        super().__init__(table=table, timeout=timeout)
        self._connection_string = connection_string.strip()
        self._database = database
        self._weblite_port = weblite_port
        self._base_url = ""
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "sqlitecloud"

    async def initialize(self) -> None:
        """Parse the connection string and create a pooled HTTP client."""
        host, database = self._parse_connection_string(self._connection_string)
        if database:
            self._database = database
        self._base_url = f"https://{host}:{self._weblite_port}"

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._connection_string}",
            },
        )
        logger.info("SQLite Cloud client ready for %s (database: %s)", host, self._database)

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ── Query ────────────────────────────────────────────────────────────

    async def fetch_rows(self) -> list[dict[str, Any]]:
        return await self._execute(self.query)

    async def _execute(self, sql: str) -> list[dict[str, Any]]:
        if not self._client:
            raise ConnectionError("SQLite Cloud client not initialized.")

        try:
            resp = await self._client.post(
                "/v2/weblite/sql",
                json={"sql": sql, "database": self._database},
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise QueryError(f"SQLite Cloud query failed: {e}") from e
        except httpx.HTTPError as e:
            raise ConnectionError(f"Failed to reach SQLite Cloud: {e}") from e
        except ValueError as e:
            raise QueryError(f"SQLite Cloud returned invalid JSON: {e}") from e

        rows = data.get("data") if isinstance(data, dict) else None
        if rows is None:
            rows = []
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise QueryError("Unexpected SQLite Cloud result shape: 'data' is not a list of rows")
        return rows

    @staticmethod
    def _parse_connection_string(connection_string: str) -> tuple[str, str | None]:
        """Return ``(host, database)`` from a ``sqlitecloud://`` URL.

        Raises:
            ConfigurationError: If the scheme, host, or API key is missing.
        """
        if not connection_string:
            raise ConfigurationError("SQLite Cloud adapter requires a 'connection_string'.")

        try:
            parts = urlsplit(connection_string)
            host = parts.hostname
        except ValueError as e:
            raise ConfigurationError(f"Invalid SQLite Cloud connection string: {e}") from e

        if parts.scheme != "sqlitecloud":
            raise ConfigurationError(f"Unsupported scheme '{parts.scheme}', expected 'sqlitecloud'.")
        if not host:
            raise ConfigurationError("SQLite Cloud connection string has no host.")
        if not parse_qs(parts.query).get("apikey"):
            raise ConfigurationError("SQLite Cloud connection string has no 'apikey'.")

        database = parts.path.strip("/") or None
        return host, database

    # ── Health ───────────────────────────────────────────────────────────

    async def health_check(self) -> AdapterHealth:
        """Run ``SELECT 1`` against the configured database."""
        if not self._client:
            return AdapterHealth(status="unhealthy", message="Client not initialized")

        try:
            start = time.monotonic()
            await self._execute("SELECT 1")
            latency_ms = int((time.monotonic() - start) * 1000)
            return AdapterHealth(
                status="healthy",
                latency_ms=latency_ms,
                last_check=datetime.now(UTC).isoformat(),
                message=f"Database: {self._database}",
            )
        except Exception as e:
            return AdapterHealth(status="unhealthy", message=str(e))
