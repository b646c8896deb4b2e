"""Turso adapter — Remote libSQL database over the Hrana HTTP pipeline.

Turso exposes every database through the ``/v2/pipeline`` endpoint: the
client posts a batch of stream requests and receives typed result sets.
This adapter communicates with it using ``httpx``.

Usage::

    adapter = TursoAdapter(
        url="libsql://trek-myorg.turso.io",
        auth_token="eyJhbGciOi...",
    )
    await adapter.initialize()
    record = await adapter.fetch_match("Janeway")
"""

from __future__ import annotations

import base64
import logging
import time
from datetime import UTC, datetime
from typing import Any

import httpx

from trekroute.adapters.base.adapter import AdapterHealth, BackendAdapter
from trekroute.adapters.base.exceptions import ConfigurationError, ConnectionError, QueryError
from trekroute.models.experiment import Variant

logger = logging.getLogger(__name__)


class TursoAdapter(BackendAdapter):
    """Backend adapter for Turso / libSQL.

    Args:
        url: Database URL. ``libsql://`` and ``wss://`` schemes are mapped to ``https://``.
        auth_token: Database auth token sent as a Bearer credential.
        table: Table holding the series dataset.
        timeout: HTTP request timeout in seconds.
    """

    variant = Variant.REMOTE_A

    def __init__(
        self,
        url: str = "",
        auth_token: str | None = None,
        table: str = "star_trek_series",
        timeout: float = 10.0,
    ) -> None:
        super().__init__(table=table, timeout=timeout)
        self._base_url = self._http_url(url)
        self._auth_token = auth_token
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "turso"

    async def initialize(self) -> None:
        """Create a pooled ``httpx.AsyncClient`` for the database."""
        if not self._base_url:
            raise ConfigurationError("Turso adapter requires a database 'url'.")

        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            headers=headers,
        )
        logger.info("Turso client ready for %s", self._base_url)

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ── Query ────────────────────────────────────────────────────────────

    async def fetch_rows(self) -> list[dict[str, Any]]:
        return await self._execute(self.query)

    async def _execute(self, sql: str) -> list[dict[str, Any]]:
        """Run one statement in a fresh stream and decode its rows."""
        if not self._client:
            raise ConnectionError("Turso client not initialized.")

        payload = {
            "requests": [
                {"type": "execute", "stmt": {"sql": sql}},
                {"type": "close"},
            ]
        }

        try:
            resp = await self._client.post("/v2/pipeline", json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise QueryError(f"Turso query failed: {e}") from e
        except httpx.HTTPError as e:
            raise ConnectionError(f"Failed to reach Turso: {e}") from e
        except ValueError as e:
            raise QueryError(f"Turso returned invalid JSON: {e}") from e

        return self._parse_pipeline(data)

    # ── Decoding ─────────────────────────────────────────────────────────

    @classmethod
    def _parse_pipeline(cls, data: dict[str, Any]) -> list[dict[str, Any]]:
        """Extract rows from the first (execute) result of a pipeline response."""
        try:
            first = data["results"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise QueryError("Turso response has no results") from e

        if first.get("type") == "error":
            message = (first.get("error") or {}).get("message", "unknown error")
            raise QueryError(f"Turso query failed: {message}")

        try:
            result = first["response"]["result"]
            columns = [col.get("name") for col in result["cols"]]
            return [
                dict(zip(columns, (cls._decode_value(v) for v in row), strict=True))
                for row in result["rows"]
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise QueryError(f"Unexpected Turso result shape: {e}") from e

    @staticmethod
    def _decode_value(value: dict[str, Any]) -> Any:
        """Convert a Hrana typed value into a Python value."""
        kind = value.get("type")
        if kind == "null":
            return None
        if kind == "integer":
            return int(value["value"])
        if kind == "float":
            return float(value["value"])
        if kind == "text":
            return value["value"]
        if kind == "blob":
            return base64.b64decode(value.get("base64", ""))
        raise ValueError(f"unknown value type {kind!r}")

    @staticmethod
    def _http_url(url: str) -> str:
        url = url.strip().rstrip("/")
        for scheme in ("libsql://", "wss://", "ws://"):
            if url.startswith(scheme):
                secure = scheme != "ws://"
                return ("https://" if secure else "http://") + url[len(scheme) :]
        return url

    # ── Health ───────────────────────────────────────────────────────────

    async def health_check(self) -> AdapterHealth:
        """Run ``SELECT 1`` against the database."""
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
                message=f"URL: {self._base_url}",
            )
        except Exception as e:
            return AdapterHealth(status="unhealthy", message=str(e))
