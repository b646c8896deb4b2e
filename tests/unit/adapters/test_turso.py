"""Tests for the Turso adapter."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from trekroute.adapters.base.exceptions import ConfigurationError, ConnectionError, QueryError
from trekroute.adapters.turso.adapter import TursoAdapter

# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def adapter() -> TursoAdapter:
    return TursoAdapter(url="libsql://trek-crew.turso.io", auth_token="test-token")


def _text(value: str) -> dict[str, str]:
    return {"type": "text", "value": value}


@pytest.fixture
def pipeline_response() -> dict[str, Any]:
    """Sample /v2/pipeline response for SELECT * FROM star_trek_series."""
    return {
        "baton": None,
        "base_url": None,
        "results": [
            {
                "type": "ok",
                "response": {
                    "type": "execute",
                    "result": {
                        "cols": [
                            {"name": "id", "decltype": "INTEGER"},
                            {"name": "series_name", "decltype": "TEXT"},
                            {"name": "captain", "decltype": "TEXT"},
                            {"name": "crew", "decltype": "TEXT"},
                            {"name": "description", "decltype": "TEXT"},
                        ],
                        "rows": [
                            [
                                {"type": "integer", "value": "1"},
                                _text("Star Trek: Voyager"),
                                _text("Kathryn Janeway"),
                                _text("Chakotay, Tuvok, Seven of Nine"),
                                {"type": "null"},
                            ],
                            [
                                {"type": "integer", "value": "2"},
                                _text("Star Trek: TNG"),
                                _text("Picard"),
                                _text("Riker, Data, Worf"),
                                _text("The Enterprise-D."),
                            ],
                        ],
                        "affected_row_count": 0,
                        "last_insert_rowid": None,
                    },
                },
            },
            {"type": "ok", "response": {"type": "close"}},
        ],
    }


def _mock_client(payload: Any = None, error: Exception | None = None) -> AsyncMock:
    mock_response = MagicMock(spec=httpx.Response)
    mock_response.status_code = 200
    mock_response.json.return_value = payload
    mock_response.raise_for_status = lambda: None

    mock_client = AsyncMock(spec=httpx.AsyncClient)
    if error is not None:
        mock_client.post.side_effect = error
    else:
        mock_client.post.return_value = mock_response
    return mock_client


# ── Properties ───────────────────────────────────────────────────────────────


class TestTursoProperties:
    def test_name_and_label(self, adapter: TursoAdapter) -> None:
        assert adapter.name == "turso"
        assert adapter.label == "Turso"

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("libsql://db-org.turso.io", "https://db-org.turso.io"),
            ("wss://db-org.turso.io/", "https://db-org.turso.io"),
            ("ws://127.0.0.1:8080", "http://127.0.0.1:8080"),
            ("http://127.0.0.1:8080", "http://127.0.0.1:8080"),
        ],
    )
    def test_http_url(self, url: str, expected: str) -> None:
        assert TursoAdapter._http_url(url) == expected


# ── Lifecycle ────────────────────────────────────────────────────────────────


class TestTursoLifecycle:
    async def test_missing_url(self) -> None:
        with pytest.raises(ConfigurationError, match="url"):
            await TursoAdapter().initialize()

    async def test_initialize_sets_bearer(self, adapter: TursoAdapter) -> None:
        await adapter.initialize()
        try:
            assert adapter._client is not None
            assert adapter._client.headers["Authorization"] == "Bearer test-token"
        finally:
            await adapter.shutdown()
        assert adapter._client is None


# ── Queries ──────────────────────────────────────────────────────────────────


class TestTursoQueries:
    async def test_not_initialized_raises(self, adapter: TursoAdapter) -> None:
        with pytest.raises(ConnectionError, match="not initialized"):
            await adapter.fetch_rows()

    async def test_fetch_rows_decodes_values(self, adapter: TursoAdapter, pipeline_response: dict) -> None:
        adapter._client = _mock_client(pipeline_response)

        rows = await adapter.fetch_rows()

        assert rows[0] == {
            "id": 1,
            "series_name": "Star Trek: Voyager",
            "captain": "Kathryn Janeway",
            "crew": "Chakotay, Tuvok, Seven of Nine",
            "description": None,
        }
        args, kwargs = adapter._client.post.call_args
        assert args[0] == "/v2/pipeline"
        requests = kwargs["json"]["requests"]
        assert requests[0] == {"type": "execute", "stmt": {"sql": "SELECT * FROM star_trek_series"}}
        assert requests[1] == {"type": "close"}

    async def test_fetch_match(self, adapter: TursoAdapter, pipeline_response: dict) -> None:
        adapter._client = _mock_client(pipeline_response)

        record = await adapter.fetch_match("data")

        assert record is not None
        assert record.captain == "Picard"

    async def test_statement_error(self, adapter: TursoAdapter) -> None:
        adapter._client = _mock_client(
            {"results": [{"type": "error", "error": {"message": "no such table: star_trek_series", "code": "SQLITE_ERROR"}}]}
        )
        with pytest.raises(QueryError, match="no such table"):
            await adapter.fetch_match("Picard")

    async def test_http_status_error(self, adapter: TursoAdapter) -> None:
        mock_response = MagicMock(spec=httpx.Response)
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Unauthorized",
            request=httpx.Request("POST", "https://trek-crew.turso.io/v2/pipeline"),
            response=httpx.Response(401),
        )
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = mock_response
        adapter._client = mock_client

        with pytest.raises(QueryError, match="Turso query failed"):
            await adapter.fetch_match("Picard")

    async def test_transport_error(self, adapter: TursoAdapter) -> None:
        adapter._client = _mock_client(error=httpx.ConnectError("name resolution failed"))
        with pytest.raises(ConnectionError, match="Failed to reach Turso"):
            await adapter.fetch_match("Picard")

    async def test_empty_results(self, adapter: TursoAdapter) -> None:
        adapter._client = _mock_client({"results": []})
        with pytest.raises(QueryError, match="no results"):
            await adapter.fetch_rows()

    async def test_unknown_value_type(self, adapter: TursoAdapter, pipeline_response: dict) -> None:
        result = pipeline_response["results"][0]["response"]["result"]
        result["rows"][0][0] = {"type": "vector", "value": "[1,2]"}
        adapter._client = _mock_client(pipeline_response)

        with pytest.raises(QueryError, match="Unexpected Turso result shape"):
            await adapter.fetch_rows()


# ── Decoding ─────────────────────────────────────────────────────────────────


class TestTursoDecoding:
    def test_float(self) -> None:
        assert TursoAdapter._decode_value({"type": "float", "value": 1.5}) == 1.5

    def test_blob(self) -> None:
        assert TursoAdapter._decode_value({"type": "blob", "base64": "aGk="}) == b"hi"


# ── Health ───────────────────────────────────────────────────────────────────


class TestTursoHealth:
    async def test_health_not_initialized(self, adapter: TursoAdapter) -> None:
        health = await adapter.health_check()
        assert health.status == "unhealthy"

    async def test_health_ok(self, adapter: TursoAdapter) -> None:
        adapter._client = _mock_client(
            {
                "results": [
                    {
                        "type": "ok",
                        "response": {
                            "type": "execute",
                            "result": {"cols": [{"name": "1"}], "rows": [[{"type": "integer", "value": "1"}]]},
                        },
                    }
                ]
            }
        )
        health = await adapter.health_check()
        assert health.status == "healthy"

    async def test_health_exception(self, adapter: TursoAdapter) -> None:
        adapter._client = _mock_client(error=httpx.ConnectError("refused"))
        health = await adapter.health_check()
        assert health.status == "unhealthy"
