"""Base backend adapter — Abstract interface for all data store connectors.

Every backend must implement this interface to take part in routing.
The adapter is responsible for:
  1. Obtaining a client or connection for its store
  2. Running the fixed "select all rows" query
  3. Reporting health status

Matching is shared: ``fetch_match()`` coerces rows to ``Record`` and runs
the record matcher, so all variants answer the same term the same way.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from trekroute.adapters.base.exceptions import BackendError, BackendTimeoutError, QueryError
from trekroute.core.matcher import match_record
from trekroute.models.experiment import Variant
from trekroute.models.record import Record

logger = logging.getLogger(__name__)


class AdapterHealth(BaseModel):
    """Health status of a backend adapter."""

    status: str = Field(description="Health status: healthy, degraded, unhealthy")
    latency_ms: int = Field(default=0, description="Latency of last health check in ms")
    last_check: str | None = Field(default=None, description="ISO timestamp of last health check")
    message: str | None = Field(default=None, description="Additional health message")


class BackendAdapter(ABC):
    """Abstract base class for backend adapters.

    All adapters must implement:
      - initialize() / shutdown(): acquire and release clients
      - fetch_rows(): run the fixed query and return rows as dicts
      - health_check(): report adapter health status

    Args:
        table: Table holding the series dataset.
        timeout: Upper bound in seconds for one ``fetch_match`` call.
    """

    variant: Variant

    def __init__(self, table: str = "star_trek_series", timeout: float = 10.0) -> None:
        self._table = table
        self._timeout = timeout

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique adapter name (e.g., 'local', 'turso')."""

    @property
    def label(self) -> str:
        return self.variant.label

    @property
    def query(self) -> str:
        """The fixed query every variant runs."""
        return f"SELECT * FROM {self._table}"

    @abstractmethod
    async def initialize(self) -> None:
        """Validate configuration and obtain a client.

        Raises:
            ConfigurationError: If required settings are missing or malformed.
        """

    @abstractmethod
    async def shutdown(self) -> None:
        """Release clients and connections held by the adapter."""

    @abstractmethod
    async def fetch_rows(self) -> list[dict[str, Any]]:
        """Run the fixed query and return every row as a column→value dict.

        Raises:
            BackendError: On any I/O, protocol, or parse failure.
        """

    @abstractmethod
    async def health_check(self) -> AdapterHealth:
        """Check the health of the backend."""

    async def fetch_match(self, term: str) -> Record | None:
        """Load all rows and return the first record matching ``term``.

        Raises:
            BackendTimeoutError: If the backend does not answer within ``timeout``.
            QueryError: If the query fails or a row is not a valid record.
            BackendError: Any other adapter failure.
        """
        try:
            rows = await asyncio.wait_for(self.fetch_rows(), timeout=self._timeout)
            records = [Record.model_validate(row) for row in rows]
        except TimeoutError as e:
            raise BackendTimeoutError(f"{self.name} query timed out after {self._timeout:g}s") from e
        except BackendError:
            raise
        except PydanticValidationError as e:
            raise QueryError(f"{self.name} returned a malformed row: {e.error_count()} error(s)") from e
        except Exception as e:
            raise QueryError(f"{self.name} query failed: {e}") from e

        logger.debug("%s returned %d rows", self.name, len(records))
        return match_record(term, records)
