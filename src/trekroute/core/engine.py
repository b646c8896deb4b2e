"""TrekRoute Engine — Request orchestrator for experiment-routed search.

The engine manages the per-request lifecycle:
  1. Validate input: reject blank search terms before any I/O
  2. Resolve variant: ask the experiment platform which backend to use
  3. Dispatch: time one call to the selected backend adapter
  4. Respond: hand a ``QueryOutcome`` back to the presentation layer
  5. Track (after the response): queue a response-time metric event

Backend failures never escape ``search()``; they come back as a failed
outcome so the caller can render a generic error page.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from trekroute.adapters.base.exceptions import BackendError
from trekroute.adapters.base.registry import AdapterRegistry
from trekroute.core.exceptions import SearchValidationError
from trekroute.core.resolver import ExperimentResolver
from trekroute.core.tracker import MetricTracker
from trekroute.models.experiment import MetricEvent, UserIdentity
from trekroute.models.response import QueryOutcome
from trekroute.observability.logging import add_request_context, bind_request_context

if TYPE_CHECKING:
    from trekroute.config.settings import Settings

logger = logging.getLogger(__name__)

EMPTY_TERM_MESSAGE = "Please provide a search term"


class TrekRouteEngine:
    """Routes each search to the backend its experiment variant selects.

    Pipeline:
      term → [validate] → UserIdentity → [Resolver] → Variant
           → [AdapterRegistry] → BackendAdapter.fetch_match (timed)
           → QueryOutcome → (after response) [MetricTracker]

    Attributes:
        settings: Application configuration.
        adapter_registry: Variant → adapter table.
        resolver: Experiment assignment client.
        tracker: Background metric sender.
    """

    def __init__(
        self,
        settings: Settings,
        resolver: ExperimentResolver | None = None,
        tracker: MetricTracker | None = None,
    ) -> None:
        self.settings = settings
        self.adapter_registry = AdapterRegistry()
        self.resolver = resolver or ExperimentResolver(settings.experiment)
        self.tracker = tracker or MetricTracker(
            self.resolver,
            max_queue_size=settings.experiment.tracking_queue_size,
        )

    async def initialize(self) -> None:
        """Connect the resolver and start the tracking worker."""
        await self.resolver.initialize()
        await self.tracker.start()
        logger.info("TrekRoute engine initialized")

    async def shutdown(self) -> None:
        """Flush tracking, then close adapters and the resolver."""
        await self.tracker.stop()
        await self.adapter_registry.shutdown_all()
        await self.resolver.shutdown()
        logger.info("TrekRoute engine shut down")

    async def search(self, term: str | None) -> QueryOutcome:
        """Run one search through the experiment-selected backend.

        Args:
            term: The raw search term from the request.

        Returns:
            A QueryOutcome describing a match, no match, or backend failure.

        Raises:
            SearchValidationError: If the term is missing or blank.
        """
        if term is None or not term.strip():
            raise SearchValidationError(EMPTY_TERM_MESSAGE)

        identity = UserIdentity.generate()
        bind_request_context(user_id=identity.user_id)

        variant = await self.resolver.resolve_variant(
            identity,
            self.settings.experiment.key,
            self.settings.experiment.default_variant,
        )
        add_request_context(variant=variant.value)

        start = time.monotonic()
        try:
            adapter = self.adapter_registry.get(variant)
            record = await adapter.fetch_match(term)
        except BackendError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.error("Backend '%s' failed after %d ms: %s", variant.value, elapsed_ms, e, exc_info=True)
            return QueryOutcome(
                term=term,
                identity=identity,
                variant=variant,
                error=f"{type(e).__name__}: {e}",
                elapsed_ms=elapsed_ms,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Search served by '%s' in %d ms (%s)",
            variant.value,
            elapsed_ms,
            "match" if record is not None else "no match",
        )
        return QueryOutcome(
            term=term,
            identity=identity,
            variant=variant,
            record=record,
            elapsed_ms=elapsed_ms,
        )

    async def track_response_time(self, outcome: QueryOutcome) -> None:
        """Queue the response-time metric for a successful outcome.

        Meant to run after the response has been sent, on the event loop that
        owns the tracker queue. Failed outcomes are never tracked, and nothing
        is queued while the resolver has no tracking client.
        """
        if outcome.failed or not self.resolver.tracking_enabled:
            return
        event = MetricEvent(kind="response_time", value=outcome.elapsed_ms, subject=outcome.identity)
        self.tracker.submit(outcome.identity, event)
