"""Experiment Resolver — Per-user variant assignment and event delivery.

Talks to a DevCycle-compatible bucketing API over HTTP:

  - ``POST /v1/variables/{key}`` with the user as JSON body returns the
    variable served to that user (``{"key": ..., "value": ...}``).
  - ``POST /v1/track`` records custom events for a user.

Assignment never fails from the caller's point of view: whenever the
service cannot produce a recognised variant, the supplied default is used.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from trekroute.core.exceptions import ResolverUnavailableError, TrackingError
from trekroute.models.experiment import MetricEvent, UserIdentity, Variant

if TYPE_CHECKING:
    from trekroute.config.settings import ExperimentSettings

logger = logging.getLogger(__name__)


class ExperimentResolver:
    """Client for the experiment assignment service.

    Attributes:
        settings: Experiment platform configuration.
    """

    def __init__(self, settings: ExperimentSettings) -> None:
        self.settings = settings
        self._client: httpx.AsyncClient | None = None

    async def initialize(self) -> None:
        """Create the HTTP client; without an SDK key every request uses the default."""
        if not self.settings.sdk_key:
            logger.warning(
                "No experiment SDK key configured — every request will use the default variant '%s'",
                self.settings.default_variant.value,
            )
            return

        self._client = httpx.AsyncClient(
            base_url=self.settings.base_url.rstrip("/"),
            timeout=httpx.Timeout(self.settings.timeout_seconds),
            headers={
                "Authorization": self.settings.sdk_key,
                "Content-Type": "application/json",
            },
        )
        logger.info("Experiment resolver connected to %s", self.settings.base_url)

    @property
    def tracking_enabled(self) -> bool:
        """True once a client exists to deliver events."""
        return self._client is not None

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def resolve_variant(
        self,
        identity: UserIdentity,
        experiment_key: str,
        default_variant: Variant,
    ) -> Variant:
        """Return the variant assigned to ``identity`` for ``experiment_key``.

        Falls back to ``default_variant`` when the service is unreachable,
        does not serve the variable, or serves an unrecognised value.
        """
        try:
            value = await self._fetch_variable(identity, experiment_key)
        except ResolverUnavailableError as e:
            logger.warning("Variant assignment unavailable, using default '%s': %s", default_variant.value, e)
            return default_variant

        variant = Variant.lookup(value)
        if variant is None:
            logger.info("Unrecognized variant %r for '%s', using default '%s'", value, experiment_key, default_variant.value)
            return default_variant
        return variant

    async def _fetch_variable(self, identity: UserIdentity, experiment_key: str) -> Any:
        if not self._client:
            raise ResolverUnavailableError("resolver client not initialized")

        try:
            resp = await self._client.post(f"/v1/variables/{experiment_key}", json=self._user_payload(identity))
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise ResolverUnavailableError(str(e) or type(e).__name__) from e
        except ValueError as e:
            raise ResolverUnavailableError(f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ResolverUnavailableError("variable response is not an object")
        return data.get("value")

    async def track(self, identity: UserIdentity, event: MetricEvent) -> None:
        """Deliver a single metric event for ``identity``.

        Raises:
            TrackingError: If the event could not be delivered.
        """
        if not self._client:
            raise TrackingError("resolver client not initialized")

        payload = {
            "user": self._user_payload(identity),
            "events": [
                {
                    "type": event.kind,
                    "value": event.value,
                    "date": int(event.date.timestamp() * 1000),
                }
            ],
        }
        try:
            resp = await self._client.post("/v1/track", json=payload)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise TrackingError(f"failed to track '{event.kind}': {e}") from e

    @staticmethod
    def _user_payload(identity: UserIdentity) -> dict[str, str]:
        return {"user_id": identity.user_id}
