"""Shared test fixtures and configuration."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from trekroute.adapters.base.adapter import AdapterHealth, BackendAdapter
from trekroute.config.settings import Settings
from trekroute.core.engine import TrekRouteEngine
from trekroute.models.experiment import MetricEvent, UserIdentity, Variant

# ── Dataset ──────────────────────────────────────────────────────────────────

SERIES_ROWS: list[dict[str, Any]] = [
    {
        "id": 1,
        "series_name": "Star Trek: The Original Series",
        "captain": "James T. Kirk",
        "crew": "Spock, Leonard McCoy, Montgomery Scott, Nyota Uhura",
        "description": "The five-year mission of the starship Enterprise.",
    },
    {
        "id": 2,
        "series_name": "Star Trek: TNG",
        "captain": "Picard",
        "crew": "Riker, Data, Worf",
        "description": "The Enterprise-D explores the galaxy a century later.",
    },
    {
        "id": 3,
        "series_name": "Star Trek: Deep Space Nine",
        "captain": "Benjamin Sisko",
        "crew": "Kira Nerys, Odo, Worf, Jadzia Dax",
        "description": "A space station near a stable wormhole.",
    },
    {
        "id": 4,
        "series_name": "Star Trek: Voyager",
        "captain": "Kathryn Janeway",
        "crew": "Chakotay, Tuvok, Seven of Nine",
        "description": "A starship stranded in the Delta Quadrant.",
    },
]


# ── Fakes ────────────────────────────────────────────────────────────────────


class FakeAdapter(BackendAdapter):
    """In-memory adapter; optionally fails or stalls."""

    def __init__(
        self,
        variant: Variant,
        rows: list[dict[str, Any]] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(timeout=timeout)
        self.variant = variant
        self.rows = list(SERIES_ROWS if rows is None else rows)
        self.error = error
        self.delay = delay
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return f"fake-{self.variant.value}"

    async def initialize(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass

    async def fetch_rows(self) -> list[dict[str, Any]]:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.rows

    async def fetch_match(self, term: str):  # type: ignore[no-untyped-def]
        self.calls.append(term)
        return await super().fetch_match(term)

    async def health_check(self) -> AdapterHealth:
        return AdapterHealth(status="healthy", message=self.name)


class FakeResolver:
    """Resolver stand-in that serves a fixed flag value."""

    def __init__(self, value: Any = "local", available: bool = True) -> None:
        self.value = value
        self.available = available
        self.tracking_enabled = True
        self.calls: list[tuple[str, str, Variant]] = []
        self.tracked: list[tuple[UserIdentity, MetricEvent]] = []

    async def initialize(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass

    async def resolve_variant(self, identity: UserIdentity, experiment_key: str, default_variant: Variant) -> Variant:
        self.calls.append((identity.user_id, experiment_key, default_variant))
        if not self.available:
            return default_variant
        return Variant.parse(self.value, default_variant)

    async def track(self, identity: UserIdentity, event: MetricEvent) -> None:
        self.tracked.append((identity, event))


class RecordingTracker:
    """Tracker stand-in that records submissions, optionally into a shared log."""

    def __init__(self, log: list[str] | None = None) -> None:
        self.events: list[tuple[UserIdentity, MetricEvent]] = []
        self.log = log

    async def start(self) -> None:
        pass

    async def stop(self, drain_timeout: float = 5.0) -> None:
        pass

    def submit(self, identity: UserIdentity, event: MetricEvent) -> bool:
        self.events.append((identity, event))
        if self.log is not None:
            self.log.append("track")
        return True


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with defaults."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        debug=True,
        experiment={"sdk_key": "", "key": "sqlite-trek-experiment"},
        observability={"log_level": "debug", "log_format": "console"},
    )


@pytest.fixture
def series_rows() -> list[dict[str, Any]]:
    return [dict(row) for row in SERIES_ROWS]


@pytest.fixture
def fake_resolver() -> FakeResolver:
    return FakeResolver("local")


@pytest.fixture
def tracker() -> RecordingTracker:
    return RecordingTracker()


@pytest.fixture
def adapters() -> dict[Variant, FakeAdapter]:
    return {variant: FakeAdapter(variant) for variant in Variant}


@pytest.fixture
def engine(
    settings: Settings,
    fake_resolver: FakeResolver,
    tracker: RecordingTracker,
    adapters: dict[Variant, FakeAdapter],
) -> TrekRouteEngine:
    """Engine wired to fakes, with every variant's adapter installed."""
    engine = TrekRouteEngine(settings, resolver=fake_resolver, tracker=tracker)  # type: ignore[arg-type]
    for variant, adapter in adapters.items():
        engine.adapter_registry.add(variant, adapter)
    return engine


@pytest.fixture
def adapter_factory() -> type[FakeAdapter]:
    """The fake adapter class, for tests that need extra instances."""
    return FakeAdapter
