"""Experiment models — variants, synthetic user identities, and metric events."""

from __future__ import annotations

import secrets
import time
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Variant(str, Enum):
    """Closed set of backend keys an experiment can assign."""

    LOCAL = "local"
    REMOTE_A = "remote-a"
    REMOTE_B = "remote-b"

    @property
    def label(self) -> str:
        """Human-readable backend name shown next to results."""
        return _LABELS[self]

    @classmethod
    def lookup(cls, value: object) -> Variant | None:
        """Map a served flag value onto a variant, or None if unrecognized.

        Matching is exact: the canonical keys plus the provider names served
        by the experiment flag (``turso``, ``cloud``). Anything else, including
        other casings or padded values, is unrecognized.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return _ALIASES.get(value)

    @classmethod
    def parse(cls, value: object, default: Variant) -> Variant:
        """Like :meth:`lookup`, but unknown or absent values yield ``default``."""
        variant = cls.lookup(value)
        return default if variant is None else variant


_LABELS: dict[Variant, str] = {
    Variant.LOCAL: "Local SQLite",
    Variant.REMOTE_A: "Turso",
    Variant.REMOTE_B: "SQLite Cloud",
}

_ALIASES: dict[str, Variant] = {
    "turso": Variant.REMOTE_A,
    "cloud": Variant.REMOTE_B,
}


class UserIdentity(BaseModel):
    """Synthetic per-request user, never persisted."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(description="Identifier of the form user_<epoch-ms>_<0-999>")

    @classmethod
    def generate(cls) -> UserIdentity:
        """Create a fresh identity from the wall clock and a random suffix."""
        return cls(user_id=f"user_{int(time.time() * 1000)}_{secrets.randbelow(1000)}")


class MetricEvent(BaseModel):
    """Best-effort telemetry event tied to a synthetic user."""

    model_config = ConfigDict(frozen=True)

    kind: str = Field(default="response_time", description="Event type reported to the platform")
    value: int = Field(ge=0, description="Measured value (milliseconds for response_time)")
    subject: UserIdentity = Field(description="User the event is attributed to")
    date: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Event creation time")
