"""Record model — One row of the fixed series dataset."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Record(BaseModel):
    """A single series entry as stored in every backend.

    Rows are loaded wholesale on each query and never mutated. Columns
    beyond the four below (e.g. an integer primary key) are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    series_name: str = Field(description="Series title, natural key of the dataset")
    captain: str = Field(default="", description="Commanding officer")
    description: str = Field(default="", description="Free-text synopsis")
    crew: str = Field(default="", description="Comma-separated crew member names")

    @field_validator("captain", "description", "crew", mode="before")
    @classmethod
    def _null_to_empty(cls, v: Any) -> Any:
        """SQL NULL columns arrive as None; treat them as empty text."""
        return "" if v is None else v

    @property
    def crew_members(self) -> list[str]:
        """Crew names split on commas, trimmed, blanks dropped."""
        return [name.strip() for name in self.crew.split(",") if name.strip()]
