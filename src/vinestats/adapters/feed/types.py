"""Validated shape of the stats feed document."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from vinestats.core.time import parse_iso_datetime
from vinestats.core.types import DropEvent


class StatsMeta(BaseModel):
    """Feed-level metadata: item count and the feed's own refresh instant."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_items: int = Field(default=0, ge=0, description="Items the feed reports in total.")
    updated_at: datetime | None = Field(default=None, description="Feed refresh instant.")

    @field_validator("updated_at", mode="before")
    @classmethod
    def _parse_updated_at(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        if isinstance(v, str):
            return parse_iso_datetime(v)
        return v


class StatsFeed(BaseModel, frozen=True):
    """A parsed feed: metadata plus the normalized, time-sorted drop history."""

    meta: StatsMeta
    history: list[DropEvent]
