"""Pydantic v2 model for the cached per-tracker metrics state."""

from pydantic import BaseModel, ConfigDict

from .statistics import StatisticsRecord


class MetricsSnapshot(BaseModel):
    """Last-known statistics and up/down status for one tracker.

    Replaced as a whole on every scrape pass, never mutated.
    """

    model_config = ConfigDict(frozen=True)

    tracker: str
    statistics: StatisticsRecord
    up: bool = False
    last_attempt: float | None = None
    last_success: float | None = None
