"""Pydantic v2 model for the statistics scraped from one profile page."""

from pydantic import BaseModel, ConfigDict, Field


class StatisticsRecord(BaseModel):
    """Partial account statistics for one tracker.

    Every field is independently optional: None means "not found on the
    page", which is distinct from an explicit zero. Byte counts are always
    in bytes.
    """

    model_config = ConfigDict(frozen=True)

    uploaded: int | None = Field(default=None, ge=0)
    downloaded: int | None = Field(default=None, ge=0)
    buffer: int | None = Field(default=None, ge=0)
    ratio: float | None = Field(default=None, ge=0)
    bonus: float | None = Field(default=None, ge=0)
    seeding: int | None = Field(default=None, ge=0)
    leeching: int | None = Field(default=None, ge=0)
    hit_and_runs: int | None = Field(default=None, ge=0)

    @classmethod
    def zeros(cls) -> "StatisticsRecord":
        """Default record for a tracker that has never been scraped."""
        return cls(
            uploaded=0,
            downloaded=0,
            buffer=0,
            ratio=0.0,
            bonus=0.0,
            seeding=0,
            leeching=0,
            hit_and_runs=0,
        )

    def present_fields(self) -> list[str]:
        """Names of the fields that were found."""
        return [name for name, value in self if value is not None]
