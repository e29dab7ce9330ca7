"""Pydantic v2 models for the challenge solver wire protocol.

Only the keys the exporter reads are declared; everything else the
service sends is ignored.
"""

from pydantic import BaseModel, ConfigDict, Field


class SolverCookie(BaseModel):
    """One cookie from the solver's browser session."""

    model_config = ConfigDict(extra="allow")

    name: str
    value: str


class SolverSolution(BaseModel):
    """The retried request as the solver's browser saw it."""

    status: int
    response: str = ""
    cookies: list[SolverCookie] = Field(default_factory=list)
    url: str | None = None
    userAgent: str | None = None


class SolverResponse(BaseModel):
    """Top-level solver response body."""

    status: str
    message: str = ""
    solution: SolverSolution | None = None


class ChallengeSolution(BaseModel):
    """Rendered page and cookies handed back to the scraping client."""

    model_config = ConfigDict(frozen=True)

    html: str
    status: int
    cookies: list[SolverCookie] = Field(default_factory=list)

    def cookie_pairs(self) -> list[tuple[str, str]]:
        """Cookies as ``(name, value)`` pairs for merging."""
        return [(cookie.name, cookie.value) for cookie in self.cookies]
