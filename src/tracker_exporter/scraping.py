"""Scraping client for trackers without a usable API.

Fetches the authenticated profile page with the stored cookie, keeps the
cookie current as the tracker rotates it, falls back to the challenge
solver when the tracker blocks the request, and hands the final HTML to
the statistics extractor.

Cookie handling order matters: ``Set-Cookie`` entries are merged *before*
the status is checked, because a tracker may answer a block with the
rotated cookie needed to get past it next time.
"""

import logging
from typing import Protocol

import httpx

from tracker_exporter.config import SCRAPING, ExporterConfig, TrackerConfig
from tracker_exporter.cookie_store import CookieStore
from tracker_exporter.cookies import CookieAssignment, merge_cookies
from tracker_exporter.exceptions import (
    AuthenticationError,
    BlockedError,
    ChallengeFailedError,
    ConfigurationError,
    PersistenceError,
    SolverError,
    TransportError,
)
from tracker_exporter.extractor import extract_statistics
from tracker_exporter.models import StatisticsRecord
from tracker_exporter.solver import ChallengeSolver
from tracker_exporter.user_agents import UserAgentProvider

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5


class TrackerClient(Protocol):
    """Anything the metrics cache can poll."""

    async def get_statistics(self) -> StatisticsRecord: ...


class ScrapingClient:
    """Cookie-authenticated profile page scraper for one tracker.

    The client owns the live cookie value (``cookie``); the
    ``TrackerConfig`` it was built from is never modified. Rotations are
    written forward through ``cookie_store`` when one is configured.

    Usage::

        client = ScrapingClient(tracker, http_client, user_agent=ua)
        stats = await client.get_statistics()
    """

    def __init__(
        self,
        tracker: TrackerConfig,
        http_client: httpx.AsyncClient,
        *,
        user_agent: str | UserAgentProvider | None = None,
        solver: ChallengeSolver | None = None,
        cookie_store: CookieStore | None = None,
    ):
        if not tracker.cookie:
            raise AuthenticationError(
                f"Cookie is required for Scraping client (tracker: {tracker.name})",
                tracker=tracker.name,
                url=tracker.url,
            )
        if not isinstance(user_agent, UserAgentProvider):
            user_agent = UserAgentProvider(user_agent)

        self.tracker = tracker
        self.name = tracker.name
        self._http_client = http_client
        self._user_agent = user_agent
        self._solver = solver
        if cookie_store is None and tracker.cookie_file:
            cookie_store = CookieStore(tracker.cookie_file)
        self._cookie_store = cookie_store
        self._cookie = tracker.cookie

    @property
    def cookie(self) -> str:
        """Current cookie header, including any rotations seen so far."""
        return self._cookie

    async def get_statistics(self) -> StatisticsRecord:
        """Fetch the profile page and extract statistics from it.

        Raises:
            TransportError: The tracker could not be reached.
            BlockedError: Non-2xx from the tracker and no solver configured.
            ChallengeFailedError: Non-2xx and the solver failed as well.
        """
        logger.debug("[%s] Fetching stats page from %s", self.name, self.tracker.url)
        response = await self._fetch()

        if response.is_success:
            html = response.text
        else:
            html = await self._recover(response)

        stats = extract_statistics(html)
        if not stats.present_fields():
            logger.warning(
                "[%s] No statistics found on %s (expired cookie or login page?)",
                self.name, self.tracker.url,
            )
        else:
            logger.debug("[%s] Extracted %s", self.name, stats.model_dump(exclude_none=True))
        return stats

    async def _fetch(self) -> httpx.Response:
        """GET the profile page, following redirects with the live cookie."""
        url = httpx.URL(self.tracker.url)
        origin_host = url.host
        for _ in range(MAX_REDIRECTS + 1):
            headers = self._user_agent.get_headers()
            if url.host == origin_host:
                headers["Cookie"] = self._cookie
            try:
                response = await self._http_client.get(url, headers=headers)
            except httpx.HTTPError as exc:
                raise TransportError(
                    f"Failed to fetch page from {self.name}: {exc!r}",
                    tracker=self.name,
                    url=str(url),
                ) from exc

            # Before any status check: a block may carry the rotation.
            # Other hosts never see the cookie and may not rewrite it.
            if url.host == origin_host:
                self._absorb_cookies(response.headers.get_list("set-cookie"))

            if not response.is_redirect or response.next_request is None:
                return response
            url = response.next_request.url
            logger.debug("[%s] Following redirect to %s", self.name, url)
        return response

    async def _recover(self, response: httpx.Response) -> str:
        """Turn a blocked response into page HTML via the challenge solver."""
        failure = (
            f"Failed to fetch page from {self.name}: "
            f"{response.status_code} {response.reason_phrase}"
        )
        if self._solver is None:
            raise BlockedError(
                failure,
                tracker=self.name,
                url=str(response.url),
                status_code=response.status_code,
            )

        logger.info("[%s] Request blocked (%d), trying challenge solver", self.name, response.status_code)
        try:
            solution = await self._solver.solve(self.tracker.url, self._cookie)
        except SolverError as exc:
            raise ChallengeFailedError(
                f"{failure}; challenge solver failed: {exc}",
                solver_error=exc,
                tracker=self.name,
                url=str(response.url),
                status_code=response.status_code,
            ) from exc

        self._absorb_cookies(solution.cookie_pairs())
        return solution.html

    def _absorb_cookies(self, assignments: list[CookieAssignment]) -> None:
        """Merge new cookies and persist them if anything changed."""
        if not assignments:
            return
        merged = merge_cookies(self._cookie, assignments)
        if merged == self._cookie:
            return
        self._cookie = merged
        logger.info("[%s] Cookie rotated by tracker", self.name)

        if self._cookie_store is None:
            return
        try:
            self._cookie_store.save(merged)
        except PersistenceError as exc:
            logger.error("[%s] %s", self.name, exc)
        else:
            logger.debug("[%s] Saved cookie to %s", self.name, self._cookie_store.path)


def create_tracker_client(
    tracker: TrackerConfig,
    http_client: httpx.AsyncClient,
    config: ExporterConfig,
    *,
    user_agent: UserAgentProvider | None = None,
    solver: ChallengeSolver | None = None,
) -> TrackerClient:
    """Build the client for a tracker's configured type.

    Raises:
        ConfigurationError: Unsupported type or missing cookie.
    """
    if tracker.type.upper() != SCRAPING:
        raise ConfigurationError(
            f"Unsupported tracker type {tracker.type!r} for {tracker.name}",
            tracker=tracker.name,
        )
    return ScrapingClient(
        tracker,
        http_client,
        user_agent=user_agent or UserAgentProvider(config.user_agent),
        solver=solver,
    )
