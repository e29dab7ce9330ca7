"""Client for a FlareSolverr-compatible challenge solver service.

When a tracker blocks a direct request, the solver's real browser loads
the page, passes whatever anti-bot challenge is in the way, and returns
the rendered HTML plus the browser's cookies.

Request::

    POST <service_url>
    {"cmd": "request.get", "url": ..., "maxTimeout": <ms>,
     "cookies": [{"name": ..., "value": ...}], "proxy": {"url": ...}}

Response::

    {"status": "ok" | "error", "message": ...,
     "solution": {"status": <target HTTP status>, "response": <html>,
                  "cookies": [{"name": ..., "value": ..., ...}]}}
"""

import logging

import httpx
from pydantic import ValidationError

from tracker_exporter.config import ProxyConfig
from tracker_exporter.cookies import parse_cookie_header
from tracker_exporter.exceptions import (
    SolverLogicError,
    SolverServiceError,
    TargetBlockedError,
)
from tracker_exporter.models import ChallengeSolution, SolverResponse

logger = logging.getLogger(__name__)

# Transport timeout slack on top of the solver's own maxTimeout
_TRANSPORT_GRACE = 10.0


def build_payload(
    target_url: str,
    timeout_ms: int,
    cookie_header: str | None,
    proxy: ProxyConfig | None = None,
) -> dict:
    """Build the ``request.get`` command body."""
    payload: dict = {
        "cmd": "request.get",
        "url": target_url,
        "maxTimeout": timeout_ms,
        "cookies": [
            {"name": name, "value": value}
            for name, value in parse_cookie_header(cookie_header).items()
        ],
    }
    if proxy is not None:
        payload["proxy"] = {"url": proxy.authenticated_url()}
    return payload


async def solve_challenge(
    http_client: httpx.AsyncClient,
    service_url: str,
    target_url: str,
    timeout_ms: int,
    cookie_header: str | None,
    proxy: ProxyConfig | None = None,
) -> ChallengeSolution:
    """Ask the solver service to fetch ``target_url`` through a real browser.

    Returns:
        The rendered HTML, the target's status and the solver's cookies.

    Raises:
        SolverServiceError: Transport failure, non-2xx or undecodable
            response from the service.
        SolverLogicError: The service answered ``status: "error"``.
        TargetBlockedError: The solver ran but the target returned >= 400.
    """
    logger.info("Attempting to solve challenge for %s via %s", target_url, service_url)
    payload = build_payload(target_url, timeout_ms, cookie_header, proxy)

    try:
        response = await http_client.post(
            service_url,
            json=payload,
            timeout=timeout_ms / 1000 + _TRANSPORT_GRACE,
        )
    except httpx.HTTPError as exc:
        raise SolverServiceError(
            f"Challenge solver request failed: {exc!r}", url=service_url
        ) from exc

    if not response.is_success:
        raise SolverServiceError(
            f"Challenge solver returned {response.status_code} {response.reason_phrase}",
            url=service_url,
            status_code=response.status_code,
        )

    try:
        data = SolverResponse.model_validate_json(response.content)
    except ValidationError as exc:
        raise SolverServiceError(
            f"Challenge solver sent an unreadable response: {exc.error_count()} errors",
            url=service_url,
            status_code=response.status_code,
        ) from exc

    if data.status == "error":
        raise SolverLogicError(
            f"Challenge solver failed: {data.message}", url=target_url
        )

    if data.solution is None:
        raise SolverServiceError(
            "Challenge solver response has no solution", url=service_url
        )

    if data.solution.status >= 400:
        raise TargetBlockedError(
            f"Target site returned {data.solution.status} after challenge solver attempt",
            url=target_url,
            status_code=data.solution.status,
        )

    logger.debug(
        "Challenge solved for %s: %d bytes, %d cookies",
        target_url, len(data.solution.response), len(data.solution.cookies),
    )
    return ChallengeSolution(
        html=data.solution.response,
        status=data.solution.status,
        cookies=data.solution.cookies,
    )


class ChallengeSolver:
    """Configured solver endpoint, shared by every scraping client."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        service_url: str,
        timeout_ms: int = 60000,
        proxy: ProxyConfig | None = None,
    ):
        self._http_client = http_client
        self.service_url = service_url
        self.timeout_ms = timeout_ms
        self._proxy = proxy

    async def solve(self, target_url: str, cookie_header: str | None) -> ChallengeSolution:
        """Solve the challenge in front of ``target_url``."""
        return await solve_challenge(
            self._http_client,
            self.service_url,
            target_url,
            self.timeout_ms,
            cookie_header,
            self._proxy,
        )
