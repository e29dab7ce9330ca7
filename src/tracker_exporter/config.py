"""Exporter and per-tracker configuration.

Configuration comes from the process environment::

    EXPORTER_PORT=9100  EXPORTER_PATH=/metrics  STATS_TTL=15m
    PROXY_URL=http://proxy:3128  FLARESOLVERR_URL=http://flaresolverr:8191/v1
    TRACKER_{NAME}_URL=https://tracker.example/user/me
    TRACKER_{NAME}_COOKIE=uid=1; pass=abc
    TRACKER_{NAME}_COOKIE_FILE=/data/name.cookie

All durations are in seconds unless the variable name says otherwise.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping
from urllib.parse import quote, urlsplit, urlunsplit

logger = logging.getLogger(__name__)

# Re-scrapes more often than this hammer tracker profile pages.
MIN_STATS_TTL = 300.0
DEFAULT_STATS_TTL = 900.0

SCRAPING = "SCRAPING"

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d)?\s*$", re.IGNORECASE)
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, "d": 86400.0}

_TRACKER_OPTIONS = (
    # Longest suffix first: _COOKIE_FILE must win over _COOKIE.
    ("_COOKIE_FILE", "cookie_file"),
    ("_COOKIE", "cookie"),
    ("_TYPE", "type"),
    ("_URL", "url"),
)


@dataclass(frozen=True)
class ProxyConfig:
    """Process-wide outbound proxy."""

    url: str
    username: str | None = None
    password: str | None = None

    def authenticated_url(self) -> str:
        """Proxy URL with credentials embedded when both are set."""
        if not (self.username and self.password):
            return self.url
        parts = urlsplit(self.url)
        host = parts.hostname or ""
        if parts.port is not None:
            host = f"{host}:{parts.port}"
        netloc = f"{quote(self.username, safe='')}:{quote(self.password, safe='')}@{host}"
        return urlunsplit(parts._replace(netloc=netloc))


@dataclass(frozen=True)
class TrackerConfig:
    """One tracker account to poll.

    ``cookie`` is the raw ``Cookie`` header value. It is never rewritten
    here; the scraping client owns the live value after startup.
    """

    name: str
    url: str
    type: str = SCRAPING
    cookie: str | None = None
    cookie_file: str | None = None


@dataclass
class ExporterConfig:
    """Process-wide exporter settings."""

    # Metrics endpoint
    host: str = "0.0.0.0"
    port: int = 9100
    metrics_path: str = "/metrics"

    # Minimum interval between scrape passes (clamped to MIN_STATS_TTL)
    stats_ttl: float = DEFAULT_STATS_TTL

    # Overrides the desktop Chrome User-Agent sent to trackers
    user_agent: str | None = None

    proxy: ProxyConfig | None = None

    # Challenge solver (FlareSolverr-compatible); disabled when unset
    flaresolverr_url: str | None = None
    flaresolverr_timeout_ms: int = 60000

    # Transport timeout for direct tracker requests
    request_timeout: float = 30.0

    log_level: str = "INFO"

    trackers: list[TrackerConfig] = field(default_factory=list)


def parse_duration(text: str | None) -> float | None:
    """Parse ``"90"``, ``"30s"``, ``"10m"``, ``"1h"`` or ``"1d"`` into seconds.

    Returns None when the text is empty or not a duration.
    """
    if not text:
        return None
    match = _DURATION_RE.match(text)
    if not match:
        return None
    value, unit = match.groups()
    return float(value) * _DURATION_UNITS[(unit or "s").lower()]


def _parse_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %d", key, raw, default)
        return default


def _parse_seconds(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if not raw:
        return default
    seconds = parse_duration(raw)
    if seconds is None:
        logger.warning("Invalid %s=%r, using default %.0fs", key, raw, default)
        return default
    return seconds


def load_exporter_config(environ: Mapping[str, str]) -> ExporterConfig:
    """Build an :class:`ExporterConfig` from environment variables.

    Invalid values are logged and replaced by their defaults, so a typo
    never prevents the exporter from starting.
    """
    stats_ttl = _parse_seconds(environ, "STATS_TTL", DEFAULT_STATS_TTL)
    if stats_ttl < MIN_STATS_TTL:
        logger.warning(
            "STATS_TTL %.0fs is below the %.0fs minimum, clamping",
            stats_ttl, MIN_STATS_TTL,
        )
        stats_ttl = MIN_STATS_TTL

    proxy = None
    if environ.get("PROXY_URL"):
        proxy = ProxyConfig(
            url=environ["PROXY_URL"],
            username=environ.get("PROXY_USERNAME") or None,
            password=environ.get("PROXY_PASSWORD") or None,
        )

    return ExporterConfig(
        host=environ.get("EXPORTER_HOST") or "0.0.0.0",
        port=_parse_int(environ, "EXPORTER_PORT", 9100),
        metrics_path=environ.get("EXPORTER_PATH") or "/metrics",
        stats_ttl=stats_ttl,
        user_agent=environ.get("USER_AGENT") or None,
        proxy=proxy,
        flaresolverr_url=environ.get("FLARESOLVERR_URL") or None,
        flaresolverr_timeout_ms=_parse_int(environ, "FLARESOLVERR_TIMEOUT", 60000),
        request_timeout=_parse_seconds(environ, "REQUEST_TIMEOUT", 30.0),
        log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        trackers=load_trackers(environ),
    )


def _read_cookie_file(path: str) -> str | None:
    try:
        content = Path(path).read_text(encoding="utf-8").strip()
    except OSError as exc:
        logger.warning("Could not read cookie file %s: %s", path, exc)
        return None
    return content or None


def load_trackers(environ: Mapping[str, str]) -> list[TrackerConfig]:
    """Collect ``TRACKER_{NAME}_{OPTION}`` variables into tracker configs.

    Only ``SCRAPING`` trackers are returned; anything else is logged and
    skipped. Cookie file content takes precedence over an inline cookie.
    """
    raw: dict[str, dict[str, str]] = {}
    for key, value in environ.items():
        if not value or not key.startswith("TRACKER_"):
            continue
        for suffix, option in _TRACKER_OPTIONS:
            if key.endswith(suffix):
                name = key[len("TRACKER_"):-len(suffix)]
                if name:
                    raw.setdefault(name, {})[option] = value
                break

    trackers: list[TrackerConfig] = []
    for name in sorted(raw):
        options = raw[name]
        if not options.get("url"):
            logger.warning("Skipping tracker %s: missing TRACKER_%s_URL", name, name)
            continue

        cookie = options.get("cookie")
        cookie_file = options.get("cookie_file")
        if cookie_file:
            cookie = _read_cookie_file(cookie_file) or cookie

        tracker_type = options.get("type")
        if not tracker_type:
            tracker_type = SCRAPING if (cookie or cookie_file) else "UNIT3D"
        tracker_type = tracker_type.upper()

        if tracker_type != SCRAPING:
            logger.warning(
                "Skipping tracker %s with unsupported type: %s", name, tracker_type
            )
            continue

        trackers.append(
            TrackerConfig(
                name=name,
                url=options["url"],
                type=tracker_type,
                cookie=cookie,
                cookie_file=cookie_file,
            )
        )
    return trackers
