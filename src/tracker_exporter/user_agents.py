"""Desktop-browser User-Agent for tracker requests.

Trackers behind Cloudflare-style protection reject obvious HTTP library
User-Agents. Real browsers do not change User-Agent mid-session, so the
provider draws one desktop Chrome string from fake-useragent on first
use and keeps it for the lifetime of the process. A process-wide override
(``USER_AGENT``) replaces it entirely.
"""

from fake_useragent import UserAgent

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# (UA token, Sec-CH-UA-Platform value), first match wins
_PLATFORM_TOKENS = (
    ("Windows", "Windows"),
    ("Macintosh", "macOS"),
    ("CrOS", "Chrome OS"),
    ("Linux", "Linux"),
)


def platform_hint(ua_string: str) -> str:
    """Platform name Chrome reports for ``ua_string``."""
    for token, platform in _PLATFORM_TOKENS:
        if token in ua_string:
            return platform
    return "Windows"


class UserAgentProvider:
    """Sticky desktop Chrome User-Agent with an optional override."""

    def __init__(self, override: str | None = None):
        self._override = override
        self._chosen: str | None = None

    def get(self) -> str:
        """Return the User-Agent string used for every tracker request."""
        if self._override:
            return self._override
        if self._chosen is None:
            ua = UserAgent(
                browsers=["Chrome"],
                platforms=["desktop"],
                min_version=120.0,
                fallback=DEFAULT_USER_AGENT,
            )
            self._chosen = ua.random
        return self._chosen

    def get_headers(self) -> dict[str, str]:
        """Return request headers matching the chosen User-Agent.

        Chrome client hints are only sent when the User-Agent claims to
        be Chrome; other browsers do not send them.
        """
        ua_string = self.get()
        headers: dict[str, str] = {
            "User-Agent": ua_string,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

        if "Chrome/" in ua_string:
            headers["Sec-CH-UA-Platform"] = f'"{platform_hint(ua_string)}"'
            headers["Sec-CH-UA-Mobile"] = "?0"

        return headers
