"""Unit tests for the sticky desktop User-Agent provider."""

from unittest.mock import patch

import pytest

from tracker_exporter.user_agents import DEFAULT_USER_AGENT, UserAgentProvider

CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
)
MAC_CHROME_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
)
LINUX_CHROME_UA = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
)
FIREFOX_UA ="Mozilla/5.0 (X11; Linux x86_64; rv:128.0) Gecko/20100101 Firefox/128.0"


class TestOverride:
    """USER_AGENT replaces the generated value entirely."""

    def test_override_returned(self):
        with patch("tracker_exporter.user_agents.UserAgent") as mock_ua:
            provider = UserAgentProvider(FIREFOX_UA)
            assert provider.get() == FIREFOX_UA
        mock_ua.assert_not_called()

    def test_empty_override_ignored(self):
        with patch("tracker_exporter.user_agents.UserAgent") as mock_ua:
            mock_ua.return_value.random = CHROME_UA
            assert UserAgentProvider("").get() == CHROME_UA


class TestStickiness:
    """One User-Agent per process, like a real browser."""

    def test_same_value_every_call(self):
        with patch("tracker_exporter.user_agents.UserAgent") as mock_ua:
            mock_ua.return_value.random = CHROME_UA
            provider = UserAgentProvider()
            results = {provider.get() for _ in range(10)}

        assert results == {CHROME_UA}
        mock_ua.assert_called_once()

    def test_desktop_chrome_requested_with_fallback(self):
        with patch("tracker_exporter.user_agents.UserAgent") as mock_ua:
            mock_ua.return_value.random = CHROME_UA
            UserAgentProvider().get()

        kwargs = mock_ua.call_args.kwargs
        assert kwargs["browsers"] == ["Chrome"]
        assert kwargs["platforms"] == ["desktop"]
        assert kwargs["fallback"] == DEFAULT_USER_AGENT


class TestClientHintsHeaders:
    """Tests for Sec-CH-UA headers in get_headers()."""

    def test_get_headers_includes_client_hints_for_chrome(self):
        headers = UserAgentProvider(CHROME_UA).get_headers()

        assert headers["User-Agent"] == CHROME_UA
        assert headers["Sec-CH-UA-Platform"] == '"Windows"'
        assert headers["Sec-CH-UA-Mobile"] == "?0"
        assert headers["Accept"].startswith("text/html")

    @pytest.mark.parametrize(
        "ua_string, platform",
        [
            (CHROME_UA, '"Windows"'),
            (MAC_CHROME_UA, '"macOS"'),
            (LINUX_CHROME_UA, '"Linux"'),
        ],
    )
    def test_platform_hint_matches_user_agent(self, ua_string, platform):
        headers = UserAgentProvider(ua_string).get_headers()
        assert headers["Sec-CH-UA-Platform"] == platform

    def test_get_headers_no_client_hints_for_non_chrome(self):
        headers = UserAgentProvider(FIREFOX_UA).get_headers()

        assert headers["User-Agent"] == FIREFOX_UA
        assert "Sec-CH-UA-Platform" not in headers
        assert "Sec-CH-UA-Mobile" not in headers

    def test_headers_are_a_fresh_dict(self):
        provider = UserAgentProvider(CHROME_UA)
        provider.get_headers()["Cookie"] = "uid=1"
        assert "Cookie" not in provider.get_headers()
