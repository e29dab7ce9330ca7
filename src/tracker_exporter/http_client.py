"""Shared outbound HTTP client.

One ``httpx.AsyncClient`` is built at startup and injected into every
scraping client and the challenge solver, so all trackers share a single
connection pool and a single proxy configuration. The owner (the CLI)
closes it on shutdown.
"""

import logging

import httpx

from tracker_exporter.config import ExporterConfig

logger = logging.getLogger(__name__)


def build_http_client(config: ExporterConfig) -> httpx.AsyncClient:
    """Create the process-wide ``AsyncClient``.

    Redirects are not followed here: httpx rebuilds the ``Cookie`` header
    from its own jar on redirect, which would drop the tracker cookie.
    The scraping client follows them itself.
    """
    proxy = config.proxy.authenticated_url() if config.proxy else None
    if proxy:
        logger.info("Routing outbound requests through proxy %s", config.proxy.url)
    return httpx.AsyncClient(
        proxy=proxy,
        timeout=httpx.Timeout(config.request_timeout),
        follow_redirects=False,
    )
