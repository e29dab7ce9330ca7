"""aiohttp application serving the metrics endpoint."""

import logging

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST

from tracker_exporter.exporter import MetricsCache

logger = logging.getLogger(__name__)

CACHE_KEY = web.AppKey("metrics_cache", MetricsCache)


async def metrics_handler(request: web.Request) -> web.Response:
    """Refresh the cache if its TTL has expired, then render it."""
    cache = request.app[CACHE_KEY]
    try:
        await cache.refresh()
        body = cache.render()
    except Exception as exc:  # noqa: BLE001
        logger.exception("Failed to serve metrics")
        return web.Response(status=500, text=str(exc) or type(exc).__name__)
    return web.Response(
        body=body.encode("utf-8"),
        headers={"Content-Type": CONTENT_TYPE_LATEST},
    )


def create_app(cache: MetricsCache, metrics_path: str = "/metrics") -> web.Application:
    """Build the application; every path but ``metrics_path`` is a 404."""
    app = web.Application()
    app[CACHE_KEY] = cache
    app.router.add_get(metrics_path, metrics_handler)
    return app
