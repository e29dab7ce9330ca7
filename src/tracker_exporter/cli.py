"""CLI entry point for the tracker exporter.

Provides ``main()`` as the sync entry point for the ``tracker-exporter``
console script, and ``async_main(args)`` which sets up logging, builds
one client per configured tracker, and serves the metrics endpoint until
interrupted.

Usage::

    tracker-exporter                         # settings from the environment
    tracker-exporter --port 9200             # override EXPORTER_PORT
    tracker-exporter --log-dir data/logs     # also log DEBUG to a file
"""

import argparse
import asyncio
import logging
import os
import signal

from aiohttp import web

from tracker_exporter.config import ExporterConfig, load_exporter_config
from tracker_exporter.exceptions import ConfigurationError
from tracker_exporter.exporter import MetricsCache
from tracker_exporter.http_client import build_http_client
from tracker_exporter.logging_config import setup_logging
from tracker_exporter.scraping import TrackerClient, create_tracker_client
from tracker_exporter.server import create_app
from tracker_exporter.solver import ChallengeSolver
from tracker_exporter.user_agents import UserAgentProvider

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the tracker-exporter CLI."""
    parser = argparse.ArgumentParser(
        prog="tracker-exporter",
        description="Export private tracker account statistics to Prometheus",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Interface to listen on (default: EXPORTER_HOST or 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: EXPORTER_PORT or 9100)",
    )
    parser.add_argument(
        "--metrics-path",
        type=str,
        default=None,
        help="HTTP path serving metrics (default: EXPORTER_PATH or /metrics)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Console log level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Directory for a DEBUG log file (default: console only)",
    )
    return parser


def apply_overrides(config: ExporterConfig, args: argparse.Namespace) -> ExporterConfig:
    """Let command-line flags win over environment settings."""
    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.metrics_path is not None:
        config.metrics_path = args.metrics_path
    if args.log_level is not None:
        config.log_level = args.log_level.upper()
    return config


def build_clients(config: ExporterConfig, http_client, solver=None) -> dict[str, TrackerClient]:
    """One client per tracker; a tracker with a bad config is skipped."""
    user_agent = UserAgentProvider(config.user_agent)
    clients: dict[str, TrackerClient] = {}
    for tracker in config.trackers:
        try:
            clients[tracker.name] = create_tracker_client(
                tracker, http_client, config, user_agent=user_agent, solver=solver,
            )
        except ConfigurationError as exc:
            logger.error("Skipping tracker %s: %s", tracker.name, exc)
    return clients


async def async_main(args: argparse.Namespace) -> None:
    """Async entry point: wire components and serve until cancelled."""
    log_file = setup_logging(
        args.log_level or os.environ.get("LOG_LEVEL") or "INFO", log_dir=args.log_dir
    )
    config = apply_overrides(load_exporter_config(os.environ), args)

    http_client = build_http_client(config)
    runner: web.AppRunner | None = None
    try:
        solver = None
        if config.flaresolverr_url:
            solver = ChallengeSolver(
                http_client,
                config.flaresolverr_url,
                config.flaresolverr_timeout_ms,
                config.proxy,
            )

        clients = build_clients(config, http_client, solver)
        if not clients:
            logger.warning(
                "No valid tracker configurations found. Set TRACKER_{NAME}_URL and "
                "TRACKER_{NAME}_COOKIE (or _COOKIE_FILE) environment variables."
            )
        else:
            logger.info(
                "Loaded configuration for %d trackers: %s",
                len(clients), ", ".join(clients),
            )

        cache = MetricsCache(clients, config.stats_ttl)
        app = create_app(cache, config.metrics_path)
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, config.host, config.port)
        await site.start()
        logger.info(
            "Serving metrics on http://%s:%d%s (ttl=%.0fs, solver=%s, log=%s)",
            config.host, config.port, config.metrics_path, cache.ttl,
            "on" if solver else "off", log_file or "console",
        )
        stop = asyncio.Event()
        try:
            asyncio.get_running_loop().add_signal_handler(signal.SIGTERM, stop.set)
        except NotImplementedError:
            pass  # Windows: Ctrl+C still cancels the run
        await stop.wait()
    finally:
        if runner is not None:
            await runner.cleanup()
        await http_client.aclose()
        logger.info("Server closed.")


def main() -> None:
    """Sync entry point for the tracker-exporter console script."""
    parser = build_parser()
    args = parser.parse_args()
    try:
        asyncio.run(async_main(args))
    except KeyboardInterrupt:
        pass
    finally:
        logging.shutdown()


if __name__ == "__main__":
    main()
