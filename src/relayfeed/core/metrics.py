"""
Prometheus metrics for relay fan-out, query latency, and cache behaviour.

Metric objects are module-level singletons shared by every component.
The [MetricsServer][relayfeed.core.metrics.MetricsServer] exposes them on
an aiohttp ``/metrics`` endpoint; the
[FeedClient][relayfeed.services.feed.FeedClient] starts it on entry when
``MetricsConfig.enabled`` is set.

Architecture:
    RELAY_QUERIES:            Per-relay outcome counts (ok/error/timeout).
    QUERY_DURATION_SECONDS:   Histogram of aggregate query latency.
    CACHE_EVENTS:             Cache hits, misses, and evictions.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class MetricsConfig(BaseModel):
    """Configuration for the Prometheus metrics endpoint."""

    enabled: bool = Field(default=False, description="Serve the metrics endpoint")
    port: int = Field(default=8000, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", description="Metrics endpoint path")


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

RELAY_QUERIES = Counter(
    "relayfeed_relay_queries",
    "Relay sub-queries by outcome",
    ["relay", "outcome"],
)

# Interactive queries are bounded by a few seconds
QUERY_DURATION_SECONDS = Histogram(
    "relayfeed_query_duration_seconds",
    "Duration of aggregate relay-group queries in seconds",
    ["operation"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 1.5, 2.5, 5, 10),
)

CACHE_EVENTS = Counter(
    "relayfeed_cache_events",
    "Query cache hits, misses, and evictions",
    ["event"],
)


# ---------------------------------------------------------------------------
# HTTP Server
# ---------------------------------------------------------------------------


class MetricsServer:
    """Async HTTP server exposing a Prometheus-compatible endpoint.

    Example:
        server = MetricsServer(MetricsConfig(enabled=True, port=8001))
        await server.start()
        ...
        await server.stop()
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        """Bind the endpoint; no-op when metrics are disabled.

        Raises:
            OSError: If the port is already in use or binding fails.
        """
        if not self._config.enabled or self._runner is not None:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        try:
            site = web.TCPSite(runner, self._config.host, self._config.port)
            await site.start()
        except BaseException:
            await runner.cleanup()
            raise
        self._runner = runner

    async def stop(self) -> None:
        """Release the bound port. Safe to call more than once."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(
            body=generate_latest(),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )
