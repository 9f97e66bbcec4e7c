"""
Unit tests for core.metrics module.

Tests:
- MetricsConfig defaults and validation
- Module-level metric objects
- MetricsServer lifecycle and endpoint response
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram
from pydantic import ValidationError

from relayfeed.core.metrics import (
    CACHE_EVENTS,
    QUERY_DURATION_SECONDS,
    RELAY_QUERIES,
    MetricsConfig,
    MetricsServer,
)


# ============================================================================
# MetricsConfig Tests
# ============================================================================


class TestMetricsConfig:
    """Tests for MetricsConfig Pydantic model."""

    def test_defaults(self) -> None:
        config = MetricsConfig()
        assert config.enabled is False
        assert config.port == 8000
        assert config.host == "127.0.0.1"
        assert config.path == "/metrics"

    def test_port_minimum(self) -> None:
        with pytest.raises(ValidationError):
            MetricsConfig(port=80)

    def test_port_maximum(self) -> None:
        with pytest.raises(ValidationError):
            MetricsConfig(port=70000)


# ============================================================================
# Metric Object Tests
# ============================================================================


class TestMetricObjects:
    """Module-level metric singletons."""

    def test_types(self) -> None:
        assert isinstance(RELAY_QUERIES, Counter)
        assert isinstance(CACHE_EVENTS, Counter)
        assert isinstance(QUERY_DURATION_SECONDS, Histogram)

    def test_labels(self) -> None:
        RELAY_QUERIES.labels(relay="wss://a.example.com", outcome="ok").inc()
        CACHE_EVENTS.labels(event="hit").inc()
        QUERY_DURATION_SECONDS.labels(operation="feed").observe(0.2)


# ============================================================================
# MetricsServer Tests
# ============================================================================


class TestMetricsServer:
    """MetricsServer lifecycle."""

    async def test_disabled_start_is_noop(self) -> None:
        server = MetricsServer(MetricsConfig(enabled=False))
        await server.start()
        assert server.is_running is False

    async def test_start_and_stop(self) -> None:
        runner = MagicMock()
        runner.setup = AsyncMock()
        runner.cleanup = AsyncMock()
        site = MagicMock()
        site.start = AsyncMock()

        with (
            patch("relayfeed.core.metrics.web.AppRunner", return_value=runner),
            patch("relayfeed.core.metrics.web.TCPSite", return_value=site) as tcp_site,
        ):
            server = MetricsServer(MetricsConfig(enabled=True, port=9100))
            await server.start()
            assert server.is_running is True
            tcp_site.assert_called_once_with(runner, "127.0.0.1", 9100)

            await server.stop()
            assert server.is_running is False
            runner.cleanup.assert_awaited_once()

    async def test_bind_failure_releases_runner(self) -> None:
        runner = MagicMock()
        runner.setup = AsyncMock()
        runner.cleanup = AsyncMock()
        site = MagicMock()
        site.start = AsyncMock(side_effect=OSError("address already in use"))

        with (
            patch("relayfeed.core.metrics.web.AppRunner", return_value=runner),
            patch("relayfeed.core.metrics.web.TCPSite", return_value=site),
        ):
            server = MetricsServer(MetricsConfig(enabled=True, port=9100))
            with pytest.raises(OSError, match="already in use"):
                await server.start()

        runner.cleanup.assert_awaited_once()
        assert server.is_running is False

    async def test_stop_when_not_started(self) -> None:
        server = MetricsServer(MetricsConfig())
        await server.stop()
        assert server.is_running is False

    async def test_handle_metrics(self) -> None:
        response = await MetricsServer._handle_metrics(MagicMock())
        assert response.headers["Content-Type"] == CONTENT_TYPE_LATEST
        assert b"relayfeed_relay_queries" in response.body
