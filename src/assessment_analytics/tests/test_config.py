"""
Tests for configuration loading and service composition.
"""
import logging

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from assessment_analytics.bootstrap import configure_logging, create_analytics_service
from assessment_analytics.cache import CacheDomain
from assessment_analytics.config import DEFAULT_KNOWN_AREAS, AnalyticsConfig
from assessment_analytics.core import AnalyticsFacade


# =============================================================================
# AnalyticsConfig Tests
# =============================================================================


class TestAnalyticsConfigFromEnv:
    """Tests for AnalyticsConfig.from_env()."""

    def test_loads_default_values(self):
        """Should use defaults when env vars not set."""
        with patch.dict("os.environ", {}, clear=True):
            config = AnalyticsConfig.from_env()

        assert config.log_level == "INFO"
        assert config.cache_cleanup_interval_minutes == 60
        assert config.market_alerts_interval_minutes == 720
        assert config.default_alert_area == "Grandview"
        assert config.known_areas == DEFAULT_KNOWN_AREAS
        assert config.connector_max_retries == 3

    def test_loads_intervals_and_ttls(self):
        with patch.dict("os.environ", {
            "CACHE_TTL_GEOJSON_MINUTES": "30",
            "MARKET_ALERTS_INTERVAL_MINUTES": "60",
            "TIMESERIES_MAX_CONCURRENCY": "8",
            "LOG_LEVEL": "debug",
        }, clear=True):
            config = AnalyticsConfig.from_env()

        assert config.geojson_ttl_minutes == 30
        assert config.market_alerts_interval_minutes == 60
        assert config.timeseries_max_concurrency == 8
        assert config.log_level == "DEBUG"

    def test_known_areas_parsed(self):
        """Should split, strip and drop empty area names."""
        with patch.dict("os.environ", {"KNOWN_AREAS": " yakima, kennewick ,,"}, clear=True):
            config = AnalyticsConfig.from_env()

        assert config.known_areas == ("yakima", "kennewick")

    def test_empty_known_areas_falls_back(self):
        with patch.dict("os.environ", {"KNOWN_AREAS": " , "}, clear=True):
            config = AnalyticsConfig.from_env()

        assert config.known_areas == DEFAULT_KNOWN_AREAS


class TestDerivedSettings:

    def test_cache_ttls_in_seconds(self):
        ttls = AnalyticsConfig().cache_ttls()

        assert ttls[CacheDomain.MARKET_SNAPSHOTS] == 3600
        assert ttls[CacheDomain.PROPERTY_DETAILS] == 86400
        assert ttls[CacheDomain.GEOJSON] == 86400
        assert ttls[CacheDomain.ALERTS] == 3600

    def test_gateway_config(self):
        gateway_config = AnalyticsConfig(connector_timeout_seconds=2.5).gateway_config()

        assert gateway_config.timeout_seconds == 2.5
        assert gateway_config.max_retries == 3


# =============================================================================
# Bootstrap Tests
# =============================================================================


class TestBootstrap:

    def test_configure_logging(self):
        with patch("assessment_analytics.bootstrap.logging.basicConfig") as basic_config:
            configure_logging("debug")

        kwargs = basic_config.call_args.kwargs
        assert kwargs["level"] == logging.DEBUG
        assert kwargs["format"] == "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    @pytest.mark.asyncio
    async def test_creates_wired_facade(self):
        config = AnalyticsConfig(geojson_ttl_minutes=5)
        storage = MagicMock()
        storage.create_log = AsyncMock()

        facade = create_analytics_service(
            config,
            connector_factory=None,
            validator=MagicMock(),
            enricher=MagicMock(),
            monitor=MagicMock(),
            storage=storage,
        )

        assert isinstance(facade, AnalyticsFacade)
        assert facade.cache.ttl(CacheDomain.GEOJSON) == 300
        assert not facade.is_initialized

        # Without connectors the area selector falls back to the default
        options = await facade.get_market_area_options()
        assert [o.id for o in options] == ["grandview"]

    def test_config_from_env_when_missing(self):
        with patch.dict("os.environ", {"DEFAULT_ALERT_AREA": "Sunnyside"}, clear=True):
            facade = create_analytics_service(
                None,
                connector_factory=None,
                validator=MagicMock(),
                enricher=MagicMock(),
                monitor=MagicMock(),
            )

        assert facade.alerts.default_area == "Sunnyside"
