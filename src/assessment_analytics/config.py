"""
Configuration for the analytics core.

Loads settings from environment variables:

    LOG_LEVEL                            Logging level (default: INFO)
    CACHE_TTL_MARKET_SNAPSHOTS_MINUTES   Snapshot/timeseries TTL (default: 60)
    CACHE_TTL_PROPERTY_DETAILS_MINUTES   Property details TTL (default: 1440)
    CACHE_TTL_GEOJSON_MINUTES            GeoJSON TTL (default: 1440)
    CACHE_TTL_ALERTS_MINUTES             Alert list TTL (default: 60)
    CACHE_CLEANUP_INTERVAL_MINUTES       cache-cleanup job interval (default: 60)
    MARKET_ALERTS_INTERVAL_MINUTES       market-alerts job interval (default: 720)
    DEFAULT_ALERT_AREA                   Area refreshed before alert checks (default: Grandview)
    KNOWN_AREAS                          Comma separated timeseries areas
    CONNECTOR_TIMEOUT_SECONDS            Per-call connector timeout (default: 10)
    CONNECTOR_MAX_RETRIES                Attempts per connector call (default: 3)
    CONNECTOR_RETRY_DELAY_SECONDS        Backoff base delay (default: 0.5)
    TIMESERIES_MAX_CONCURRENCY           Parallel historical fetches (default: 4)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Tuple

from assessment_analytics.cache.store import CacheDomain
from assessment_analytics.connectors.gateway import GatewayConfig

DEFAULT_KNOWN_AREAS: Tuple[str, ...] = (
    "grandview",
    "sunnyside",
    "yakima",
    "toppenish",
    "richland",
)


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, str(default)))


@dataclass
class AnalyticsConfig:
    """Runtime configuration for the analytics service."""

    log_level: str = "INFO"

    # Cache TTLs
    market_snapshots_ttl_minutes: float = 60
    property_details_ttl_minutes: float = 1440  # 24 hours
    geojson_ttl_minutes: float = 1440
    alerts_ttl_minutes: float = 60

    # Scheduled jobs
    cache_cleanup_interval_minutes: float = 60
    market_alerts_interval_minutes: float = 720  # 12 hours

    # Alerts
    default_alert_area: str = "Grandview"

    # Timeseries
    known_areas: Tuple[str, ...] = DEFAULT_KNOWN_AREAS
    timeseries_max_concurrency: int = 4

    # Connector calls
    connector_timeout_seconds: float = 10.0
    connector_max_retries: int = 3
    connector_retry_delay_seconds: float = 0.5

    @classmethod
    def from_env(cls) -> "AnalyticsConfig":
        """Load configuration from environment variables."""
        known_areas = tuple(
            area.strip()
            for area in os.environ.get("KNOWN_AREAS", ",".join(DEFAULT_KNOWN_AREAS)).split(",")
            if area.strip()
        )
        return cls(
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            market_snapshots_ttl_minutes=_env_float("CACHE_TTL_MARKET_SNAPSHOTS_MINUTES", 60),
            property_details_ttl_minutes=_env_float("CACHE_TTL_PROPERTY_DETAILS_MINUTES", 1440),
            geojson_ttl_minutes=_env_float("CACHE_TTL_GEOJSON_MINUTES", 1440),
            alerts_ttl_minutes=_env_float("CACHE_TTL_ALERTS_MINUTES", 60),
            cache_cleanup_interval_minutes=_env_float("CACHE_CLEANUP_INTERVAL_MINUTES", 60),
            market_alerts_interval_minutes=_env_float("MARKET_ALERTS_INTERVAL_MINUTES", 720),
            default_alert_area=os.environ.get("DEFAULT_ALERT_AREA", "Grandview"),
            known_areas=known_areas or DEFAULT_KNOWN_AREAS,
            timeseries_max_concurrency=int(os.environ.get("TIMESERIES_MAX_CONCURRENCY", "4")),
            connector_timeout_seconds=_env_float("CONNECTOR_TIMEOUT_SECONDS", 10.0),
            connector_max_retries=int(os.environ.get("CONNECTOR_MAX_RETRIES", "3")),
            connector_retry_delay_seconds=_env_float("CONNECTOR_RETRY_DELAY_SECONDS", 0.5),
        )

    def cache_ttls(self) -> Dict[CacheDomain, float]:
        """TTL per cache domain, in seconds."""
        return {
            CacheDomain.MARKET_SNAPSHOTS: self.market_snapshots_ttl_minutes * 60,
            CacheDomain.PROPERTY_DETAILS: self.property_details_ttl_minutes * 60,
            CacheDomain.GEOJSON: self.geojson_ttl_minutes * 60,
            CacheDomain.ALERTS: self.alerts_ttl_minutes * 60,
        }

    def gateway_config(self) -> GatewayConfig:
        """Connector timeout and retry settings."""
        return GatewayConfig(
            timeout_seconds=self.connector_timeout_seconds,
            max_retries=self.connector_max_retries,
            retry_delay_seconds=self.connector_retry_delay_seconds,
        )
