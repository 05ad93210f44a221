"""
Timeseries test fixtures.
"""
from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock

from assessment_analytics.cache import CacheStore
from assessment_analytics.connectors import (
    ConnectorGateway,
    ConnectorResult,
    GatewayConfig,
    HistoricalMetrics,
    HistoricalSnapshot,
)
from assessment_analytics.timeseries import TimeseriesSynthesizer

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def make_snapshot(prices, doms=None, active=10, **kwargs):
    """Historical snapshot with one listing per price."""
    doms = doms or [30] * len(prices)
    return HistoricalSnapshot(
        properties=[
            {"id": i, "price": p, "days_on_market": d}
            for i, (p, d) in enumerate(zip(prices, doms))
        ],
        median_price_per_sqft=kwargs.pop("median_price_per_sqft", 150.0),
        active_listings=active,
        metrics=kwargs.pop("metrics", HistoricalMetrics(price_change_pct=0.02)),
        **kwargs,
    )


@pytest.fixture
def market_connector():
    """Market connector returning the same snapshot for every date."""
    connector = MagicMock()
    connector.fetch_data = AsyncMock(return_value=ConnectorResult(data=[{"id": 1}, {"id": 2}], total=2))
    connector.fetch_historical_data = AsyncMock(return_value=make_snapshot([250000]))
    return connector


@pytest.fixture
def gateway(market_connector):
    factory = MagicMock()
    factory.get_connectors_by_type = MagicMock(
        side_effect=lambda category: [market_connector] if category == "market" else []
    )
    return ConnectorGateway(factory, GatewayConfig(timeout_seconds=1, retry_delay_seconds=0))


@pytest.fixture
def synthesizer(gateway):
    return TimeseriesSynthesizer(gateway, CacheStore(), clock=lambda: FIXED_NOW)


@pytest.fixture
def snapshot_factory():
    return make_snapshot
