"""
Connector layer test fixtures.

The gateway is tested against mock connectors; no real upstream is used.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from assessment_analytics.connectors import (
    ConnectorGateway,
    ConnectorResult,
    GatewayConfig,
    HistoricalSnapshot,
)


@pytest.fixture
def market_connector():
    """Mock market connector with one listing."""
    connector = MagicMock()
    connector.fetch_data = AsyncMock(
        return_value=ConnectorResult(data=[{"id": "p1", "price": 300000}], total=1)
    )
    connector.fetch_historical_data = AsyncMock(
        return_value=HistoricalSnapshot(active_listings=10)
    )
    connector.get_market_areas = AsyncMock(return_value=[])
    return connector


@pytest.fixture
def factory(market_connector):
    """Connector factory serving the mock market connector."""
    f = MagicMock()
    f.get_connectors_by_type = MagicMock(
        side_effect=lambda category: [market_connector] if category == "market" else []
    )
    return f


@pytest.fixture
def fast_config():
    """Short timeout and no backoff wait."""
    return GatewayConfig(timeout_seconds=0.05, max_retries=3, retry_delay_seconds=0)


@pytest.fixture
def gateway(factory, fast_config):
    return ConnectorGateway(factory, fast_config)
