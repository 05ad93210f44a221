"""
Core layer test fixtures.

The facade is wired to mock connectors and mock analytics modules.
"""
from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock

from assessment_analytics.config import AnalyticsConfig
from assessment_analytics.connectors import (
    ConnectorGateway,
    ConnectorResult,
    GatewayConfig,
    HistoricalSnapshot,
    ValidationResult,
)
from assessment_analytics.core import AnalyticsFacade
from assessment_analytics.monitoring import EventLog

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

LISTINGS = [
    {"id": "p1", "price": 310000, "days_on_market": 12},
    {"id": "p2", "price": -1, "days_on_market": 40},
    {"id": "p3", "price": 295000, "days_on_market": 25},
]


@pytest.fixture
def market_connector():
    connector = MagicMock()
    connector.fetch_data = AsyncMock(
        return_value=ConnectorResult(data=[dict(l) for l in LISTINGS], total=42)
    )
    connector.fetch_historical_data = AsyncMock(
        return_value=HistoricalSnapshot(properties=[{"price": 300000}], active_listings=5)
    )
    connector.get_market_areas = AsyncMock(return_value=[])
    return connector


@pytest.fixture
def pdf_connector():
    connector = MagicMock()
    connector.get_document_by_name = AsyncMock(return_value={"name": "deed.pdf", "text": "..."})
    return connector


@pytest.fixture
def connectors(market_connector, pdf_connector):
    """Registered connectors by category (tests may edit)."""
    return {"market": [market_connector], "pdf": [pdf_connector]}


@pytest.fixture
def factory(connectors):
    f = MagicMock()
    f.get_connectors_by_type = MagicMock(side_effect=lambda category: connectors.get(category, []))
    return f


@pytest.fixture
def validator():
    """Flags listings with a non-positive price."""
    v = MagicMock()
    v.calculate_market_stats = AsyncMock(return_value={"median_price": 300000})
    v.validate_listing = MagicMock(
        side_effect=lambda listing: ValidationResult(
            is_valid=listing["price"] > 0,
            issues=[] if listing["price"] > 0 else ["price must be positive"],
        )
    )
    return v


@pytest.fixture
def enricher():
    e = MagicMock()
    e.enrich_property_listing = AsyncMock(side_effect=lambda listing: {**listing, "enriched": True})
    e.convert_listings_to_geojson = MagicMock(
        side_effect=lambda listings: {"type": "FeatureCollection", "features": list(listings)}
    )
    e.analyze_neighborhood_trends = MagicMock(return_value={"downtown": {"avgPrice": 300000}})
    e.analyze_spatial_relationships = MagicMock(return_value={"clusters": []})
    return e


@pytest.fixture
def alert_payloads():
    return [
        {
            "affectedArea": "Grandview",
            "type": "price_spike",
            "severity": "high",
            "message": "Median price up 12%",
            "timestamp": "2024-06-01T00:00:00+00:00",
        },
        {
            "affectedArea": "Yakima",
            "type": "inventory_drop",
            "severity": "medium",
            "message": "Inventory down 20%",
            "timestamp": "2024-06-01T00:00:00+00:00",
        },
    ]


@pytest.fixture
def monitor(alert_payloads):
    m = MagicMock()
    m.generate_snapshot = AsyncMock(side_effect=lambda area: {"area": area, "medianPrice": 300000})
    m.check_for_market_changes = AsyncMock(return_value=alert_payloads)
    m.predict_market_metrics = AsyncMock(return_value={"medianPrice": 315000})
    return m


@pytest.fixture
def storage():
    sink = MagicMock()
    sink.create_log = AsyncMock(return_value=None)
    return sink


@pytest.fixture
async def facade(factory, validator, enricher, monitor, storage):
    """Facade that is always shut down after the test."""
    f = AnalyticsFacade(
        gateway=ConnectorGateway(factory, GatewayConfig(timeout_seconds=1, retry_delay_seconds=0)),
        validator=validator,
        enricher=enricher,
        monitor=monitor,
        events=EventLog(storage),
        config=AnalyticsConfig(),
        clock=lambda: FIXED_NOW,
    )
    yield f
    await f.shutdown()


def logged_entries(storage):
    """LogEntry objects written to the mock sink."""
    return [call.args[0] for call in storage.create_log.await_args_list]


@pytest.fixture
def entries(storage):
    return lambda: logged_entries(storage)
