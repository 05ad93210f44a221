"""
Monitoring layer test fixtures.
"""
from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock

from assessment_analytics.cache import CacheStore
from assessment_analytics.monitoring import EventLog, MarketAlertGenerator


@pytest.fixture
def storage():
    """Mock storage sink."""
    sink = MagicMock()
    sink.create_log = AsyncMock(return_value=None)
    return sink


@pytest.fixture
def events(storage):
    return EventLog(storage)


@pytest.fixture
def alert_payload():
    """Alert as the monitor returns it (camelCase mapping)."""
    return {
        "affectedArea": "Grandview",
        "type": "price_spike",
        "severity": "high",
        "message": "Median price up 12% month over month",
        "timestamp": datetime(2024, 5, 1, tzinfo=timezone.utc).isoformat(),
    }


@pytest.fixture
def monitor(alert_payload):
    """Mock market monitor."""
    m = MagicMock()
    m.generate_snapshot = AsyncMock(return_value={"area": "Grandview"})
    m.check_for_market_changes = AsyncMock(return_value=[alert_payload])
    m.predict_market_metrics = AsyncMock(return_value={"median_price": 1})
    return m


@pytest.fixture
def refresh_snapshot():
    return AsyncMock(return_value={"area": "Grandview"})


@pytest.fixture
def generator(monitor, refresh_snapshot, events):
    return MarketAlertGenerator(
        monitor=monitor,
        cache=CacheStore(),
        refresh_snapshot=refresh_snapshot,
        events=events,
    )
