"""
Shared test fixtures for integration tests.

This file provides in-memory stand-ins for the host application's
collaborators (connectors, validator, enricher, market monitor, log
storage), unlike the mock-based fixtures in
src/assessment_analytics/{component}/tests/conftest.py
"""
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from assessment_analytics.connectors import (
    ConnectorResult,
    HistoricalMetrics,
    HistoricalSnapshot,
    MarketArea,
    ValidationResult,
)


# =============================================================================
# Connectors
# =============================================================================


class InMemoryMarketConnector:
    """
    Market connector over a fixed listing set.

    Historical prices grow 3% per year from 2010, so every series trends up.
    fail_next makes the next N calls raise ConnectionError.
    """

    def __init__(self, listings: List[Dict[str, Any]]):
        self.listings = listings
        self.fail_next = 0
        self.fetch_calls: List[Dict[str, Any]] = []
        self.historical_calls: List[Dict[str, Any]] = []

    def _maybe_fail(self) -> None:
        if self.fail_next > 0:
            self.fail_next -= 1
            raise ConnectionError("connection reset by peer")

    async def fetch_data(self, params):
        self.fetch_calls.append(dict(params))
        self._maybe_fail()
        matching = [
            l for l in self.listings
            if l["city"] == params.get("city", l["city"])
            and l["property_type"] == params.get("propertyType", l["property_type"])
        ]
        return ConnectorResult(data=matching[: params.get("limit", 1000)], total=len(matching))

    async def fetch_historical_data(self, params) -> Optional[HistoricalSnapshot]:
        self.historical_calls.append(dict(params))
        self._maybe_fail()
        day = date.fromisoformat(params["date"])
        factor = 1.03 ** (day.year - 2010)
        properties = [
            {**l, "price": round(l["price"] / 1.03 ** 14 * factor)}
            for l in self.listings
            if l["city"] == params["area"]
        ]
        if not properties:
            return None
        return HistoricalSnapshot(
            properties=properties,
            median_price_per_sqft=round(150 * factor, 2),
            active_listings=len(properties),
            new_listings=1,
            sold_listings=1,
            metrics=HistoricalMetrics(price_change_pct=0.03, market_health=72.5),
        )

    async def get_market_areas(self) -> List[MarketArea]:
        cities = sorted({l["city"] for l in self.listings})
        return [
            MarketArea(
                id=city,
                name=f"{city.title()}, WA",
                property_count=sum(1 for l in self.listings if l["city"] == city),
            )
            for city in cities
        ]


class InMemoryPdfConnector:

    def __init__(self, documents: Dict[str, str]):
        self.documents = documents

    async def fetch_data(self, params):
        return ConnectorResult()

    async def fetch_historical_data(self, params):
        return None

    async def get_document_by_name(self, file_name: str, extract_text: bool = True):
        text = self.documents.get(file_name)
        if text is None:
            return None
        return {"file_name": file_name, "text": text if extract_text else None}


class InMemoryConnectorFactory:

    def __init__(self, **connectors: List[Any]):
        self.connectors = connectors

    def get_connectors_by_type(self, category: str):
        return self.connectors.get(category, [])


# =============================================================================
# Analytics Modules
# =============================================================================


class ThresholdValidator:
    """Flags listings priced below a floor."""

    def __init__(self, floor: float = 50000):
        self.floor = floor
        self.stats_calls = 0

    async def calculate_market_stats(self, listings):
        self.stats_calls += 1
        return {"count": len(listings)}

    def validate_listing(self, listing) -> ValidationResult:
        if listing["price"] < self.floor:
            return ValidationResult(is_valid=False, issues=[f"price below {self.floor}"])
        return ValidationResult()


class PointEnricher:
    """Adds a point geometry from the listing's coordinates."""

    async def enrich_property_listing(self, listing):
        return {**listing, "geometry": {"type": "Point", "coordinates": [listing["lng"], listing["lat"]]}}

    def convert_listings_to_geojson(self, listings):
        return {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "geometry": l["geometry"], "properties": {"id": l["id"]}}
                for l in listings
            ],
        }

    def analyze_neighborhood_trends(self, listings):
        prices = [l["price"] for l in listings]
        return {"all": {"avgPrice": sum(prices) / len(prices), "inventoryCount": len(prices)}}

    def analyze_spatial_relationships(self, listings):
        return {"pairs": len(listings) * (len(listings) - 1) // 2}


class RecordingMarketMonitor:
    """Raises a price alert for every area it has snapshotted."""

    def __init__(self):
        self.snapshots: List[str] = []

    async def generate_snapshot(self, area: str):
        self.snapshots.append(area)
        return {"area": area, "generatedAt": datetime.now(timezone.utc).isoformat()}

    async def check_for_market_changes(self):
        return [
            {
                "affectedArea": area,
                "type": "price_change",
                "severity": "medium",
                "message": f"Prices moving in {area}",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
            for area in dict.fromkeys(self.snapshots)
        ]

    async def predict_market_metrics(self, area: str, days_ahead: int):
        return {"area": area, "daysAhead": days_ahead, "medianPrice": 320000}


class ListStorage:
    """Log sink that keeps entries in memory."""

    def __init__(self):
        self.entries = []

    async def create_log(self, entry):
        self.entries.append(entry)

    def messages(self) -> List[str]:
        return [e.message for e in self.entries]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def listings():
    return [
        {"id": "gv-1", "city": "grandview", "property_type": "residential", "price": 285000,
         "days_on_market": 21, "lat": 46.25, "lng": -119.90},
        {"id": "gv-2", "city": "grandview", "property_type": "residential", "price": 310000,
         "days_on_market": 35, "lat": 46.26, "lng": -119.91},
        {"id": "gv-3", "city": "grandview", "property_type": "land", "price": 40000,
         "days_on_market": 90, "lat": 46.24, "lng": -119.89},
        {"id": "yk-1", "city": "yakima", "property_type": "residential", "price": 365000,
         "days_on_market": 18, "lat": 46.60, "lng": -120.51},
        {"id": "yk-2", "city": "yakima", "property_type": "commercial", "price": 910000,
         "days_on_market": 120, "lat": 46.61, "lng": -120.50},
    ]


@pytest.fixture
def market_connector(listings):
    return InMemoryMarketConnector(listings)


@pytest.fixture
def connector_factory(market_connector):
    return InMemoryConnectorFactory(
        market=[market_connector],
        pdf=[InMemoryPdfConnector({"parcel-1001.pdf": "Assessed value: 285,000"})],
    )


@pytest.fixture
def validator():
    return ThresholdValidator()


@pytest.fixture
def enricher():
    return PointEnricher()


@pytest.fixture
def monitor():
    return RecordingMarketMonitor()


@pytest.fixture
def storage():
    return ListStorage()
