"""
Interfaces of the external collaborators the core orchestrates.

Connectors, validation, geospatial enrichment, market monitoring and the
log sink are implemented by the host application. The core depends only on
these protocols, which keeps every component testable with plain mocks.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from .models import ConnectorResult, HistoricalSnapshot, Listing, MarketArea, ValidationResult

if TYPE_CHECKING:
    from assessment_analytics.monitoring.event_log import LogEntry


@runtime_checkable
class Connector(Protocol):
    """
    Protocol every data connector implements.

    Example implementation:
        class CsvMarketConnector:
            async def fetch_data(self, params):
                rows = self._filter(self._rows, params)
                return ConnectorResult(data=rows, total=len(rows))

            async def fetch_historical_data(self, params):
                return self._history.get((params["area"], params["date"]))
    """

    async def fetch_data(self, params: Mapping[str, Any]) -> ConnectorResult:
        """
        Fetch current listings.

        Args:
            params: Free-form filter (city, propertyType, limit, ...)
        """
        ...

    async def fetch_historical_data(self, params: Mapping[str, Any]) -> Optional[HistoricalSnapshot]:
        """
        Fetch the market state for one area on one date.

        Args:
            params: {"area", "date" (YYYY-MM-DD), optional "propertyType"}

        Returns:
            Snapshot, or None if the source has nothing for that date
        """
        ...


@runtime_checkable
class MarketAreaSource(Protocol):
    """Optional capability of market connectors."""

    async def get_market_areas(self) -> List[MarketArea]:
        ...


@runtime_checkable
class DocumentSource(Protocol):
    """Capability of PDF connectors."""

    async def get_document_by_name(self, file_name: str, extract_text: bool = True) -> Optional[Any]:
        ...


class ConnectorFactory(Protocol):
    """Registry returning configured connectors by category."""

    def get_connectors_by_type(self, category: str) -> Sequence[Connector]:
        ...


class DataValidator(Protocol):
    """Listing validation against area-wide statistics."""

    async def calculate_market_stats(self, listings: List[Listing]) -> Any:
        """Compute the statistics validate_listing() compares against."""
        ...

    def validate_listing(self, listing: Listing) -> ValidationResult:
        ...


class GeospatialEnricher(Protocol):
    """Geospatial enrichment and spatial analysis."""

    async def enrich_property_listing(self, listing: Listing) -> Listing:
        ...

    def convert_listings_to_geojson(self, listings: List[Listing]) -> Dict[str, Any]:
        ...

    def analyze_neighborhood_trends(self, listings: List[Listing]) -> Dict[str, Any]:
        ...

    def analyze_spatial_relationships(self, listings: List[Listing]) -> Any:
        ...


class MarketMonitor(Protocol):
    """Snapshot generation, change detection and prediction."""

    async def generate_snapshot(self, area: str) -> Any:
        ...

    async def check_for_market_changes(self) -> List[Any]:
        """Return alerts (MarketAlert or mappings) for threshold breaches."""
        ...

    async def predict_market_metrics(self, area: str, days_ahead: int) -> Any:
        ...


class StorageSink(Protocol):
    """Structured log storage."""

    async def create_log(self, entry: "LogEntry") -> Any:
        ...


class DataRefresher(Protocol):
    """External service that reloads every data source on its own schedule."""

    async def initialize(self) -> None:
        ...

    async def refresh_all_data(self) -> None:
        ...
