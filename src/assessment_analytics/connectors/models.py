"""
Data models exchanged with connectors and analytics modules.

Listings are free-form records (dicts) whose shape belongs to each
connector. The core only relies on:
- "price": listing price (positive when known)
- "days_on_market": days listed (non-negative when known)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

Listing = Dict[str, Any]


class ConnectorCategory(str, Enum):
    """Upstream source categories."""
    MARKET = "market"
    PDF = "pdf"
    GIS = "gis"
    CAMA = "cama"


@dataclass
class ConnectorResult:
    """A page of listings returned by fetch_data()."""

    data: List[Listing] = field(default_factory=list)
    total: int = 0


@dataclass
class HistoricalMetrics:
    """Connector-supplied market health metrics for one date."""

    price_change_pct: float = 0.0
    inventory_change_pct: float = 0.0
    absorption_rate: float = 0.0
    market_health: float = 0.0


@dataclass
class HistoricalSnapshot:
    """
    Point-in-time market state for one area and date.

    Attributes:
        properties: Listings as of the date
        median_price_per_sqft: Connector-computed median $/sqft
        active_listings: Active listing count
        new_listings: Listings added in the period
        sold_listings: Listings sold in the period
        pending_listings: Listings under contract
        metrics: Market health metrics
    """
    properties: List[Listing] = field(default_factory=list)
    median_price_per_sqft: float = 0.0
    active_listings: int = 0
    new_listings: int = 0
    sold_listings: int = 0
    pending_listings: int = 0
    metrics: HistoricalMetrics = field(default_factory=HistoricalMetrics)

    @property
    def is_empty(self) -> bool:
        """True when the connector had nothing for this date."""
        return not self.properties and self.active_listings == 0


@dataclass
class ValidationResult:
    """Outcome of validating one listing."""

    is_valid: bool = True
    anomalies: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return not self.is_valid or bool(self.anomalies)


@dataclass
class MarketArea:
    """A market area a connector can serve."""

    id: str
    name: str
    property_count: int = 0
    description: Optional[str] = None
