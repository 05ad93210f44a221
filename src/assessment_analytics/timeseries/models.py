"""
Timeseries models.

Timeframes are fixed at import. Result models serialize with camelCase
aliases (model_dump(by_alias=True)) to match the dashboard's JSON shape.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Interval(str, Enum):
    """Spacing between timeseries samples."""
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


@dataclass(frozen=True)
class TimeframeSpec:
    """
    A selectable timeseries window.

    Attributes:
        id: Public identifier ("1yr", "3yr", ...)
        duration_label: Human label ("3 years")
        interval: Sample spacing
        sample_count: Number of points produced
        years: Window length in years
    """
    id: str
    duration_label: str
    interval: Interval
    sample_count: int
    years: int


TIMEFRAMES: Dict[str, TimeframeSpec] = {
    "1yr": TimeframeSpec("1yr", "1 year", Interval.MONTH, 12, 1),
    "3yr": TimeframeSpec("3yr", "3 years", Interval.QUARTER, 12, 3),
    "5yr": TimeframeSpec("5yr", "5 years", Interval.QUARTER, 20, 5),
    "10yr": TimeframeSpec("10yr", "10 years", Interval.YEAR, 10, 10),
}

PROPERTY_TYPES: Tuple[str, ...] = (
    "all",
    "residential",
    "commercial",
    "multi-family",
    "land",
)


class Trend(str, Enum):
    """Direction of median price over the window."""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class CamelModel(BaseModel):
    """Base for models returned to controllers. Instances are frozen."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# =============================================================================
# Timeseries Result
# =============================================================================

class MarketStats(CamelModel):
    average_price_change: float = 0.0
    inventory_change: float = 0.0
    absorption_rate: float = 0.0
    market_health: float = 0.0


class TimeseriesPoint(CamelModel):
    """Market state at one sample date."""

    date: dt.date
    properties: List[Dict[str, Any]] = Field(default_factory=list)
    median_price: float = 0
    median_price_per_sqft: float = 0
    median_days_on_market: float = Field(default=0, alias="medianDOM")
    active_listings: int = 0
    new_listings: int = 0
    sold_listings: int = 0
    pending_listings: int = 0
    market_stats: MarketStats = Field(default_factory=MarketStats)


class TimeframeInfo(CamelModel):
    id: str
    label: str
    duration: str
    interval: Interval


class DateRange(CamelModel):
    start: dt.datetime
    end: dt.datetime


class MarketSummary(CamelModel):
    """First-to-last comparison of the series."""

    overall_trend: Trend
    price_change_pct: float
    dom_change_pct: float
    inventory_change_pct: float
    key_insights: List[str]


class TimeseriesResult(CamelModel):
    """Complete timeseries for one timeframe, area and property type."""

    timeframe: TimeframeInfo
    timeseries: List[TimeseriesPoint]
    market_area: str
    total_properties: int
    date_range: DateRange
    market_summary: MarketSummary


# =============================================================================
# Dashboard Options
# =============================================================================

class TimeframeOption(CamelModel):
    id: str
    label: str
    description: str


class MarketAreaOption(CamelModel):
    id: str
    name: str
    description: str
    property_count: int = 0


DEFAULT_MARKET_AREA = MarketAreaOption(
    id="grandview",
    name="Grandview, WA",
    description="Grandview area in Washington state",
    property_count=450,
)


def timeframe_options() -> List[TimeframeOption]:
    """One option per timeframe, in definition order."""
    return [
        TimeframeOption(
            id=spec.id,
            label=spec.duration_label,
            description=(
                f"Shows property data over {spec.duration_label} "
                f"in {spec.interval.value}ly intervals"
            ),
        )
        for spec in TIMEFRAMES.values()
    ]
