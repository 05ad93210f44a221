"""
Timeseries Layer - Historical property market series.

This module provides:
    - TimeseriesSynthesizer: Builds and caches series per timeframe/area/type
    - TIMEFRAMES: 1yr (monthly), 3yr and 5yr (quarterly), 10yr (yearly)
    - TimeseriesResult and related camelCase result models
    - Dashboard option models (timeframes, market areas)
"""

from .models import (
    DEFAULT_MARKET_AREA,
    PROPERTY_TYPES,
    TIMEFRAMES,
    DateRange,
    Interval,
    MarketAreaOption,
    MarketStats,
    MarketSummary,
    TimeframeInfo,
    TimeframeOption,
    TimeframeSpec,
    TimeseriesPoint,
    TimeseriesResult,
    Trend,
    timeframe_options,
)
from .synthesizer import (
    TimeseriesSynthesizer,
    build_point,
    build_summary,
    lower_median,
    pct_change,
    round_half_up,
    sample_dates,
    validate_timeseries_params,
)

__all__ = [
    # Synthesizer
    "TimeseriesSynthesizer",
    "validate_timeseries_params",
    "sample_dates",
    "lower_median",
    "pct_change",
    "round_half_up",
    "build_point",
    "build_summary",
    # Timeframes
    "TIMEFRAMES",
    "PROPERTY_TYPES",
    "TimeframeSpec",
    "Interval",
    "Trend",
    # Results
    "TimeseriesResult",
    "TimeseriesPoint",
    "MarketStats",
    "MarketSummary",
    "TimeframeInfo",
    "DateRange",
    # Options
    "TimeframeOption",
    "MarketAreaOption",
    "DEFAULT_MARKET_AREA",
    "timeframe_options",
]
