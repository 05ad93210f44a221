"""
TimeseriesSynthesizer - Builds historical market series for animation.

For a timeframe, area and property type:
    1. Place sample dates across the window (month, quarter or year steps)
    2. Fetch one historical snapshot per date from the market connector
    3. Reduce each snapshot to a point (lower-middle medians, listing counts)
    4. Summarize first-to-last change with three plain-language insights

Results are cached in the market snapshot domain; concurrent requests for
the same series share one build.
"""
from __future__ import annotations

import asyncio
import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from assessment_analytics.cache import CacheDomain, CacheStore, make_key
from assessment_analytics.config import DEFAULT_KNOWN_AREAS
from assessment_analytics.connectors.gateway import ConnectorGateway
from assessment_analytics.connectors.models import HistoricalSnapshot, Listing
from assessment_analytics.errors import InvalidParameterError, NotFoundError

from .models import (
    PROPERTY_TYPES,
    TIMEFRAMES,
    DateRange,
    Interval,
    MarketStats,
    MarketSummary,
    TimeframeInfo,
    TimeframeSpec,
    TimeseriesPoint,
    TimeseriesResult,
    Trend,
)

logger = logging.getLogger(__name__)

TIMESERIES_PREFIX = "timeseries"
LISTINGS_LIMIT = 1000


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Round .5 toward positive infinity (-2.5 -> -2, 2.5 -> 3)."""
    return math.floor(value + 0.5)


def validate_timeseries_params(
    timeframe_id: str,
    area: str,
    property_type: str,
    known_areas: Sequence[str] = DEFAULT_KNOWN_AREAS,
) -> TimeframeSpec:
    """
    Check timeseries inputs against their accepted sets.

    Returns:
        The resolved timeframe

    Raises:
        InvalidParameterError: Naming the first invalid field
    """
    spec = TIMEFRAMES.get(timeframe_id)
    if spec is None:
        raise InvalidParameterError.not_one_of("timeframe", "Timeframe", TIMEFRAMES)
    if area not in known_areas:
        raise InvalidParameterError.not_one_of("area", "Area", known_areas)
    if property_type not in PROPERTY_TYPES:
        raise InvalidParameterError.not_one_of("propertyType", "Property type", PROPERTY_TYPES)
    return spec


def sample_dates(spec: TimeframeSpec, start: datetime, end: datetime) -> List[date]:
    """
    Sample dates for a timeframe, each offset from the window start.

    With p = i / (sample_count - 1):
        month:   floor(p * 12) months
        quarter: floor(p * 4) * 3 months
        year:    floor(p * (end.year - start.year)) years

    Quarter timeframes repeat dates (floor collapses neighbouring samples).
    Month arithmetic clamps to the last day of shorter months.
    """
    last_index = max(1, spec.sample_count - 1)
    span_years = end.year - start.year

    dates = []
    for i in range(spec.sample_count):
        progress = i / last_index
        if spec.interval == Interval.MONTH:
            offset = relativedelta(months=math.floor(progress * 12))
        elif spec.interval == Interval.QUARTER:
            offset = relativedelta(months=math.floor(progress * 4) * 3)
        else:
            offset = relativedelta(years=math.floor(progress * span_years))
        dates.append((start + offset).date())
    return dates


def lower_median(values: Iterable[float]) -> float:
    """Element at floor(n / 2) of the sorted values; 0 when empty."""
    ordered = sorted(values)
    if not ordered:
        return 0
    return ordered[len(ordered) // 2]


def pct_change(first: float, last: float) -> float:
    """Fractional change from first to last, baseline floored at 1."""
    return (last - first) / max(1, first)


def _listing_number(listing: Listing, *names: str) -> Optional[float]:
    for name in names:
        value = listing.get(name)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
    return None


def build_point(sample_date: date, snapshot: Optional[HistoricalSnapshot]) -> TimeseriesPoint:
    """Reduce one historical snapshot to a timeseries point (zero-filled if None)."""
    if snapshot is None:
        snapshot = HistoricalSnapshot()

    prices = []
    doms = []
    for listing in snapshot.properties:
        price = _listing_number(listing, "price")
        if price is not None and price > 0:
            prices.append(price)
        dom = _listing_number(listing, "days_on_market", "daysOnMarket")
        if dom is not None and dom >= 0:
            doms.append(dom)

    metrics = snapshot.metrics
    return TimeseriesPoint(
        date=sample_date,
        properties=list(snapshot.properties),
        median_price=lower_median(prices),
        median_price_per_sqft=snapshot.median_price_per_sqft,
        median_days_on_market=lower_median(doms),
        active_listings=snapshot.active_listings,
        new_listings=snapshot.new_listings,
        sold_listings=snapshot.sold_listings,
        pending_listings=snapshot.pending_listings,
        market_stats=MarketStats(
            average_price_change=metrics.price_change_pct,
            inventory_change=metrics.inventory_change_pct,
            absorption_rate=metrics.absorption_rate,
            market_health=metrics.market_health,
        ),
    )


def _trend(first: float, last: float) -> Trend:
    if last > first:
        return Trend.INCREASING
    if last < first:
        return Trend.DECREASING
    return Trend.STABLE


def _number(value: float) -> str:
    """Render whole floats without a trailing .0."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def build_summary(points: Sequence[TimeseriesPoint], duration_label: str) -> MarketSummary:
    """Compare the last point with the first."""
    first, last = points[0], points[-1]

    price_trend = _trend(first.median_price, last.median_price)
    dom_trend = _trend(first.median_days_on_market, last.median_days_on_market)
    inventory_trend = _trend(first.active_listings, last.active_listings)

    if len(points) > 1:
        price_pct = pct_change(first.median_price, last.median_price)
        dom_pct = pct_change(first.median_days_on_market, last.median_days_on_market)
        inventory_pct = pct_change(first.active_listings, last.active_listings)
    else:
        price_pct = dom_pct = inventory_pct = 0.0

    if price_trend == Trend.STABLE:
        price_insight = f"Median price was unchanged over the {duration_label} period."
    else:
        verb = "increased" if price_trend == Trend.INCREASING else "decreased"
        price_insight = (
            f"Median price {verb} by {abs(round_half_up(price_pct * 100))}% "
            f"over the {duration_label} period."
        )

    first_dom = _number(first.median_days_on_market)
    last_dom = _number(last.median_days_on_market)
    if dom_trend == Trend.STABLE:
        dom_insight = f"Average days on market held steady at {first_dom} days."
    else:
        verb = "increased" if dom_trend == Trend.INCREASING else "decreased"
        dom_insight = f"Average days on market {verb} from {first_dom} to {last_dom} days."

    if inventory_trend == Trend.STABLE:
        inventory_insight = "Active inventory was unchanged during this period."
    else:
        verb = "grew" if inventory_trend == Trend.INCREASING else "shrank"
        inventory_insight = (
            f"Active inventory {verb} by {abs(round_half_up(inventory_pct * 100))}% "
            f"during this period."
        )

    return MarketSummary(
        overall_trend=price_trend,
        price_change_pct=price_pct,
        dom_change_pct=dom_pct,
        inventory_change_pct=inventory_pct,
        key_insights=[price_insight, dom_insight, inventory_insight],
    )


class TimeseriesSynthesizer:
    """
    Builds and caches property timeseries.

    Usage:
        synthesizer = TimeseriesSynthesizer(gateway, cache)
        result = await synthesizer.synthesize("5yr", "yakima", "residential")
        payload = result.model_dump(by_alias=True, mode="json")
    """

    def __init__(
        self,
        gateway: ConnectorGateway,
        cache: CacheStore,
        known_areas: Sequence[str] = DEFAULT_KNOWN_AREAS,
        max_concurrency: int = 4,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the synthesizer.

        Args:
            gateway: Connector access for listings and historical snapshots
            cache: Result cache (market snapshot domain)
            known_areas: Areas accepted by synthesize()
            max_concurrency: Parallel historical fetches per build
            clock: Current time (timezone-aware), injectable for tests
        """
        self._gateway = gateway
        self._cache = cache
        self._known_areas = tuple(known_areas)
        self._max_concurrency = max(1, max_concurrency)
        self._clock = clock

    @property
    def known_areas(self) -> Tuple[str, ...]:
        return self._known_areas

    async def synthesize(
        self,
        timeframe_id: str = "1yr",
        area: str = "grandview",
        property_type: str = "all",
        force_refresh: bool = False,
    ) -> TimeseriesResult:
        """
        Return the timeseries for a timeframe, area and property type.

        Raises:
            InvalidParameterError: Unknown timeframe, area or property type
            NotFoundError: No sample date had any data
            UpstreamFailureError: Connector failure
        """
        spec = validate_timeseries_params(timeframe_id, area, property_type, self._known_areas)
        key = make_key(
            TIMESERIES_PREFIX,
            {"timeframe": timeframe_id, "area": area, "property_type": property_type},
        )
        return await self._cache.get_or_compute(
            CacheDomain.MARKET_SNAPSHOTS,
            key,
            lambda: self._build(spec, area, property_type),
            force_refresh=force_refresh,
        )

    async def _build(self, spec: TimeframeSpec, area: str, property_type: str) -> TimeseriesResult:
        end = self._clock()
        start = end - relativedelta(years=spec.years)
        dates = sample_dates(spec, start, end)

        listing_params: Dict[str, Any] = {"city": area, "limit": LISTINGS_LIMIT}
        if property_type != "all":
            listing_params["propertyType"] = property_type
        listings = await self._gateway.fetch_listings(listing_params)

        snapshots = await self._fetch_snapshots(dates, area, property_type)
        if all(s is None or s.is_empty for s in snapshots):
            raise NotFoundError(
                f"No historical data for {area} ({property_type}) over {spec.duration_label}"
            )

        points = [build_point(d, s) for d, s in zip(dates, snapshots)]
        logger.debug(f"Built {len(points)} timeseries points for {area} ({spec.id})")

        return TimeseriesResult(
            timeframe=TimeframeInfo(
                id=spec.id,
                label=spec.duration_label,
                duration=spec.duration_label,
                interval=spec.interval,
            ),
            timeseries=points,
            market_area=area,
            total_properties=len(listings.data),
            date_range=DateRange(start=start, end=end),
            market_summary=build_summary(points, spec.duration_label),
        )

    async def _fetch_snapshots(
        self,
        dates: Sequence[date],
        area: str,
        property_type: str,
    ) -> List[Optional[HistoricalSnapshot]]:
        """
        Fetch one snapshot per date, bounded, in sample order.

        The first failure cancels every fetch still pending or running.
        """
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def fetch(sample_date: date) -> Optional[HistoricalSnapshot]:
            params: Dict[str, Any] = {"area": area, "date": sample_date.isoformat()}
            if property_type != "all":
                params["propertyType"] = property_type
            async with semaphore:
                return await self._gateway.fetch_historical(params)

        tasks = [asyncio.ensure_future(fetch(d)) for d in dates]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # Cancel the rest
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
