"""
AnalyticsFacade - Public entry point of the analytics core.

One long-lived instance serves every controller. It owns the cache, the
scheduler jobs (cache cleanup, market alerts) and the timeseries
synthesizer, and delegates listing validation, enrichment and market
monitoring to the external modules it is given.

Failure handling:
    - Every operation logs failures to the EventLog with name, message and
      stack, then re-raises
    - Analytics errors pass through unchanged; anything else is wrapped in
      UpstreamFailureError
    - Client errors (status < 500) are logged locally only
"""
from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional, Sequence

from assessment_analytics.cache import CacheDomain, CacheStore, make_key
from assessment_analytics.config import AnalyticsConfig
from assessment_analytics.connectors import ConnectorCategory, ConnectorGateway, Listing
from assessment_analytics.connectors.protocol import (
    DataRefresher,
    DataValidator,
    GeospatialEnricher,
    MarketMonitor,
)
from assessment_analytics.errors import AnalyticsError, NotFoundError, UpstreamFailureError
from assessment_analytics.monitoring import EventLog, LogCategory, LogLevel, MarketAlert, MarketAlertGenerator
from assessment_analytics.scheduling import Scheduler
from assessment_analytics.timeseries import (
    DEFAULT_MARKET_AREA,
    MarketAreaOption,
    TimeframeOption,
    TimeseriesResult,
    TimeseriesSynthesizer,
    timeframe_options,
)
from assessment_analytics.timeseries.synthesizer import utc_now

from .models import ListingsResult, MarketPrediction

logger = logging.getLogger(__name__)

CACHE_CLEANUP_JOB = "cache-cleanup"
MARKET_ALERTS_JOB = "market-alerts"

NEIGHBORHOOD_LISTINGS_LIMIT = 1000
SPATIAL_LISTINGS_LIMIT = 500


def _field(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def _area_option(area: Any) -> MarketAreaOption:
    """Accept a MarketArea, a camelCase or snake_case mapping, or an object with area attributes."""
    name = _field(area, "name") or _field(area, "id")
    property_count = _field(area, "property_count", _field(area, "propertyCount", 0))
    return MarketAreaOption(
        id=_field(area, "id"),
        name=name,
        description=_field(area, "description") or f"{name} market area",
        property_count=property_count or 0,
    )


class AnalyticsFacade:
    """
    Real estate analytics service.

    Usage:
        facade = AnalyticsFacade(
            gateway=ConnectorGateway(connector_factory),
            validator=data_validator,
            enricher=geospatial_enricher,
            monitor=market_monitor,
            events=EventLog(storage),
        )
        await facade.initialize()

        snapshot = await facade.get_market_snapshot("Grandview")
        series = await facade.get_property_timeseries("5yr", "yakima")

        await facade.shutdown()
    """

    def __init__(
        self,
        gateway: ConnectorGateway,
        validator: DataValidator,
        enricher: GeospatialEnricher,
        monitor: MarketMonitor,
        cache: Optional[CacheStore] = None,
        scheduler: Optional[Scheduler] = None,
        events: Optional[EventLog] = None,
        refresher: Optional[DataRefresher] = None,
        config: Optional[AnalyticsConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the facade.

        Args:
            gateway: Connector access
            validator: Listing validator
            enricher: Geospatial enricher
            monitor: Market monitor (snapshots, alerts, predictions)
            cache: Shared cache (built from config TTLs if None)
            scheduler: Job scheduler (a private one if None)
            events: Structured event log (logging only if None)
            refresher: External data refresh service, initialized with the facade
            config: Service configuration
            clock: Current time (timezone-aware)
        """
        self._config = config or AnalyticsConfig()
        self._gateway = gateway
        self._validator = validator
        self._enricher = enricher
        self._monitor = monitor
        self._cache = cache or CacheStore(self._config.cache_ttls())
        self._scheduler = scheduler or Scheduler()
        self._events = events or EventLog()
        self._refresher = refresher
        self._clock = clock

        self._synthesizer = TimeseriesSynthesizer(
            gateway,
            self._cache,
            known_areas=self._config.known_areas,
            max_concurrency=self._config.timeseries_max_concurrency,
            clock=clock,
        )
        self._alerts = MarketAlertGenerator(
            monitor=monitor,
            cache=self._cache,
            refresh_snapshot=lambda area: self._snapshot(area, force_refresh=True),
            default_area=self._config.default_alert_area,
            events=self._events,
        )

        self._initialized = False
        self._init_lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def cache(self) -> CacheStore:
        return self._cache

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def alerts(self) -> MarketAlertGenerator:
        return self._alerts

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self) -> None:
        """
        Initialize the data refresh service (if any), register the
        cache-cleanup and market-alerts jobs and start the scheduler.

        Safe to call more than once; later calls do nothing.
        """
        async with self._init_lock:
            if self._initialized:
                return

            await self._events.info(
                "Initializing real estate analytics service",
                tags=["initialization"],
            )
            try:
                if self._refresher is not None:
                    await self._refresher.initialize()

                if self._scheduler.get_job(CACHE_CLEANUP_JOB) is None:
                    self._scheduler.add_job(
                        CACHE_CLEANUP_JOB,
                        self._config.cache_cleanup_interval_minutes,
                        self.cleanup_cache,
                    )
                if self._scheduler.get_job(MARKET_ALERTS_JOB) is None:
                    self._scheduler.add_job(
                        MARKET_ALERTS_JOB,
                        self._config.market_alerts_interval_minutes,
                        self._alerts.regenerate,
                    )
                await self._scheduler.start()
                self._initialized = True
            except Exception as e:
                await self._events.error(
                    f"Failed to initialize real estate analytics service: {e}",
                    e,
                    tags=["initialization", "error"],
                )
                raise

            await self._events.info(
                "Real estate analytics service initialized successfully",
                tags=["initialization", "success"],
            )

    async def shutdown(self) -> None:
        """Stop the scheduled jobs."""
        async with self._init_lock:
            await self._scheduler.stop()
            self._initialized = False
        logger.info("Real estate analytics service stopped")

    async def cleanup_cache(self) -> int:
        """Sweep expired entries from every cache domain."""
        try:
            removed = self._cache.sweep_expired()
        except Exception as e:
            await self._events.error(
                f"Failed to clean up cache: {e}",
                e,
                tags=["cache-cleanup", "error"],
            )
            raise

        await self._events.info(
            f"Cleaned up {removed} expired cache entries",
            tags=["cache-cleanup"],
            details=self._cache.sizes(),
        )
        return removed

    async def refresh_all_data(self) -> None:
        """Reload every data source through the data refresh service."""
        async with self._guard("refresh all data", ["data-refresh"]):
            if self._refresher is None:
                raise UpstreamFailureError("No data refresh service configured")
            await self._refresher.refresh_all_data()

    # =========================================================================
    # Market Data
    # =========================================================================

    async def get_market_snapshot(self, area: str, force_refresh: bool = False) -> Any:
        """Market snapshot for an area, cached for the snapshot TTL."""
        async with self._guard(
            f"get market snapshot for {area}",
            ["market-snapshot"],
            {"area": area, "force_refresh": force_refresh},
        ):
            return await self._snapshot(area, force_refresh)

    async def get_property_listings(
        self,
        params: Mapping[str, Any],
        validate: bool = True,
        enrich: bool = True,
    ) -> ListingsResult:
        """
        Listings from the market connector.

        Args:
            params: Connector filter (city, limit, propertyType, ...)
            validate: Attach validation results to suspect listings and count them
            enrich: Run geospatial enrichment on every listing
        """
        async with self._guard(
            "get property listings",
            ["property-listings"],
            {"query_params": dict(params)},
        ):
            return await self._load_listings(params, validate, enrich)

    async def get_geojson_data(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """GeoJSON feature collection for the matching listings."""
        key = make_key("geojson", params)
        async with self._guard(
            "generate GeoJSON data",
            ["geojson"],
            {"query_params": dict(params)},
        ):
            return await self._cache.get_or_compute(
                CacheDomain.GEOJSON,
                key,
                lambda: self._build_geojson(params),
            )

    async def get_property_document(self, file_name: str) -> Any:
        """Document by file name from the PDF connector, with extracted text."""
        async with self._guard(
            f"get property document {file_name}",
            ["property-document"],
            {"file_name": file_name},
        ):
            document = await self._gateway.get_document(file_name, extract_text=True)
            if document is None:
                raise NotFoundError(f"Document {file_name} not found")
            return document

    async def analyze_neighborhood_trends(self, area: str) -> Dict[str, Any]:
        async with self._guard(
            f"analyze neighborhood trends for {area}",
            ["neighborhood-trends"],
            {"area": area},
        ):
            result = await self._load_listings(
                {"city": area, "limit": NEIGHBORHOOD_LISTINGS_LIMIT},
                validate=False,
                enrich=True,
            )
            return self._enricher.analyze_neighborhood_trends(result.listings)

    async def get_property_spatial_relationships(self, area: str) -> Any:
        async with self._guard(
            f"get spatial relationships for {area}",
            ["spatial-relationships"],
            {"area": area},
        ):
            result = await self._load_listings(
                {"city": area, "limit": SPATIAL_LISTINGS_LIMIT},
                validate=False,
                enrich=True,
            )
            return self._enricher.analyze_spatial_relationships(result.listings)

    # =========================================================================
    # Alerts and Predictions
    # =========================================================================

    async def get_market_alerts(self) -> List[MarketAlert]:
        """Cached market alerts, regenerated once on a cold cache (empty if that fails)."""
        async with self._guard("get market alerts", ["market-alerts"]):
            return await self._alerts.get_alerts()

    async def predict_market_metrics(self, area: str, days_ahead: int = 90) -> MarketPrediction:
        """
        Forecast an area's metrics.

        Refreshes the area's snapshot and replaces the alert cache with a
        fresh check; only the area's alerts are returned.
        """
        async with self._guard(
            f"predict market metrics for {area}",
            ["market-prediction"],
            {"area": area, "days_ahead": days_ahead},
        ):
            current = await self._snapshot(area, force_refresh=True)
            predicted = await self._monitor.predict_market_metrics(area, days_ahead)
            alerts = await self._alerts.refresh_from_monitor()
            return MarketPrediction(
                current=current,
                predicted=predicted,
                alerts=[a for a in alerts if a.affected_area == area],
                last_updated=self._clock(),
            )

    # =========================================================================
    # Timeseries
    # =========================================================================

    def get_timeframe_options(self) -> List[TimeframeOption]:
        return timeframe_options()

    async def get_market_area_options(self) -> List[MarketAreaOption]:
        """
        Market areas for the timeseries selector.

        Falls back to the default area when no market connector is
        configured, it cannot list areas, or listing fails for any reason.
        Areas may come back as MarketArea objects or as mappings.
        """
        try:
            if not self._gateway.has_connector(ConnectorCategory.MARKET):
                return [DEFAULT_MARKET_AREA.model_copy()]

            areas = await self._gateway.get_market_areas()
            if areas is None:
                return [DEFAULT_MARKET_AREA.model_copy()]

            return [_area_option(area) for area in areas]
        except Exception as e:
            await self._events.error(
                f"Failed to get market area options, using default: {e}",
                e,
                tags=["market-areas", "error"],
            )
            return [DEFAULT_MARKET_AREA.model_copy()]

    async def get_property_timeseries(
        self,
        timeframe_id: str = "1yr",
        area: str = "grandview",
        property_type: str = "all",
    ) -> TimeseriesResult:
        """Property timeseries for the animated market view."""
        details = {"timeframe_id": timeframe_id, "area": area, "property_type": property_type}
        started = time.monotonic()

        async with self._guard(
            "generate property timeseries data",
            ["property-timeseries", "animation"],
            details,
        ):
            result = await self._synthesizer.synthesize(timeframe_id, area, property_type)

        elapsed_ms = (time.monotonic() - started) * 1000
        await self._events.record(
            LogLevel.INFO,
            f"Generated property timeseries data for {area}",
            category=LogCategory.PERFORMANCE,
            details={
                **details,
                "data_point_count": len(result.timeseries),
                "total_properties": result.total_properties,
                "processing_time_ms": round(elapsed_ms, 1),
            },
            tags=["property-timeseries", "animation"],
            duration_ms=elapsed_ms,
        )
        return result

    # =========================================================================
    # Internal
    # =========================================================================

    async def _snapshot(self, area: str, force_refresh: bool = False) -> Any:
        return await self._cache.get_or_compute(
            CacheDomain.MARKET_SNAPSHOTS,
            make_key("snapshot", {"area": area}),
            lambda: self._monitor.generate_snapshot(area),
            force_refresh=force_refresh,
        )

    async def _load_listings(
        self,
        params: Mapping[str, Any],
        validate: bool,
        enrich: bool,
    ) -> ListingsResult:
        page = await self._gateway.fetch_listings(params)
        listings: Sequence[Listing] = list(page.data)

        validation_issues = None
        if validate:
            await self._validator.calculate_market_stats(list(listings))
            validation_issues = 0
            checked = []
            for listing in listings:
                validation = self._validator.validate_listing(listing)
                if validation.has_issues:
                    validation_issues += 1
                    listing = {**listing, "validationResult": asdict(validation)}
                checked.append(listing)
            listings = checked

        if enrich:
            listings = await asyncio.gather(
                *(self._enricher.enrich_property_listing(listing) for listing in listings)
            )

        return ListingsResult(
            listings=list(listings),
            total=page.total,
            validation_issues=validation_issues,
        )

    async def _build_geojson(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        result = await self._load_listings(params, validate=False, enrich=True)
        return self._enricher.convert_listings_to_geojson(result.listings)

    @asynccontextmanager
    async def _guard(
        self,
        action: str,
        tags: Sequence[str],
        details: Optional[Mapping[str, Any]] = None,
    ) -> AsyncIterator[None]:
        """Log a failed operation, then re-raise it as an analytics error."""
        try:
            yield
        except AnalyticsError as e:
            if e.status_code < 500:
                logger.warning(f"Could not {action}: {e}")
                raise
            await self._events.error(f"Failed to {action}: {e}", e, tags=[*tags, "error"], details=details)
            raise
        except Exception as e:
            await self._events.error(f"Failed to {action}: {e}", e, tags=[*tags, "error"], details=details)
            raise UpstreamFailureError(f"Failed to {action}: {e}") from e
