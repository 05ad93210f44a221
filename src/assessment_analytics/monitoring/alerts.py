"""
Market alert generation.

Alerts come from the external market monitor's threshold checks. The
cached alert list is replaced wholesale on every regeneration, never merged.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from assessment_analytics.cache import CacheDomain, CacheStore

from .event_log import EventLog

if TYPE_CHECKING:
    from assessment_analytics.connectors.protocol import MarketMonitor

logger = logging.getLogger(__name__)

ALERTS_KEY = "alerts"


class MarketAlert(BaseModel):
    """A market threshold breach reported by the monitor."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )

    affected_area: str
    type: str
    severity: str
    message: str
    timestamp: datetime


def coerce_alert(alert: Any) -> MarketAlert:
    """Accept a MarketAlert, a mapping, or an object with alert attributes."""
    if isinstance(alert, MarketAlert):
        return alert
    if isinstance(alert, Mapping):
        return MarketAlert.model_validate(dict(alert))
    return MarketAlert.model_validate(alert, from_attributes=True)


class MarketAlertGenerator:
    """
    Regenerates the market alert cache.

    Usage:
        generator = MarketAlertGenerator(
            monitor=market_monitor,
            cache=cache,
            refresh_snapshot=lambda area: facade.get_market_snapshot(area, True),
        )

        # Scheduled every 12 hours
        scheduler.add_job("market-alerts", 720, generator.regenerate)

        # On demand
        alerts = await generator.get_alerts()
    """

    def __init__(
        self,
        monitor: "MarketMonitor",
        cache: CacheStore,
        refresh_snapshot: Callable[[str], Awaitable[Any]],
        default_area: str = "Grandview",
        events: Optional[EventLog] = None,
    ) -> None:
        """
        Initialize the generator.

        Args:
            monitor: Market monitor that evaluates thresholds
            cache: Cache holding the alert list
            refresh_snapshot: Forces a fresh snapshot for an area
            default_area: Area refreshed before each regeneration
            events: Structured event log
        """
        self._monitor = monitor
        self._cache = cache
        self._refresh_snapshot = refresh_snapshot
        self._default_area = default_area
        self._events = events or EventLog()

    @property
    def default_area(self) -> str:
        return self._default_area

    async def regenerate(self) -> List[MarketAlert]:
        """
        Refresh the default area's snapshot and replace the alert cache.

        Returns:
            The new alert list

        Raises:
            Whatever the snapshot refresh or monitor raises (logged first)
        """
        try:
            await self._refresh_snapshot(self._default_area)
            alerts = await self.refresh_from_monitor()
        except Exception as e:
            await self._events.error(
                f"Failed to generate market alerts: {e}",
                e,
                tags=["market-alerts", "error"],
            )
            raise

        await self._events.info(
            f"Generated {len(alerts)} market alerts",
            tags=["market-alerts"],
            details={"alert_count": len(alerts)},
        )
        return alerts

    async def refresh_from_monitor(self) -> List[MarketAlert]:
        """Check the monitor for changes and replace the alert cache."""
        raw = await self._monitor.check_for_market_changes()
        alerts = [coerce_alert(a) for a in raw or []]
        self._cache.put(CacheDomain.ALERTS, ALERTS_KEY, alerts)
        logger.debug(f"Alert cache replaced with {len(alerts)} alerts")
        return alerts

    async def get_alerts(self) -> List[MarketAlert]:
        """
        Return cached alerts, regenerating once if none are cached.

        Concurrent cold-start callers share a single regeneration. A failed
        regeneration is logged by regenerate() and served as an empty list;
        nothing is cached, so the next call tries again.
        """
        cached = self._cache.get(CacheDomain.ALERTS, ALERTS_KEY)
        if cached is not None:
            return cached

        logger.info("No cached market alerts, regenerating")
        try:
            return await self._cache.get_or_compute(CacheDomain.ALERTS, ALERTS_KEY, self.regenerate)
        except Exception as e:
            logger.warning(f"Serving no market alerts after failed regeneration: {e}")
            return []

    def cached_alerts(self) -> Optional[List[MarketAlert]]:
        """Cached alerts without regeneration (None when absent or expired)."""
        return self._cache.get(CacheDomain.ALERTS, ALERTS_KEY)
