"""
Composition root for the analytics service.

Wires configuration, cache, scheduler, connector gateway and event log into
a single AnalyticsFacade. The host application builds one facade at startup
and passes it to its controllers.

Usage:
    from assessment_analytics.bootstrap import configure_logging, create_analytics_service

    config = AnalyticsConfig.from_env()
    configure_logging(config.log_level)

    service = create_analytics_service(
        config,
        connector_factory=connector_factory,
        validator=data_validator,
        enricher=geospatial_enricher,
        monitor=market_monitor,
        storage=storage,
    )
    await service.initialize()
"""
from __future__ import annotations

import logging
from typing import Optional

from assessment_analytics.cache import CacheStore
from assessment_analytics.config import AnalyticsConfig
from assessment_analytics.connectors import ConnectorGateway
from assessment_analytics.connectors.protocol import (
    ConnectorFactory,
    DataRefresher,
    DataValidator,
    GeospatialEnricher,
    MarketMonitor,
    StorageSink,
)
from assessment_analytics.core import AnalyticsFacade
from assessment_analytics.monitoring import EventLog
from assessment_analytics.scheduling import Scheduler

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def create_analytics_service(
    config: Optional[AnalyticsConfig],
    connector_factory: Optional[ConnectorFactory],
    validator: DataValidator,
    enricher: GeospatialEnricher,
    monitor: MarketMonitor,
    storage: Optional[StorageSink] = None,
    refresher: Optional[DataRefresher] = None,
) -> AnalyticsFacade:
    """
    Build the analytics facade.

    Args:
        config: Service configuration (AnalyticsConfig.from_env() if None)
        connector_factory: Connector registry (None runs without connectors)
        validator: Listing validator
        enricher: Geospatial enricher
        monitor: Market monitor
        storage: Structured log sink
        refresher: Data refresh service started by initialize()

    Returns:
        An uninitialized facade; call initialize() to start its jobs
    """
    config = config or AnalyticsConfig.from_env()

    cache = CacheStore(config.cache_ttls())
    gateway = ConnectorGateway(connector_factory, config.gateway_config())

    facade = AnalyticsFacade(
        gateway=gateway,
        validator=validator,
        enricher=enricher,
        monitor=monitor,
        cache=cache,
        scheduler=Scheduler(),
        events=EventLog(storage),
        refresher=refresher,
        config=config,
    )

    logger.info(
        f"Analytics service created: areas={','.join(config.known_areas)}, "
        f"connector timeout={config.connector_timeout_seconds}s, "
        f"retries={config.connector_max_retries}"
    )
    return facade
