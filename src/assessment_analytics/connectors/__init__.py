"""
Connector Layer - Boundary to pluggable data sources and analytics modules.

This module provides:
    - ConnectorGateway: Connector access with timeouts and bounded retries
    - GatewayConfig: Timeout/retry configuration
    - Protocols: Connector, ConnectorFactory, DataValidator, GeospatialEnricher,
      MarketMonitor, StorageSink, DataRefresher
    - Models: ConnectorResult, HistoricalSnapshot, HistoricalMetrics,
      ValidationResult, MarketArea, ConnectorCategory

Retry Policy:
    - Timeouts, connection errors and TransientConnectorError are retried
      with exponential backoff
    - Any other failure is raised immediately as UpstreamFailureError
"""

from .gateway import ConnectorGateway, GatewayConfig
from .models import (
    ConnectorCategory,
    ConnectorResult,
    HistoricalMetrics,
    HistoricalSnapshot,
    Listing,
    MarketArea,
    ValidationResult,
)
from .protocol import (
    Connector,
    ConnectorFactory,
    DataRefresher,
    DataValidator,
    DocumentSource,
    GeospatialEnricher,
    MarketAreaSource,
    MarketMonitor,
    StorageSink,
)

__all__ = [
    # Gateway
    "ConnectorGateway",
    "GatewayConfig",
    # Models
    "ConnectorCategory",
    "ConnectorResult",
    "HistoricalMetrics",
    "HistoricalSnapshot",
    "Listing",
    "MarketArea",
    "ValidationResult",
    # Protocols
    "Connector",
    "ConnectorFactory",
    "DataRefresher",
    "DataValidator",
    "DocumentSource",
    "GeospatialEnricher",
    "MarketAreaSource",
    "MarketMonitor",
    "StorageSink",
]
