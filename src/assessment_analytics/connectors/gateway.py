"""
ConnectorGateway - Bounded access to pluggable data connectors.

Every connector call gets:
    - A timeout, so a slow upstream cannot block the service
    - A small retry budget with exponential backoff on transient errors
      (timeouts, dropped connections, TransientConnectorError)
    - Immediate failure on anything else, wrapped in UpstreamFailureError
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from assessment_analytics.errors import (
    AnalyticsError,
    TransientConnectorError,
    UpstreamFailureError,
)

from .models import ConnectorCategory, ConnectorResult, HistoricalSnapshot, MarketArea
from .protocol import Connector, ConnectorFactory, DocumentSource, MarketAreaSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

TIMEOUT_ERRORS = (asyncio.TimeoutError, TimeoutError)
TRANSIENT_ERRORS = (*TIMEOUT_ERRORS, ConnectionError, TransientConnectorError)


class GatewayConfig(BaseModel):
    """Connector call limits."""

    model_config = ConfigDict(frozen=True)

    timeout_seconds: float = 10.0
    max_retries: int = 3  # total attempts per call
    retry_delay_seconds: float = 0.5  # backoff base
    max_retry_delay_seconds: float = 5.0


class ConnectorGateway:
    """
    Async access to connectors with timeouts and retries.

    Uses the first connector registered for a category.

    Usage:
        gateway = ConnectorGateway(connector_factory, GatewayConfig(timeout_seconds=5))

        page = await gateway.fetch_listings({"city": "yakima", "limit": 100})
        snapshot = await gateway.fetch_historical({"area": "yakima", "date": "2024-01-01"})
    """

    def __init__(
        self,
        factory: Optional[ConnectorFactory],
        config: Optional[GatewayConfig] = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            factory: Connector registry (None when no connectors are configured)
            config: Timeout and retry settings
        """
        self._factory = factory
        self._config = config or GatewayConfig()

    @property
    def config(self) -> GatewayConfig:
        return self._config

    def connectors(self, category: ConnectorCategory) -> List[Connector]:
        """All connectors registered for a category."""
        if self._factory is None:
            return []
        return list(self._factory.get_connectors_by_type(category.value))

    def has_connector(self, category: ConnectorCategory) -> bool:
        return bool(self.connectors(category))

    def _first(self, category: ConnectorCategory) -> Connector:
        connectors = self.connectors(category)
        if not connectors:
            raise UpstreamFailureError(f"No {category.value} data connectors available")
        return connectors[0]

    # =========================================================================
    # Connector Operations
    # =========================================================================

    async def fetch_listings(self, params: Mapping[str, Any]) -> ConnectorResult:
        """Fetch current listings from the market connector."""
        connector = self._first(ConnectorCategory.MARKET)
        return await self._call("fetch_data", lambda: connector.fetch_data(dict(params)))

    async def fetch_historical(self, params: Mapping[str, Any]) -> Optional[HistoricalSnapshot]:
        """Fetch one historical snapshot from the market connector."""
        connector = self._first(ConnectorCategory.MARKET)
        return await self._call(
            "fetch_historical_data",
            lambda: connector.fetch_historical_data(dict(params)),
        )

    async def get_market_areas(self) -> Optional[List[MarketArea]]:
        """
        List market areas from the market connector.

        Returns:
            Areas, or None if the connector cannot list areas
        """
        connector = self._first(ConnectorCategory.MARKET)
        if not isinstance(connector, MarketAreaSource):
            logger.warning("Market connector does not support listing market areas")
            return None
        return await self._call("get_market_areas", connector.get_market_areas)

    async def get_document(self, file_name: str, extract_text: bool = True) -> Optional[Any]:
        """Fetch a document by name from the PDF connector."""
        connector = self._first(ConnectorCategory.PDF)
        if not isinstance(connector, DocumentSource):
            raise UpstreamFailureError("PDF connector does not support document lookup")
        return await self._call(
            "get_document_by_name",
            lambda: connector.get_document_by_name(file_name, extract_text),
        )

    # =========================================================================
    # Call Policy
    # =========================================================================

    async def _call(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Run one connector call with timeout and retries.

        Args:
            operation: Name used in logs and errors
            fn: Zero-argument coroutine factory (called once per attempt)

        Returns:
            The connector's result

        Raises:
            UpstreamFailureError: On non-transient failure or exhausted retries
            asyncio.CancelledError: When the task is cancelled (re-raised)
        """
        attempts = max(1, self._config.max_retries)
        last_error: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                return await asyncio.wait_for(fn(), timeout=self._config.timeout_seconds)

            except asyncio.CancelledError:
                raise

            except TRANSIENT_ERRORS as e:
                last_error = e
                if attempt + 1 >= attempts:
                    break
                delay = min(
                    self._config.retry_delay_seconds * (2 ** attempt),
                    self._config.max_retry_delay_seconds,
                )
                reason = "timed out" if isinstance(e, TIMEOUT_ERRORS) else f"failed: {e}"
                logger.warning(
                    f"Connector {operation} {reason}, retry {attempt + 1}/{attempts - 1} in {delay}s"
                )
                await asyncio.sleep(delay)

            except AnalyticsError:
                raise

            except Exception as e:
                logger.error(f"Connector {operation} failed: {e}")
                raise UpstreamFailureError(f"Connector {operation} failed: {e}") from e

        if isinstance(last_error, TIMEOUT_ERRORS):
            message = f"Connector {operation} timed out after {attempts} attempts"
        else:
            message = f"Connector {operation} failed after {attempts} attempts: {last_error}"
        logger.error(message)
        raise UpstreamFailureError(message) from last_error
