"""
Core Layer - The analytics service facade.

This module provides:
    - AnalyticsFacade: Entry point for controllers (snapshots, listings,
      GeoJSON, documents, neighborhood analysis, alerts, predictions,
      timeseries)
    - ListingsResult, MarketPrediction: Facade result models

Scheduled Jobs (registered by initialize()):
    - cache-cleanup: every 60 minutes, sweeps expired cache entries
    - market-alerts: every 720 minutes, regenerates the alert cache
"""

from .facade import CACHE_CLEANUP_JOB, MARKET_ALERTS_JOB, AnalyticsFacade
from .models import ListingsResult, MarketPrediction

__all__ = [
    "AnalyticsFacade",
    "ListingsResult",
    "MarketPrediction",
    "CACHE_CLEANUP_JOB",
    "MARKET_ALERTS_JOB",
]
