"""
Monitoring Layer - Market alerts and structured event logging.

This module provides:
    - MarketAlertGenerator: Regenerates the cached alert list from the market monitor
    - MarketAlert: Alert model (affected area, type, severity, message, timestamp)
    - EventLog: Writes events to logging and the structured storage sink
    - LogEntry, LogLevel, LogCategory: Structured log record model

Alert Cache:
    - Fully replaced on every regeneration (never merged)
    - Cold start regenerates once, shared by concurrent callers
"""

from .alerts import ALERTS_KEY, MarketAlert, MarketAlertGenerator, coerce_alert
from .event_log import EventLog, LogCategory, LogEntry, LogLevel, error_details

__all__ = [
    # Alerts
    "MarketAlertGenerator",
    "MarketAlert",
    "ALERTS_KEY",
    "coerce_alert",
    # Event log
    "EventLog",
    "LogEntry",
    "LogLevel",
    "LogCategory",
    "error_details",
]
