"""
Structured event logging.

Every event goes to the standard logging module and, when a storage sink
is configured, to the sink as a LogEntry. A failing sink never fails the
operation that was logging.
"""
from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from assessment_analytics.connectors.protocol import StorageSink

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "real-estate-analytics"


class LogLevel(str, Enum):
    """Severity of a structured log record."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class LogCategory(str, Enum):
    """Subsystem a structured log record belongs to."""
    SYSTEM = "system"
    API = "api"
    DATA = "data"
    PERFORMANCE = "performance"
    SECURITY = "security"


_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
}


class LogEntry(BaseModel):
    """Record handed to the storage sink."""

    level: LogLevel
    category: LogCategory
    message: str
    details: Optional[str] = None  # JSON
    source: str = DEFAULT_SOURCE
    project_id: Optional[int] = None
    user_id: Optional[int] = None
    session_id: Optional[str] = None
    duration: Optional[float] = None  # ms
    status_code: Optional[int] = None
    endpoint: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def error_details(error: BaseException) -> Dict[str, Any]:
    """Name, message and stack of an exception, for log details."""
    return {
        "name": type(error).__name__,
        "message": str(error),
        "stack": "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        ),
    }


class EventLog:
    """
    Writes structured events to logging and the storage sink.

    Usage:
        events = EventLog(storage)

        await events.info("Generated 3 market alerts", tags=["market-alerts"],
                          details={"alert_count": 3})

        try:
            ...
        except Exception as e:
            await events.error("Failed to clean up cache", e, tags=["cache-cleanup", "error"])
    """

    def __init__(
        self,
        storage: Optional["StorageSink"] = None,
        source: str = DEFAULT_SOURCE,
    ) -> None:
        """
        Initialize the event log.

        Args:
            storage: Sink for structured records (None logs to logging only)
            source: Source name stamped on every record
        """
        self._storage = storage
        self._source = source

    async def record(
        self,
        level: LogLevel,
        message: str,
        category: LogCategory = LogCategory.SYSTEM,
        details: Optional[Mapping[str, Any]] = None,
        tags: Sequence[str] = (),
        duration_ms: Optional[float] = None,
        status_code: Optional[int] = None,
    ) -> LogEntry:
        """
        Record one event.

        Returns:
            The entry that was built (also when the sink failed)
        """
        logger.log(_STDLIB_LEVELS[level], message)

        entry = LogEntry(
            level=level,
            category=category,
            message=message,
            details=json.dumps(dict(details or {}), default=str),
            source=self._source,
            duration=duration_ms,
            status_code=status_code,
            tags=list(tags),
        )

        if self._storage is None:
            return entry

        try:
            await self._storage.create_log(entry)
        except Exception as e:
            logger.warning(f"Failed to write log entry to storage: {e}")

        return entry

    async def info(
        self,
        message: str,
        tags: Sequence[str] = (),
        details: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> LogEntry:
        return await self.record(LogLevel.INFO, message, details=details, tags=tags, **kwargs)

    async def error(
        self,
        message: str,
        error: BaseException,
        tags: Sequence[str] = (),
        details: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> LogEntry:
        """Record a failure with the exception's name, message and stack."""
        merged = dict(details or {})
        merged["error"] = error_details(error)
        return await self.record(LogLevel.ERROR, message, details=merged, tags=tags, **kwargs)
