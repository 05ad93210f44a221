"""
Facade result models.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from assessment_analytics.monitoring import MarketAlert


class ListingsResult(BaseModel):
    """
    Listings after optional validation and enrichment.

    validation_issues is None when validation was skipped.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    listings: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    validation_issues: Optional[int] = None


class MarketPrediction(BaseModel):
    """Current snapshot, forecast and the area's fresh alerts."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current: Any
    predicted: Any
    alerts: List[MarketAlert] = Field(default_factory=list)
    last_updated: datetime
