"""
Integration test fixtures.

These fixtures build a fully wired analytics service on top of the
in-memory collaborators from tests/conftest.py.
"""
import pytest

from assessment_analytics.bootstrap import create_analytics_service
from assessment_analytics.config import AnalyticsConfig


@pytest.fixture
def config():
    """Production defaults with fast connector retries."""
    return AnalyticsConfig(connector_timeout_seconds=1.0, connector_retry_delay_seconds=0)


@pytest.fixture
async def service(config, connector_factory, validator, enricher, monitor, storage):
    """Initialized service, shut down after the test."""
    facade = create_analytics_service(
        config,
        connector_factory=connector_factory,
        validator=validator,
        enricher=enricher,
        monitor=monitor,
        storage=storage,
    )
    await facade.initialize()

    yield facade

    await facade.shutdown()
