"""
pytest plugin providing the ``dbunit_tester`` fixture.

The connection comes from DBUNIT_* environment variables (see
dbunit.config); tests using the fixture are skipped when no database is
configured.
"""

import pytest

from dbunit.config import create_connection, settings_from_env
from dbunit.connection.registry import ConnectionRegistry
from dbunit.testing import DatasetTester


@pytest.fixture
def dbunit_tester(request):
    """DatasetTester bound to the configured test database and the requesting test module."""
    settings = settings_from_env()
    if not settings.is_configured:
        pytest.skip("No test database configured (set DBUNIT_DATABASE)")

    registry = ConnectionRegistry()
    connection = registry.register(create_connection(settings))
    tester = DatasetTester(
        connection_name=settings.name, registry=registry, test_file=request.path
    )
    yield tester
    connection.close()
