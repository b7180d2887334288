"""
Pytest configuration and fixtures for dbunit tests.
Provides a file-backed SQLite database with the emp/dept test schema.
"""

from pathlib import Path

import pytest

from dbunit.connection import ConnectionRegistry, SQLiteConnection
from dbunit.engine import DBUnit

DATA_DIR = Path(__file__).parent / "data"


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(scope="session")
def data_dir() -> Path:
    """Get test data directory."""
    return DATA_DIR


@pytest.fixture
def sqlite_connection(tmp_path: Path):
    """SQLite connection to an empty database file, closed after the test."""
    connection = SQLiteConnection(str(tmp_path / "test.db"), name="test")
    yield connection
    connection.close()


@pytest.fixture
def registry(sqlite_connection: SQLiteConnection) -> ConnectionRegistry:
    """Registry holding the SQLite connection under the name 'test'."""
    registry = ConnectionRegistry()
    registry.register(sqlite_connection)
    return registry


@pytest.fixture
def database_schema(registry: ConnectionRegistry) -> None:
    """Create the test schema (dept, emp, bonus, emp_project, image)."""
    DBUnit("test", registry=registry).reset_schema(DATA_DIR / "create_schema.sql")


@pytest.fixture
def dbunit(registry: ConnectionRegistry, database_schema: None) -> DBUnit:
    """Engine bound to the test schema."""
    return DBUnit("test", registry=registry)
