"""
Connection settings from arguments and environment variables.

Explicit values win over the environment:

    DBUNIT_DRIVER           sqlite (default), postgresql or sqlserver
    DBUNIT_HOST, DBUNIT_PORT
    DBUNIT_DATABASE         database name, or file path for sqlite
    DBUNIT_USER, DBUNIT_PASSWORD
    DBUNIT_DRIVER_NAME      ODBC driver for sqlserver
    DBUNIT_CONNECTION_NAME  logical connection name (default: test)
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from dbunit.connection.base import Connection
from dbunit.errors import ConfigurationError

logger = logging.getLogger(__name__)

DRIVERS = ("sqlite", "postgresql", "sqlserver")
DEFAULT_PORTS = {"postgresql": 5432, "sqlserver": 1433}
DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"


@dataclass
class ConnectionSettings:
    """Everything needed to open one named connection."""

    driver: str = "sqlite"
    database: str | None = None
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    driver_name: str = DEFAULT_ODBC_DRIVER
    name: str = "test"

    @property
    def is_configured(self) -> bool:
        return bool(self.database)

    def validate(self) -> None:
        """
        Check that the settings are complete for the selected driver.

        Raises:
            ConfigurationError: If the driver is unknown or a required value is missing
        """
        if self.driver not in DRIVERS:
            raise ConfigurationError(
                f"Unknown driver {self.driver!r}, expected one of {', '.join(DRIVERS)}"
            )
        if not self.name:
            raise ConfigurationError("Connection name must not be empty")

        required = ["database"] if self.driver == "sqlite" else ["database", "host", "user", "password"]
        missing = [setting for setting in required if not getattr(self, setting)]
        if missing:
            raise ConfigurationError(
                f"Missing {self.driver} setting(s): {', '.join(missing)} "
                f"(set DBUNIT_{missing[0].upper()} or pass it explicitly)"
            )


def settings_from_env(
    environ: Mapping[str, str] | None = None, **overrides: str | int | None
) -> ConnectionSettings:
    """
    Build settings from the environment, with explicit overrides.

    Args:
        environ: Environment to read (default: os.environ)
        **overrides: Setting values that take precedence; None values are ignored

    Returns:
        Connection settings (not yet validated)
    """
    environ = os.environ if environ is None else environ

    def pick(setting: str, default: str | None = None) -> str | None:
        value = overrides.get(setting)
        if value is not None:
            return str(value)
        return environ.get(f"DBUNIT_{setting.upper()}", default)

    driver = (pick("driver", "sqlite") or "sqlite").lower()
    port = pick("port")
    try:
        port_number = int(port) if port else DEFAULT_PORTS.get(driver)
    except ValueError:
        raise ConfigurationError(f"Invalid port: {port!r}") from None

    return ConnectionSettings(
        driver=driver,
        database=pick("database"),
        host=pick("host"),
        port=port_number,
        user=pick("user"),
        password=pick("password"),
        driver_name=pick("driver_name", DEFAULT_ODBC_DRIVER) or DEFAULT_ODBC_DRIVER,
        name=pick("connection_name", "test") or "test",
    )


def create_connection(settings: ConnectionSettings) -> Connection:
    """
    Create an (unopened) connection for the settings.

    Driver modules are imported here, so psycopg2 and pyodbc are only
    needed when their driver is selected.

    Raises:
        ConfigurationError: If the settings are incomplete
    """
    settings.validate()
    logger.debug(f"Creating {settings.driver} connection '{settings.name}'")

    if settings.driver == "postgresql":
        from dbunit.connection.postgres import PostgresConnection

        return PostgresConnection(
            host=settings.host,
            port=settings.port,
            database=settings.database,
            user=settings.user,
            password=settings.password,
            name=settings.name,
        )

    if settings.driver == "sqlserver":
        from dbunit.connection.sqlserver import SQLServerConnection

        return SQLServerConnection(
            host=settings.host,
            port=settings.port,
            database=settings.database,
            user=settings.user,
            password=settings.password,
            driver=settings.driver_name,
            name=settings.name,
        )

    from dbunit.connection.sqlite import SQLiteConnection

    return SQLiteConnection(settings.database, name=settings.name)
