"""Named connection registry with scoped acquisition."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from dbunit.connection.base import Connection
from dbunit.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Maps logical connection names to Connection instances.

    Engines look their connection up by name at the start of each
    operation, so a test can swap the database behind a name at any time.
    """

    def __init__(self):
        self._connections: dict[str, Connection] = {}

    def register(self, connection: Connection, name: str | None = None) -> Connection:
        """
        Register a connection under ``name`` (default: the connection's own name).

        An existing registration with the same name is replaced.
        """
        name = name or connection.name
        if not name:
            raise ConfigurationError("Connection name must not be empty")
        if name in self._connections:
            logger.info(f"Replacing registered connection '{name}'")
        self._connections[name] = connection
        return connection

    def unregister(self, name: str) -> Connection | None:
        return self._connections.pop(name, None)

    def get(self, name: str) -> Connection:
        try:
            return self._connections[name]
        except KeyError:
            raise ConfigurationError(f"No connection registered as '{name}'") from None

    def names(self) -> list[str]:
        return list(self._connections)

    def __contains__(self, name: object) -> bool:
        return name in self._connections

    @contextmanager
    def acquire(self, name: str) -> Iterator[Connection]:
        """
        Open the named connection for the duration of a block.

        The connection is closed on every exit path, unless it was already
        open when the block started (its owner then keeps it).

        Example:
            >>> with connections.acquire("test") as connection:
            ...     connection.execute("DELETE FROM emp")
        """
        connection = self.get(name)
        opened_here = not connection.is_open
        connection.open()
        try:
            yield connection
        finally:
            if opened_here:
                connection.close()

    def close_all(self) -> None:
        for connection in self._connections.values():
            connection.close()


connections = ConnectionRegistry()
