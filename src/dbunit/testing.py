"""
Assertion helpers for database tests.

DatasetTester wraps the engine in ``*_ok`` methods that raise
AssertionError with a readable message, so they can be used directly in
pytest tests (see the ``dbunit_tester`` fixture).

XML datasets are named relative to the test module: for
``tests/test_emp.py``, ``xml_dataset_ok("test1")`` loads
``tests/test_emp.test1.xml`` and ``expected_xml_dataset_ok("test1")``
verifies against ``tests/test_emp.test1-result.xml``.
"""

import inspect
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import NoReturn

from dbunit.connection.base import Connection
from dbunit.connection.registry import ConnectionRegistry, connections
from dbunit.engine import DBUnit
from dbunit.errors import DBUnitError
from dbunit.types import Dataset, LoadStrategy

logger = logging.getLogger(__name__)


class DatasetTester:
    """Test-facing front end for one or more named connections."""

    def __init__(
        self,
        connection_name: str = "test",
        registry: ConnectionRegistry | None = None,
        test_file: str | Path | None = None,
    ):
        """
        Initialize the tester.

        Args:
            connection_name: Connection used until set_test_connection() switches it
            registry: Connection registry (default: the module-level one)
            test_file: Test module that XML dataset names resolve against
                (default: the module calling the XML helpers)
        """
        self.registry = registry if registry is not None else connections
        self.test_file = Path(test_file) if test_file is not None else None
        self.connection_name = connection_name
        self._engines: dict[str, DBUnit] = {}

    @property
    def dbunit(self) -> DBUnit:
        """Engine of the current connection."""
        if self.connection_name not in self._engines:
            self._engines[self.connection_name] = DBUnit(
                connection_name=self.connection_name, registry=self.registry
            )
        return self._engines[self.connection_name]

    def add_test_connection(self, connection: Connection, name: str | None = None) -> Connection:
        """Register a connection for use by name."""
        return self.registry.register(connection, name)

    def set_test_connection(self, name: str) -> None:
        self.registry.get(name)
        self.connection_name = name

    def test_connection(self) -> Connection:
        """Return the current connection, opened."""
        connection = self.registry.get(self.connection_name)
        connection.open()
        return connection

    @contextmanager
    def using(self, name: str) -> Iterator["DatasetTester"]:
        """
        Switch to another connection for the duration of a block.

        Example:
            >>> with tester.using("reporting"):
            ...     tester.expected_xml_dataset_ok("monthly")
        """
        previous = self.connection_name
        self.set_test_connection(name)
        try:
            yield self
        finally:
            self.connection_name = previous

    def set_insert_load_strategy(self) -> None:
        self.dbunit.set_load_strategy(LoadStrategy.INSERT)

    def set_refresh_load_strategy(self) -> None:
        self.dbunit.set_load_strategy(LoadStrategy.REFRESH)

    def _fail(self, description: str, error: Exception) -> NoReturn:
        raise AssertionError(f"{description}: {error}") from error

    def reset_schema_ok(self, path: str | Path, description: str | None = None) -> None:
        description = description or f"reset schema {path}"
        try:
            self.dbunit.reset_schema(path)
        except DBUnitError as e:
            self._fail(description, e)

    def populate_schema_ok(self, path: str | Path, description: str | None = None) -> None:
        description = description or f"populate schema {path}"
        try:
            self.dbunit.populate_schema(path)
        except DBUnitError as e:
            self._fail(description, e)

    def reset_sequence_ok(self, name: str, description: str | None = None) -> None:
        description = description or f"reset sequence {name}"
        try:
            self.dbunit.reset_sequence(name)
        except DBUnitError as e:
            self._fail(description, e)

    def dataset_ok(self, dataset: Dataset, description: str = "dataset") -> None:
        """Load ``dataset``, failing the test on any error."""
        try:
            self.dbunit.load(dataset)
        except DBUnitError as e:
            self._fail(description, e)

    def expected_dataset_ok(self, dataset: Dataset, description: str = "expected dataset") -> None:
        """Verify the database against ``dataset``, failing the test on a difference."""
        try:
            difference = self.dbunit.verify(dataset)
        except DBUnitError as e:
            self._fail(description, e)
        if difference:
            raise AssertionError(f"{description}\n{difference}")

    def xml_dataset_path(self, name: str, suffix: str = "") -> Path:
        """Path of the XML dataset ``name`` for the current test module."""
        test_file = self.test_file or _calling_test_file()
        return test_file.with_name(f"{test_file.stem}.{name}{suffix}.xml")

    def xml_dataset_ok(self, name: str, description: str | None = None) -> None:
        path = self.xml_dataset_path(name)
        description = description or f"xml dataset {path.name}"
        try:
            self.dbunit.load_xml(path)
        except DBUnitError as e:
            self._fail(description, e)

    def expected_xml_dataset_ok(self, name: str, description: str | None = None) -> None:
        path = self.xml_dataset_path(name, "-result")
        description = description or f"expected xml dataset {path.name}"
        try:
            difference = self.dbunit.verify_xml(path)
        except DBUnitError as e:
            self._fail(description, e)
        if difference:
            raise AssertionError(f"{description}\n{difference}")


def _calling_test_file() -> Path:
    """Return the first source file on the stack outside this module."""
    this_file = Path(__file__).resolve()
    for frame in inspect.stack()[1:]:
        path = Path(frame.filename).resolve()
        if path != this_file:
            return path
    raise RuntimeError("Cannot determine the calling test module")
