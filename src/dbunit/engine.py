"""
Dataset engine: loads datasets into a database and verifies its contents.

Example:
    >>> from dbunit import DBUnit, SQLiteConnection, connections
    >>> connections.register(SQLiteConnection("test.db", name="test"))
    >>> dbunit = DBUnit(connection_name="test")
    >>> dbunit.load([("emp", {}), ("emp", {"empno": 1, "ename": "scott"})])
    >>> dbunit.verify([("emp", {"empno": 1, "ename": "scott"})]) is None
    True
"""

import time
from pathlib import Path

from dbunit.comparator import DatasetComparator
from dbunit.connection.registry import ConnectionRegistry, connections
from dbunit.errors import ConfigurationError, DatasetFileError
from dbunit.keys import PrimaryKeyCache
from dbunit.loader import LoadApplier
from dbunit.schema import drop_statement, objects_to_create, rows_to_insert
from dbunit.types import Dataset, LoadStrategy
from dbunit.utils.logging import ContextLogger
from dbunit.utils.metrics import DIFFERENCES_TOTAL, OPERATION_SECONDS, OPERATIONS_TOTAL
from dbunit.utils.tracing import trace_operation
from dbunit.xml_dataset import XmlDataset, parse_dataset_file


def _read_script(path: str | Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise DatasetFileError(f"Cannot open script {path}: {e}") from e


class DBUnit:
    """
    Loads and verifies datasets on one named connection.

    The load strategy (INSERT by default) applies to both load() and
    verify(). Primary key columns are looked up once per table and cached
    for the lifetime of the instance.
    """

    def __init__(
        self,
        connection_name: str = "test",
        load_strategy: LoadStrategy | str = LoadStrategy.INSERT,
        registry: ConnectionRegistry | None = None,
    ):
        """
        Initialize the engine.

        Args:
            connection_name: Name of the registered connection to use
            load_strategy: INSERT or REFRESH
            registry: Connection registry (default: the module-level one)

        Raises:
            ConfigurationError: If no connection name is given
        """
        if not connection_name:
            raise ConfigurationError("connection_name is required")

        self.connection_name = connection_name
        self.registry = registry if registry is not None else connections
        self.primary_keys = PrimaryKeyCache()
        self.load_strategy = LoadStrategy.parse(load_strategy)
        self.logger = ContextLogger(__name__, connection_name=connection_name)

    def set_load_strategy(self, strategy: LoadStrategy | str) -> None:
        self.load_strategy = LoadStrategy.parse(strategy)
        self.logger.debug(f"Load strategy set to {self.load_strategy.value}")

    def get_load_strategy(self) -> LoadStrategy:
        return self.load_strategy

    def clear_primary_key_cache(self, table: str | None = None) -> None:
        """Forget cached primary keys (of one table, or all)."""
        self.primary_keys.clear(table)

    def _record(self, operation: str, status: str, started: float) -> None:
        OPERATIONS_TOTAL.labels(
            operation=operation, strategy=self.load_strategy.value, status=status
        ).inc()
        OPERATION_SECONDS.labels(operation=operation).observe(time.perf_counter() - started)

    def load(self, dataset: Dataset) -> None:
        """
        Load a dataset.

        Under INSERT every table of the dataset is emptied first; under
        REFRESH rows are merged and only tables given with an empty row are
        emptied.

        Args:
            dataset: Ordered (table, row) pairs

        Raises:
            DatasetFileError: If a LOB file cannot be read
            SqlExecutionError: If a statement fails; earlier statements stay applied
        """
        pairs = list(dataset)
        strategy = self.load_strategy
        started = time.perf_counter()
        self.logger.info(f"Loading dataset ({strategy.value}, {len(pairs)} rows)")

        try:
            with trace_operation(
                "dbunit.load",
                strategy=strategy.value,
                connection_name=self.connection_name,
                rows=len(pairs),
            ):
                with self.registry.acquire(self.connection_name) as connection:
                    written = LoadApplier(connection, self.primary_keys).apply(pairs, strategy)
        except Exception:
            self._record("load", "error", started)
            raise

        self._record("load", "success", started)
        self.logger.info(f"Dataset loaded: {written} rows written")

    def verify(self, dataset: Dataset) -> str | None:
        """
        Verify the database against an expected dataset.

        Under INSERT each table must hold exactly the expected rows; under
        REFRESH the expected rows must exist, other rows are ignored.

        Args:
            dataset: Ordered (table, row) pairs; values may be predicates

        Returns:
            Description of the first difference found, or None

        Raises:
            SqlExecutionError: If a query fails
        """
        pairs = list(dataset)
        strategy = self.load_strategy
        started = time.perf_counter()

        try:
            with trace_operation(
                "dbunit.verify",
                strategy=strategy.value,
                connection_name=self.connection_name,
                rows=len(pairs),
            ) as span:
                with self.registry.acquire(self.connection_name) as connection:
                    comparator = DatasetComparator(connection, self.primary_keys)
                    if strategy is LoadStrategy.INSERT:
                        result = comparator.verify_insert_strategy(pairs)
                    else:
                        result = comparator.verify_refresh_strategy(pairs)
                span.set_attribute("dbunit.difference", bool(result))
        except Exception:
            self._record("verify", "error", started)
            raise

        if result:
            self._record("verify", "difference", started)
            DIFFERENCES_TOTAL.labels(strategy=strategy.value).inc()
            self.logger.warning(f"Dataset verification found a difference: {result}")
        else:
            self._record("verify", "success", started)
            self.logger.info(f"Dataset verified ({strategy.value}, {len(pairs)} rows)")
        return result

    def reset_sequence(self, name: str) -> None:
        with self.registry.acquire(self.connection_name) as connection:
            connection.reset_sequence(name)
        self.logger.debug(f"Sequence {name} reset")

    def apply_properties(self, properties: dict) -> None:
        """Apply dataset document properties: load strategy and sequences to reset."""
        document = XmlDataset(properties=properties)
        self.set_load_strategy(document.load_strategy)
        for sequence in document.reset_sequences:
            self.reset_sequence(sequence)

    def load_xml(self, path: str | Path) -> None:
        """Load an XML dataset file, applying its properties first."""
        document = parse_dataset_file(path)
        self.apply_properties(document.properties)
        self.load(document.dataset)

    def verify_xml(self, path: str | Path) -> str | None:
        """Verify against an XML dataset file, applying its properties first."""
        document = parse_dataset_file(path)
        self.apply_properties(document.properties)
        return self.verify(document.dataset)

    def reset_schema(self, path: str | Path) -> None:
        """
        Recreate the objects of a schema script.

        Tables and sequences the script creates are dropped first (in reverse
        order, and only if they exist), then every statement runs in order.

        Raises:
            DatasetFileError: If the script cannot be read
        """
        objects = objects_to_create(_read_script(path))
        started = time.perf_counter()

        with trace_operation(
            "dbunit.reset_schema", connection_name=self.connection_name, objects=len(objects)
        ):
            with self.registry.acquire(self.connection_name) as connection:
                for label, _ in reversed(objects):
                    drop = drop_statement(label)
                    if drop is None:
                        continue
                    kind, name, sql = drop
                    exists = (
                        connection.table_exists(name)
                        if kind == "table"
                        else connection.sequence_exists(name)
                    )
                    if exists:
                        connection.execute(sql)
                for _, sql in objects:
                    connection.execute(sql)

        self.primary_keys.clear()
        self._record("reset_schema", "success", started)
        self.logger.info(f"Schema reset from {path} ({len(objects)} statements)")

    def populate_schema(self, path: str | Path) -> None:
        """
        Run every statement of a data script.

        Raises:
            DatasetFileError: If the script cannot be read
        """
        statements = rows_to_insert(_read_script(path))
        started = time.perf_counter()
        with self.registry.acquire(self.connection_name) as connection:
            for sql in statements:
                connection.execute(sql)

        self._record("populate_schema", "success", started)
        self.logger.info(f"Schema populated from {path} ({len(statements)} statements)")
