"""
CLI command implementations.

Each command receives the parsed arguments and returns the process exit
status: 0 on success, 1 when verification finds a difference.
"""

import argparse
import logging
import sys
from pathlib import Path

from dbunit.config import create_connection, settings_from_env
from dbunit.connection.base import Connection
from dbunit.connection.registry import ConnectionRegistry
from dbunit.engine import DBUnit
from dbunit.generator import DatasetGenerator

logger = logging.getLogger(__name__)


def connection_from_args(args: argparse.Namespace) -> Connection:
    """Create the connection described by the command-line options and environment."""
    settings = settings_from_env(
        driver=args.driver,
        database=args.database,
        host=args.host,
        port=args.port,
        user=args.user,
        password=args.password,
        driver_name=args.odbc_driver,
        connection_name=args.connection_name,
    )
    return create_connection(settings)


def engine_from_args(args: argparse.Namespace) -> DBUnit:
    registry = ConnectionRegistry()
    connection = registry.register(connection_from_args(args))
    return DBUnit(connection_name=connection.name, registry=registry)


def cmd_reset_schema(args: argparse.Namespace) -> int:
    engine_from_args(args).reset_schema(args.file)
    return 0


def cmd_populate_schema(args: argparse.Namespace) -> int:
    engine_from_args(args).populate_schema(args.file)
    return 0


def cmd_reset_sequence(args: argparse.Namespace) -> int:
    engine = engine_from_args(args)
    for name in args.names:
        engine.reset_sequence(name)
        logger.info(f"Sequence {name} reset")
    return 0


def cmd_load(args: argparse.Namespace) -> int:
    engine_from_args(args).load_xml(args.file)
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """Verify against a dataset file; the difference goes to stderr."""
    difference = engine_from_args(args).verify_xml(args.file)
    if difference:
        print(difference, file=sys.stderr)
        return 1
    print(f"No differences found against {args.file}")
    return 0


def parse_queries(queries: list[str]) -> dict[str, str]:
    """
    Parse ``NAME=SQL`` pairs, keeping their order.

    Raises:
        ValueError: If a pair has no name or no statement
    """
    datasets = {}
    for query in queries:
        name, separator, sql = query.partition("=")
        if not separator or not name.strip() or not sql.strip():
            raise ValueError(f"Expected NAME=SQL, got {query!r}")
        datasets[name.strip()] = sql.strip()
    return datasets


def cmd_generate(args: argparse.Namespace) -> int:
    """Generate a dataset document from live data."""
    datasets = parse_queries(args.query)
    with connection_from_args(args) as connection:
        generator = DatasetGenerator(connection, datasets)
        output = generator.xml() if args.format == "xml" else generator.python()

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        logger.info(f"Dataset written to {args.output}")
    else:
        sys.stdout.write(output)
    return 0
