"""
Command-line argument parser configuration.

Sets up the argument parser for the dbunit CLI, defining the global
logging and connection options and one subcommand per operation.
"""

import argparse


def _add_connection_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("connection options (default: DBUNIT_* environment variables)")
    group.add_argument('--driver', choices=['sqlite', 'postgresql', 'sqlserver'], help='Database driver')
    group.add_argument('--database', help='Database name, or file path for sqlite')
    group.add_argument('--host', help='Database host')
    group.add_argument('--port', type=int, help='Database port')
    group.add_argument('--user', help='Database username')
    group.add_argument('--password', help='Database password')
    group.add_argument('--odbc-driver', help='ODBC driver name for sqlserver')
    group.add_argument('--connection-name', help='Logical connection name (default: test)')


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='dbunit',
        description="Load and verify database test datasets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Recreate the schema and load the reference data
  dbunit --database test.db reset-schema sql/create_schema.sql
  dbunit --database test.db populate-schema sql/populate_schema.sql

  # Load a dataset, then check the database against the expected result
  dbunit --database test.db load tests/test_emp.test1.xml
  dbunit --database test.db verify tests/test_emp.test1-result.xml

  # Restart sequences
  dbunit --driver postgresql --host localhost --database app --user app reset-sequence emp_seq

  # Generate a dataset from live data
  dbunit --database test.db generate --query "emp=SELECT * FROM emp" --format python
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--log-file',
        help='Also write logs to this file (rotated)'
    )
    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit logs as JSON'
    )
    parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port'
    )
    parser.add_argument(
        '--otlp-endpoint',
        help='Export traces to this OTLP collector'
    )
    _add_connection_options(parser)

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Schema commands ==========
    reset_parser = subparsers.add_parser('reset-schema', help='Drop and recreate the objects of a schema script')
    reset_parser.add_argument('file', help='Schema script (CREATE statements)')

    populate_parser = subparsers.add_parser('populate-schema', help='Run the statements of a data script')
    populate_parser.add_argument('file', help='Data script (INSERT statements)')

    sequence_parser = subparsers.add_parser('reset-sequence', help='Restart sequences at 1')
    sequence_parser.add_argument('names', nargs='+', help='Sequence names')

    # ========== Dataset commands ==========
    load_parser = subparsers.add_parser('load', help='Load an XML dataset')
    load_parser.add_argument('file', help='XML dataset file')

    verify_parser = subparsers.add_parser('verify', help='Verify the database against an XML dataset')
    verify_parser.add_argument('file', help='XML dataset file')

    # ========== Generate command ==========
    generate_parser = subparsers.add_parser('generate', help='Generate a dataset from SELECT statements')
    generate_parser.add_argument(
        '--query',
        action='append',
        required=True,
        metavar='NAME=SQL',
        help='Table name and the SELECT producing its rows (repeatable, kept in order)'
    )
    generate_parser.add_argument(
        '--format',
        choices=['xml', 'python'],
        default='xml',
        help='Output format (default: xml)'
    )
    generate_parser.add_argument(
        '--output',
        help='Output file path (default: stdout)'
    )

    return parser
