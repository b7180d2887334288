"""
Command-line interface for dataset loading and verification.

Available commands:
- reset-schema / populate-schema: Run schema and data scripts
- reset-sequence: Restart sequences
- load / verify: Apply or check an XML dataset
- generate: Build a dataset from SELECT statements
"""

import logging
import sys

from dbunit.errors import DBUnitError
from dbunit.utils.logging import setup_logging
from dbunit.utils.metrics import start_metrics_server
from dbunit.utils.tracing import initialize_tracing, shutdown_tracing

from .commands import (
    cmd_generate,
    cmd_load,
    cmd_populate_schema,
    cmd_reset_schema,
    cmd_reset_sequence,
    cmd_verify,
)
from .parser import create_parser

logger = logging.getLogger(__name__)

COMMANDS = {
    'reset-schema': cmd_reset_schema,
    'populate-schema': cmd_populate_schema,
    'reset-sequence': cmd_reset_sequence,
    'load': cmd_load,
    'verify': cmd_verify,
    'generate': cmd_generate,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the dbunit CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 2

    setup_logging(
        level=args.log_level,
        log_file=args.log_file,
        json_format=args.json_logs,
    )
    if args.metrics_port:
        start_metrics_server(args.metrics_port)
    if args.otlp_endpoint:
        initialize_tracing(service_name="dbunit", otlp_endpoint=args.otlp_endpoint)

    try:
        return command(args)
    except (DBUnitError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 2
    finally:
        shutdown_tracing()


__all__ = [
    'main',
    'create_parser',
    'cmd_generate',
    'cmd_load',
    'cmd_populate_schema',
    'cmd_reset_schema',
    'cmd_reset_sequence',
    'cmd_verify',
]


if __name__ == '__main__':
    sys.exit(main())
