"""
Command-line argument parser configuration.

This module sets up the argument parser for the enum-sync CLI tool,
defining all commands and their options.
"""

import argparse
import os

from ..definitions import DeletionMode

DEFAULT_VAULT_PATH = "secret/enum-sync/databases"


def _add_source_arguments(command_parser: argparse.ArgumentParser) -> None:
    """Options selecting which enums to write."""
    command_parser.add_argument(
        '--definitions',
        action='append',
        default=[],
        metavar='FILE',
        help='YAML file of enum definitions (repeatable)'
    )
    command_parser.add_argument(
        '--module',
        action='append',
        default=[],
        metavar='MODULE',
        help='Python module that registers enums with @enum_table (repeatable)'
    )


def _add_target_arguments(command_parser: argparse.ArgumentParser) -> None:
    """Options selecting the target databases and the orphan row policy."""
    command_parser.add_argument(
        '--connection',
        action='append',
        default=[],
        metavar='STR',
        help='Target database connection string (repeatable)'
    )
    command_parser.add_argument(
        '--connections-file',
        help='File containing connection strings (one per line, # for comments)'
    )
    command_parser.add_argument(
        '--use-vault',
        action='store_true',
        help='Fetch connection strings from HashiCorp Vault'
    )
    command_parser.add_argument(
        '--vault-path',
        default=DEFAULT_VAULT_PATH,
        help=f'Vault secret holding the connection strings (default: {DEFAULT_VAULT_PATH})'
    )
    command_parser.add_argument(
        '--deletion-mode',
        type=DeletionMode.parse,
        choices=list(DeletionMode),
        default=os.getenv('ENUM_SYNC_DELETION_MODE', DeletionMode.IGNORE.value),
        metavar='{ignore,remove,error}',
        help='What to do with table rows that no enum value matches '
             '(default: $ENUM_SYNC_DELETION_MODE or ignore)'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='enum-sync',
        description="Write application enums to lookup tables in one or many databases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Synchronize the enums of a YAML file into two databases in parallel
  enum-sync sync --definitions enums.yaml \\
      --connection "Driver={ODBC Driver 18 for SQL Server};Server=db01;Database=app;..." \\
      --connection "postgresql://sync@db02/app"

  # Enums registered with @enum_table in a Python module, removing orphan rows
  enum-sync sync --module myapp.enums --connections-file targets.txt --deletion-mode remove

  # Connection strings from Vault, one database at a time
  enum-sync sync --definitions enums.yaml --use-vault --sequential

  # Show the SQL a sync would run, without changing anything
  enum-sync plan --definitions enums.yaml --connection sqlite:///local.db

  # List the loaded enum definitions
  enum-sync list --module myapp.enums
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=os.getenv('LOG_LEVEL', 'INFO').upper(),
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        default=os.getenv('LOG_JSON', 'false').lower() in ('true', '1', 'yes'),
        help='Write logs as JSON lines (default: $LOG_JSON)'
    )
    parser.add_argument(
        '--log-file',
        default=os.getenv('LOG_FILE'),
        help='Also write logs to this file (rotated)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Sync command ==========
    sync_parser = subparsers.add_parser('sync', help='Write enum values to the target databases')
    _add_source_arguments(sync_parser)
    _add_target_arguments(sync_parser)
    sync_parser.add_argument(
        '--sequential',
        action='store_true',
        help='Process databases one at a time and stop at the first failure'
    )
    sync_parser.add_argument(
        '--max-workers',
        type=int,
        default=int(os.getenv('ENUM_SYNC_MAX_WORKERS', '0')) or None,
        help='Maximum databases processed in parallel (default: number of CPUs)'
    )
    sync_parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port while running'
    )
    sync_parser.add_argument(
        '--otlp-endpoint',
        help='Export traces to this OTLP collector (e.g. localhost:4317)'
    )

    # ========== Plan command ==========
    plan_parser = subparsers.add_parser('plan', help='Print the SQL a sync would run (dry run)')
    _add_source_arguments(plan_parser)
    _add_target_arguments(plan_parser)
    plan_parser.add_argument(
        '--output-dir',
        help='Write one script per database and table to this directory instead of stdout'
    )

    # ========== List command ==========
    list_parser = subparsers.add_parser('list', help='List the loaded enum definitions')
    _add_source_arguments(list_parser)
    list_parser.add_argument(
        '--format',
        choices=['console', 'json'],
        default='console',
        help='Output format (default: console)'
    )

    return parser
