"""
Command-line interface for enum table synchronization.

This module provides a CLI for writing application enums to lookup tables
in SQL Server, PostgreSQL and SQLite databases.

Available commands:
- sync: Write enum values to the target databases
- plan: Print the SQL a sync would run (dry run)
- list: Show the loaded enum definitions
"""

import sys

from .commands import cmd_list, cmd_plan, cmd_sync
from .credentials import get_connection_strings_from_vault_or_env, get_definitions, setup_logging
from .parser import create_parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the enum-sync CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.log_level, json_format=args.log_json, log_file=args.log_file)

    # Execute command
    if args.command in ('sync', 'plan', 'list'):
        if not args.definitions and not args.module:
            parser.error("Either --definitions or --module is required")

    if args.command == 'sync':
        cmd_sync(args)
    elif args.command == 'plan':
        cmd_plan(args)
    elif args.command == 'list':
        cmd_list(args)
    else:
        parser.print_help()
        sys.exit(1)


__all__ = [
    'main',
    'setup_logging',
    'get_connection_strings_from_vault_or_env',
    'get_definitions',
    'cmd_sync',
    'cmd_plan',
    'cmd_list',
    'create_parser',
]


if __name__ == '__main__':
    main()
