"""
CLI command implementations.

This module contains the implementation of the three CLI commands:
- sync: Write enum values to the target databases
- plan: Print the SQL a sync would run, without changing anything
- list: Show the loaded enum definitions
"""

import argparse
import json
import logging
import re
import sys
from pathlib import Path

from ..connections import describe_connection
from ..errors import EnumSyncError
from ..executor import render_plan_script
from ..metrics import MetricsPublisher
from ..orchestrator import EnumSyncWriter
from ..utils.logging import SyncLogger
from ..utils.tracing import initialize_tracing, shutdown_tracing

from .credentials import get_connection_strings_from_vault_or_env, get_definitions

logger = logging.getLogger(__name__)


def _script_file_name(description: str, table: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", f"{description}_{table}") + ".sql"


def cmd_sync(args: argparse.Namespace) -> None:
    """
    Synchronize enum tables in every target database

    Args:
        args: Parsed command-line arguments
    """
    definitions = get_definitions(args)
    connection_strings = get_connection_strings_from_vault_or_env(args)

    if not definitions:
        logger.warning("No enum definitions loaded, nothing to synchronize")

    if args.metrics_port:
        try:
            MetricsPublisher(port=args.metrics_port).start()
        except RuntimeError as e:
            logger.error(str(e))
            sys.exit(1)

    if args.otlp_endpoint:
        initialize_tracing(otlp_endpoint=args.otlp_endpoint)

    logger.info(
        f"Synchronizing {len(definitions)} enum table(s) into "
        f"{len(connection_strings)} database(s) "
        f"({'sequential' if args.sequential else 'parallel'}, deletion mode {args.deletion_mode.value})"
    )

    writer = EnumSyncWriter(definitions, max_workers=args.max_workers)
    sink = SyncLogger("enum_sync")

    try:
        outcomes = writer.synchronize_many(
            connection_strings,
            args.deletion_mode,
            sink,
            parallel=not args.sequential,
        )
    except EnumSyncError as e:
        sink.exception(e)
        logger.error(f"Synchronization failed: {e}")
        sys.exit(1)
    finally:
        if args.otlp_endpoint:
            shutdown_tracing()

    logger.info(f"Synchronization completed successfully for {len(outcomes)} database(s)")
    sys.exit(0)


def cmd_plan(args: argparse.Namespace) -> None:
    """
    Print the SQL a sync would run against every target database

    Databases that cannot be read are reported and skipped; the exit code is
    1 if any of them failed.

    Args:
        args: Parsed command-line arguments
    """
    definitions = get_definitions(args)
    connection_strings = get_connection_strings_from_vault_or_env(args)

    writer = EnumSyncWriter(definitions)
    sink = SyncLogger("enum_sync")
    output_dir = Path(args.output_dir) if args.output_dir else None
    failed = 0

    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)

    for connection_string in connection_strings:
        description = describe_connection(connection_string)

        try:
            previews = writer.preview_database(connection_string, args.deletion_mode)
        except EnumSyncError as e:
            sink.exception(e)
            failed += 1
            continue

        for preview in previews:
            script = render_plan_script(
                preview.definition,
                preview.plan,
                preview.database_type,
                create_table=not preview.table_exists,
            )

            if output_dir:
                script_path = output_dir / _script_file_name(description, preview.plan.table)
                with open(script_path, 'w') as f:
                    f.write(script + "\n")
                logger.info(f"  {preview.plan.table}: {preview.plan.summary()} -> {script_path}")
            else:
                print(f"-- Database: {description}")
                print(script)
                print()

    if failed:
        logger.error(f"{failed} database(s) could not be planned")
        sys.exit(1)
    sys.exit(0)


def cmd_list(args: argparse.Namespace) -> None:
    """
    Print the loaded enum definitions

    Args:
        args: Parsed command-line arguments
    """
    definitions = get_definitions(args)

    if args.format == "json":
        print(json.dumps(
            [
                {
                    "table": definition.qualified_name,
                    "id_type": definition.id_type,
                    "columns": list(definition.columns),
                    "values": [
                        {"id": row.id, "name": row.name, "description": row.description}
                        for row in definition.rows
                    ],
                }
                for definition in definitions
            ],
            indent=2,
        ))
    else:
        if not definitions:
            print("No enum definitions loaded")
        for definition in definitions:
            print(f"{definition.qualified_name} ({definition.id_type}, {len(definition.rows)} value(s))")
            for row in definition.rows:
                line = f"  {row.id:>6}  {row.name}"
                if row.description:
                    line += f"  - {row.description}"
                print(line)

    sys.exit(0)
