"""
Connection string and definition sources for the CLI.

This module fetches target connection strings from Vault, the command line,
a file or the environment, loads enum definitions, and configures logging
for the CLI application.
"""

import argparse
import logging
import os
import sys

from ..definitions import EnumDefinition, validate_definitions
from ..errors import DefinitionError
from ..loader import load_definitions, load_registered_definitions
from ..utils.logging import setup_logging as configure_logging
from ..utils.vault_client import VaultClient

logger = logging.getLogger(__name__)

CONNECTIONS_ENV_VAR = "ENUM_SYNC_CONNECTIONS"


def setup_logging(log_level: str = "INFO", json_format: bool = False, log_file: str | None = None) -> None:
    """
    Setup logging configuration

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: Write JSON lines instead of colored console output
        log_file: Optional rotated log file
    """
    configure_logging(level=log_level, log_file=log_file, json_format=json_format)


def _read_connections_file(path: str) -> list[str]:
    with open(path) as f:
        return [
            line.strip() for line in f
            if line.strip() and not line.strip().startswith('#')
        ]


def get_connection_strings_from_vault_or_env(args: argparse.Namespace) -> list[str]:
    """
    Get target connection strings from Vault or arguments/environment

    Sources, first match wins: Vault (--use-vault), --connection and
    --connections-file (combined), then ENUM_SYNC_CONNECTIONS (one
    connection string per line).

    Args:
        args: Parsed command-line arguments

    Returns:
        Connection strings in the order given
    """
    if args.use_vault:
        try:
            vault_client = VaultClient()
            connection_strings = vault_client.get_connection_strings(args.vault_path)
        except Exception as e:
            logger.error(f"Failed to fetch connection strings from Vault: {e}")
            sys.exit(1)
        return connection_strings

    connection_strings = list(args.connection)
    if args.connections_file:
        try:
            connection_strings.extend(_read_connections_file(args.connections_file))
        except OSError as e:
            logger.error(f"Unable to read connections file {args.connections_file}: {e}")
            sys.exit(1)

    if not connection_strings:
        connection_strings = [
            line.strip() for line in os.getenv(CONNECTIONS_ENV_VAR, "").splitlines() if line.strip()
        ]

    if not connection_strings:
        logger.error(
            f"No target databases given. Use --connection, --connections-file, "
            f"--use-vault or set {CONNECTIONS_ENV_VAR}"
        )
        sys.exit(1)

    return connection_strings


def get_definitions(args: argparse.Namespace) -> list[EnumDefinition]:
    """
    Load enum definitions from YAML files and registering modules

    Args:
        args: Parsed command-line arguments

    Returns:
        Definitions in load order: YAML files first, then registered enums
    """
    try:
        definitions: list[EnumDefinition] = []
        for path in args.definitions:
            definitions.extend(load_definitions(path))
        if args.module:
            definitions.extend(load_registered_definitions(args.module))
        return validate_definitions(definitions)
    except DefinitionError as e:
        logger.error(f"Unable to load enum definitions: {e}")
        sys.exit(1)
