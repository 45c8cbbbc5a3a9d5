"""
Declarative enum definitions loaded from YAML.

File format:

    enums:
      - table: OrderStatus
        schema: dbo
        id_type: tinyint
        values:
          - {id: 1, name: Pending}
          - {id: 2, name: Shipped, description: Left the warehouse}
"""

import importlib
import logging
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from .definitions import EnumDefinition, EnumRow, default_registry, validate_definitions
from .errors import DefinitionError

logger = logging.getLogger(__name__)

DEFINITIONS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["enums"],
    "additionalProperties": False,
    "properties": {
        "enums": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["table", "values"],
                "additionalProperties": False,
                "properties": {
                    "table": {"type": "string", "minLength": 1},
                    "schema": {"type": "string", "minLength": 1},
                    "id_type": {"enum": ["tinyint", "smallint", "int", "bigint"]},
                    "id_column": {"type": "string", "minLength": 1},
                    "name_column": {"type": "string", "minLength": 1},
                    "description_column": {"type": ["string", "null"]},
                    "values": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["id", "name"],
                            "additionalProperties": False,
                            "properties": {
                                "id": {"type": "integer"},
                                "name": {"type": "string", "minLength": 1},
                                "description": {"type": ["string", "null"]},
                            },
                        },
                    },
                },
            },
        },
    },
}


def parse_definitions(document: Any, source: str = "<document>") -> list[EnumDefinition]:
    """
    Validate a parsed YAML/JSON document and build its definitions.

    Raises:
        DefinitionError: If the document does not match DEFINITIONS_SCHEMA or
            a definition violates its invariants
    """
    try:
        jsonschema.validate(instance=document, schema=DEFINITIONS_SCHEMA)
    except jsonschema.ValidationError as e:
        location = "/".join(str(part) for part in e.absolute_path) or "<root>"
        raise DefinitionError(f"{source}: {location}: {e.message}") from e

    definitions = []
    for entry in document["enums"]:
        options = {key: value for key, value in entry.items() if key != "values"}
        rows = tuple(
            EnumRow(value["id"], value["name"], value.get("description"))
            for value in entry["values"]
        )
        definitions.append(EnumDefinition(rows=rows, **options))

    return validate_definitions(definitions)


def load_definitions(path: str | Path) -> list[EnumDefinition]:
    """Load enum definitions from a YAML file."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise DefinitionError(f"Unable to read enum definitions from {path}: {e}") from e

    definitions = parse_definitions(document, source=str(path))
    logger.info(f"Loaded {len(definitions)} enum definition(s) from {path}")
    return definitions


def load_registered_definitions(module_names: list[str]) -> list[EnumDefinition]:
    """
    Import modules for their side effect of registering enums with the
    default registry, then return every registered definition.
    """
    for module_name in module_names:
        try:
            importlib.import_module(module_name)
        except ImportError as e:
            raise DefinitionError(f"Unable to import enum module {module_name}: {e}") from e

    return default_registry.definitions()
