"""
Unit tests for YAML enum definition loading.
"""

import sys
import textwrap

import pytest

from enum_sync.definitions import EnumRow, default_registry
from enum_sync.errors import DefinitionError
from enum_sync.loader import load_definitions, load_registered_definitions, parse_definitions


class TestParseDefinitions:
    """Test schema validation and conversion of parsed documents."""

    def test_minimal(self):
        """Test a table with values and defaults for everything else."""
        document = {"enums": [{"table": "Color", "values": [{"id": 1, "name": "Red"}]}]}

        definitions = parse_definitions(document)

        assert len(definitions) == 1
        assert definitions[0].table == "Color"
        assert definitions[0].rows == (EnumRow(1, "Red"),)
        assert definitions[0].id_type == "int"

    def test_all_options(self):
        """Test every table option is passed through."""
        document = {"enums": [{
            "table": "Status",
            "schema": "ref",
            "id_type": "tinyint",
            "id_column": "StatusId",
            "name_column": "Code",
            "description_column": None,
            "values": [{"id": 1, "name": "Open", "description": "ignored column"}],
        }]}

        definition = parse_definitions(document)[0]

        assert definition.qualified_name == "ref.Status"
        assert definition.columns == ("StatusId", "Code")
        assert definition.rows[0].description == "ignored column"

    def test_document_not_mutated(self):
        """Test the same document can be parsed twice."""
        document = {"enums": [{"table": "Color", "values": [{"id": 1, "name": "Red"}]}]}

        parse_definitions(document)
        parse_definitions(document)

        assert "values" in document["enums"][0]

    @pytest.mark.parametrize("document,location", [
        ({}, "<root>"),
        ({"enums": [{"table": "Color"}]}, "enums/0"),
        ({"enums": [{"table": "Color", "values": [{"id": "1", "name": "Red"}]}]}, "enums/0/values/0/id"),
        ({"enums": [{"table": "Color", "id_type": "uuid", "values": []}]}, "enums/0/id_type"),
        ({"enums": [{"table": "Color", "colour": 1, "values": []}]}, "enums/0"),
    ])
    def test_schema_errors(self, document, location):
        """Test schema violations name the offending location."""
        with pytest.raises(DefinitionError, match=location):
            parse_definitions(document, source="enums.yaml")

    def test_definition_invariants_checked(self):
        """Test duplicate ids are caught after schema validation."""
        document = {"enums": [{"table": "Color", "values": [
            {"id": 1, "name": "Red"},
            {"id": 1, "name": "Green"},
        ]}]}

        with pytest.raises(DefinitionError, match="duplicate id"):
            parse_definitions(document)

    def test_duplicate_tables(self):
        """Test two entries may not target the same table."""
        document = {"enums": [
            {"table": "Color", "values": []},
            {"table": "Color", "values": []},
        ]}

        with pytest.raises(DefinitionError, match="More than one enum"):
            parse_definitions(document)


class TestLoadDefinitions:
    """Test loading definitions from files."""

    def test_load_yaml(self, tmp_path):
        """Test a YAML file with two tables."""
        path = tmp_path / "enums.yaml"
        path.write_text(textwrap.dedent("""
            enums:
              - table: OrderStatus
                schema: dbo
                id_type: tinyint
                values:
                  - {id: 1, name: Pending}
                  - {id: 2, name: Shipped, description: Left the warehouse}
              - table: Color
                values:
                  - {id: 10, name: Red}
        """))

        definitions = load_definitions(path)

        assert [d.qualified_name for d in definitions] == ["dbo.OrderStatus", "Color"]
        assert definitions[0].rows[1] == EnumRow(2, "Shipped", "Left the warehouse")

    def test_missing_file(self, tmp_path):
        """Test unreadable files raise DefinitionError."""
        with pytest.raises(DefinitionError, match="Unable to read"):
            load_definitions(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test YAML syntax errors raise DefinitionError."""
        path = tmp_path / "broken.yaml"
        path.write_text("enums: [\n")

        with pytest.raises(DefinitionError):
            load_definitions(path)


class TestLoadRegisteredDefinitions:
    """Test importing modules that register enums."""

    def setup_method(self):
        default_registry.clear()

    def teardown_method(self):
        default_registry.clear()
        sys.modules.pop("registered_enums_fixture", None)

    def test_import_registers(self, tmp_path, monkeypatch):
        """Test importing a module runs its @enum_table decorators."""
        (tmp_path / "registered_enums_fixture.py").write_text(textwrap.dedent("""
            import enum

            from enum_sync import enum_table


            @enum_table(schema="ref")
            class Priority(enum.IntEnum):
                Low = 1
                High = 2
        """))
        monkeypatch.syspath_prepend(str(tmp_path))

        definitions = load_registered_definitions(["registered_enums_fixture"])

        assert [d.qualified_name for d in definitions] == ["ref.Priority"]

    def test_missing_module(self):
        """Test unknown modules raise DefinitionError."""
        with pytest.raises(DefinitionError, match="Unable to import"):
            load_registered_definitions(["no_such_enum_module_xyz"])
