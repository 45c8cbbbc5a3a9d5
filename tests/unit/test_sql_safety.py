"""
Unit tests for SQL identifier validation and quoting

Tests that enum table, schema and column names cannot inject SQL:
- SQL Server: bracket quoting [schema].[table]
- PostgreSQL and SQLite: double-quote quoting "schema"."table"
"""

import pytest

from enum_sync.utils.sql_safety import quote_identifier, quote_schema_table, validate_identifier


class TestValidateIdentifier:
    """Test identifier validation"""

    @pytest.mark.parametrize("identifier", ["Color", "order_status", "_internal", "Table123"])
    def test_valid(self, identifier):
        """Test plain ASCII identifiers are accepted"""
        validate_identifier(identifier)

    def test_reject_sql_injection_attempt(self):
        """Test rejection of SQL injection attempts"""
        malicious_inputs = [
            "Color; DROP TABLE users--",
            "Color' OR '1'='1",
            "Color/**/UNION/**/SELECT",
            "dbo.Color",
            "Color\x00malicious",
            "Côlor",
        ]

        for malicious_input in malicious_inputs:
            with pytest.raises(ValueError, match="Invalid SQL identifier"):
                validate_identifier(malicious_input)

    def test_reject_empty(self):
        """Test empty identifiers"""
        with pytest.raises(ValueError, match="cannot be empty"):
            validate_identifier("")


class TestQuoteIdentifier:
    """Test per-database quoting"""

    def test_sqlserver_brackets(self):
        """Test SQL Server bracket quoting"""
        assert quote_identifier("Color", "sqlserver") == "[Color]"

    @pytest.mark.parametrize("db_type", ["postgresql", "sqlite", "unknown"])
    def test_double_quotes(self, db_type):
        """Test ANSI double-quote quoting"""
        assert quote_identifier("Color", db_type) == '"Color"'

    def test_quote_validates(self):
        """Test quoting validates first"""
        with pytest.raises(ValueError):
            quote_identifier('Color"; --', "postgresql")


class TestQuoteSchemaTable:
    """Test schema-qualified names"""

    def test_with_schema(self):
        """Test schema and table are quoted separately"""
        assert quote_schema_table("ref", "Color", "sqlserver") == "[ref].[Color]"

    def test_without_schema(self):
        """Test unqualified tables"""
        assert quote_schema_table(None, "Color", "postgresql") == '"Color"'
