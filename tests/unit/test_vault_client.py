"""
Unit tests for enum_sync.utils.vault_client

Tests client initialization, KV v2 secret retrieval and connection string
extraction.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from enum_sync.utils.vault_client import VaultClient


def _response(status_code=200, data=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = {"data": {"data": data or {}}}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return response


class TestVaultClientInit:
    """Test VaultClient initialization scenarios"""

    def test_init_with_explicit_parameters(self):
        """Test initialization with explicitly provided parameters"""
        client = VaultClient(vault_addr="https://vault.example.com/", vault_token="test-token-123")

        assert client.vault_addr == "https://vault.example.com"
        assert client.headers == {
            "X-Vault-Token": "test-token-123",
            "Content-Type": "application/json"
        }

    def test_init_from_environment(self, monkeypatch):
        """Test initialization using environment variables"""
        monkeypatch.setenv("VAULT_ADDR", "https://vault.env.com")
        monkeypatch.setenv("VAULT_TOKEN", "env-token-456")

        client = VaultClient()

        assert client.vault_addr == "https://vault.env.com"
        assert client.vault_token == "env-token-456"

    def test_init_missing_vault_addr_raises_error(self, monkeypatch):
        """Test that missing vault_addr raises ValueError"""
        monkeypatch.delenv("VAULT_ADDR", raising=False)

        with pytest.raises(ValueError, match="VAULT_ADDR"):
            VaultClient(vault_token="test-token")

    def test_init_missing_vault_token_raises_error(self, monkeypatch):
        """Test that missing vault_token raises ValueError"""
        monkeypatch.delenv("VAULT_TOKEN", raising=False)

        with pytest.raises(ValueError, match="VAULT_TOKEN"):
            VaultClient(vault_addr="https://vault.example.com")

    def test_init_with_namespace_adds_header(self):
        """Test namespace header for Vault Enterprise"""
        client = VaultClient(vault_addr="https://vault", vault_token="t", namespace="team-a")

        assert client.headers["X-Vault-Namespace"] == "team-a"


class TestGetSecret:
    """Test KV v2 secret retrieval"""

    def setup_method(self):
        self.client = VaultClient(vault_addr="https://vault.example.com", vault_token="token")

    @patch("enum_sync.utils.vault_client.requests.get")
    def test_adds_data_to_path(self, mock_get):
        """Test /data/ is inserted after the mount point"""
        mock_get.return_value = _response(data={"key": "value"})

        result = self.client.get_secret("secret/enum-sync/databases")

        assert result == {"key": "value"}
        mock_get.assert_called_once_with(
            "https://vault.example.com/v1/secret/data/enum-sync/databases",
            headers=self.client.headers,
            timeout=10,
        )

    @patch("enum_sync.utils.vault_client.requests.get")
    def test_existing_data_path_unchanged(self, mock_get):
        """Test paths that already contain /data/ are used as given"""
        mock_get.return_value = _response(data={"key": "value"})

        self.client.get_secret("secret/data/enum-sync")

        assert mock_get.call_args.args[0] == "https://vault.example.com/v1/secret/data/enum-sync"

    @pytest.mark.parametrize("path", ["", "secret/../admin", "//secret", "secret/db?x=1"])
    def test_invalid_paths_rejected(self, path):
        """Test unsafe secret paths never reach Vault"""
        with pytest.raises(ValueError):
            self.client.get_secret(path)

    @patch("enum_sync.utils.vault_client.requests.get")
    def test_404_raises_value_error(self, mock_get):
        """Test a missing secret"""
        mock_get.return_value = _response(status_code=404)

        with pytest.raises(ValueError, match="Secret not found"):
            self.client.get_secret("secret/enum-sync/databases")

    @patch("enum_sync.utils.vault_client.requests.get")
    def test_http_error_raises(self, mock_get):
        """Test other HTTP errors propagate"""
        mock_get.return_value = _response(status_code=503)

        with pytest.raises(requests.HTTPError):
            self.client.get_secret("secret/enum-sync/databases")

    @patch("enum_sync.utils.vault_client.requests.get")
    def test_empty_data_raises_value_error(self, mock_get):
        """Test an empty secret"""
        mock_get.return_value = _response(data={})

        with pytest.raises(ValueError, match="No data found"):
            self.client.get_secret("secret/enum-sync/databases")


class TestGetConnectionStrings:
    """Test connection string extraction"""

    def setup_method(self):
        self.client = VaultClient(vault_addr="https://vault.example.com", vault_token="token")

    @patch("enum_sync.utils.vault_client.requests.get")
    def test_list_value(self, mock_get):
        """Test a list of connection strings"""
        mock_get.return_value = _response(data={
            "connection_strings": ["postgresql://db01/app", " Server=db02;Database=app ", ""]
        })

        result = self.client.get_connection_strings()

        assert result == ["postgresql://db01/app", "Server=db02;Database=app"]

    @patch("enum_sync.utils.vault_client.requests.get")
    def test_newline_separated_value(self, mock_get):
        """Test a single newline-separated string"""
        mock_get.return_value = _response(data={
            "connection_strings": "postgresql://db01/app\n\npostgresql://db02/app\n"
        })

        result = self.client.get_connection_strings("secret/other")

        assert result == ["postgresql://db01/app", "postgresql://db02/app"]
        assert mock_get.call_args.args[0].endswith("/v1/secret/data/other")

    @patch("enum_sync.utils.vault_client.requests.get")
    def test_missing_key(self, mock_get):
        """Test a secret without connection_strings"""
        mock_get.return_value = _response(data={"username": "sa"})

        with pytest.raises(ValueError, match="connection_strings"):
            self.client.get_connection_strings()

    @patch("enum_sync.utils.vault_client.requests.get")
    def test_no_connection_strings(self, mock_get):
        """Test a key holding only blank entries"""
        mock_get.return_value = _response(data={"connection_strings": ["  "]})

        with pytest.raises(ValueError, match="No connection strings"):
            self.client.get_connection_strings()
