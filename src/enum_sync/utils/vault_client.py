"""
HashiCorp Vault client for fetching target database connection strings

Connection strings carry credentials, so deployments keep them in the
Vault KV v2 secrets engine instead of on the command line.
"""

import logging
import os
import re
from typing import Any

import requests

logger = logging.getLogger(__name__)

DEFAULT_SECRET_PATH = "secret/enum-sync/databases"

# Allow only safe characters: alphanumeric, slash, underscore, hyphen
SAFE_SECRET_PATH = re.compile(r"^[a-zA-Z0-9/_-]+$")


class VaultClient:
    """
    HashiCorp Vault client for secrets management (KV v2).
    """

    def __init__(
        self,
        vault_addr: str | None = None,
        vault_token: str | None = None,
        namespace: str | None = None,
        timeout: float = 10,
    ):
        """
        Initialize Vault client

        Args:
            vault_addr: Vault server address (default: from VAULT_ADDR env var)
            vault_token: Vault authentication token (default: from VAULT_TOKEN env var)
            namespace: Vault namespace (optional, for Vault Enterprise)
            timeout: HTTP request timeout in seconds

        Raises:
            ValueError: If vault_addr or vault_token are not provided
        """
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_token = vault_token or os.getenv("VAULT_TOKEN")
        self.namespace = namespace
        self.timeout = timeout

        if not self.vault_addr:
            raise ValueError(
                "Vault address not provided. Set VAULT_ADDR environment variable "
                "or pass vault_addr parameter."
            )

        if not self.vault_token:
            raise ValueError(
                "Vault token not provided. Set VAULT_TOKEN environment variable "
                "or pass vault_token parameter."
            )

        self.vault_addr = self.vault_addr.rstrip("/")

        self.headers = {
            "X-Vault-Token": self.vault_token,
            "Content-Type": "application/json"
        }

        if self.namespace:
            self.headers["X-Vault-Namespace"] = self.namespace

        logger.info(f"Initialized Vault client for {self.vault_addr}")

    def get_secret(self, secret_path: str) -> dict[str, Any]:
        """
        Fetch secret from Vault KV v2 secrets engine

        Args:
            secret_path: Path to secret (e.g., "secret/enum-sync/databases")

        Returns:
            Dictionary containing secret data

        Raises:
            ValueError: If secret_path is invalid or the secret is missing/empty
            requests.RequestException: If the Vault request fails
        """
        if not secret_path or not isinstance(secret_path, str):
            raise ValueError("secret_path must be a non-empty string")

        if ".." in secret_path or secret_path.startswith("//"):
            raise ValueError(
                f"Invalid secret_path: {secret_path}. "
                "Path traversal attempts are not allowed."
            )

        if not SAFE_SECRET_PATH.match(secret_path):
            raise ValueError(
                f"Invalid secret_path: {secret_path}. "
                "Only alphanumeric characters, slashes, underscores, and hyphens are allowed."
            )

        # KV v2 requires /data/ after the mount point
        if "/data/" not in secret_path:
            parts = secret_path.split("/", 1)
            if len(parts) == 2:
                secret_path = f"{parts[0]}/data/{parts[1]}"
            else:
                secret_path = f"{secret_path}/data"

        url = f"{self.vault_addr}/v1/{secret_path}"

        logger.debug(f"Fetching secret from: {url}")

        response = requests.get(url, headers=self.headers, timeout=self.timeout)

        if response.status_code == 404:
            raise ValueError(f"Secret not found at path: {secret_path}")

        response.raise_for_status()

        secret_data = response.json().get("data", {}).get("data", {})

        if not secret_data:
            raise ValueError(f"No data found in secret at path: {secret_path}")

        return secret_data

    def get_connection_strings(self, secret_path: str = DEFAULT_SECRET_PATH) -> list[str]:
        """
        Fetch the list of target database connection strings.

        The secret must contain a "connection_strings" key holding either a
        list of strings or a single newline-separated string.

        Raises:
            ValueError: If the key is missing or holds no connection strings
        """
        secret_data = self.get_secret(secret_path)

        if "connection_strings" not in secret_data:
            raise ValueError(
                f"Missing required field in secret: connection_strings ({secret_path})"
            )

        value = secret_data["connection_strings"]
        if isinstance(value, str):
            value = value.splitlines()

        connection_strings = [str(item).strip() for item in value if str(item).strip()]
        if not connection_strings:
            raise ValueError(f"No connection strings found in secret at path: {secret_path}")

        logger.info(f"Fetched {len(connection_strings)} connection string(s) from Vault")

        return connection_strings
