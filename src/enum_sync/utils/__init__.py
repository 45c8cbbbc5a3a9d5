"""
Utility modules for enum-sync

Provides:
- logging: structured logging and the hierarchical SyncLogger sink
- tracing: OpenTelemetry spans
- sql_safety: identifier validation and quoting
- vault_client: HashiCorp Vault integration for connection strings
"""

__all__ = ["logging", "tracing", "sql_safety", "vault_client"]
