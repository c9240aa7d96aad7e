"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """AYUSH Health server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default: account tokens travel in tool arguments, so remote
    # access should sit behind a TLS-terminating proxy.
    ayush_host: str = "127.0.0.1"
    ayush_port: int = 8001
    ayush_log_level: str = "info"
    ayush_allow_insecure_bind: bool = False

    # Storage (per-user key-value data bank)
    db_path: str = "~/.ayush/health.db"

    # Encryption. Comma-separated Fernet keys; the first one encrypts,
    # all of them decrypt (key rotation).
    encryption_key: str = ""

    # Accounts
    session_ttl_hours: int = 24 * 7

    # Practitioner directory YAML (empty = packaged sample directory)
    practitioner_directory_path: str = ""


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
