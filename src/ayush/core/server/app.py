"""AYUSH Personal Health MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from ayush.core.audit.logger import AuditLogger
from ayush.core.auth.accounts import AccountService
from ayush.core.config.settings import get_settings
from ayush.core.storage.database import HealthDatabase
from ayush.core.storage.encryption import BlobEncryptor
from ayush.core.storage.kv_store import KeyValueStore
from ayush.core.storage.repository import AssessmentRepository
from ayush.domains.health.domain_logic.practitioner_directory import (
    PractitionerDirectory,
    load_practitioner_directory,
)
from ayush.domains.health.tools.account_tools import register_account_tools
from ayush.domains.health.tools.assessment_tools import register_assessment_tools
from ayush.domains.health.tools.data_management_tools import register_data_management_tools
from ayush.domains.health.tools.practitioner_tools import register_practitioner_tools
from ayush.domains.health.tools.record_tools import register_record_tools
from ayush.domains.health.tools.services import ToolServices

logger = logging.getLogger(__name__)

SERVER_NAME = "AYUSH Personal Health"
SERVER_VERSION = "0.1.0"


def create_app(
    *,
    database_override: HealthDatabase | None = None,
    encryptor_override: BlobEncryptor | None = None,
    directory_override: PractitionerDirectory | None = None,
) -> FastMCP:
    """Create and configure the AYUSH Health MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Opens the SQLite data bank and the encrypted key-value store
    3. Creates the account service and audit logger
    4. Loads the practitioner directory
    5. Registers all tools
    """
    settings = get_settings()

    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "AYUSH Personal Health server. Computes a dosha (constitution) profile "
            "from a health questionnaire, heuristic risk predictions and a lifestyle "
            "risk score from a lifestyle questionnaire, and stores each user's "
            "assessments with full history. Sign in first; every data tool takes "
            "the returned access_token."
        ),
    )

    # --- Encryption ---
    if encryptor_override is not None:
        encryptor = encryptor_override
    elif settings.encryption_key:
        encryptor = BlobEncryptor(settings.encryption_key)
    else:
        encryptor = BlobEncryptor(BlobEncryptor.generate_key())

    # --- Storage (per-user data bank) ---
    if database_override is not None:
        database = database_override
    elif settings.encryption_key:
        database = HealthDatabase(settings.db_path)
    else:
        # Ephemeral key implies ephemeral storage
        logger.warning(
            "No ENCRYPTION_KEY configured; using an ephemeral key and in-memory "
            "storage. Data will be lost on restart."
        )
        database = HealthDatabase(":memory:")
    database.initialize()
    logger.info(
        "Data bank ready: %s (schema v%d)", database.db_path, database.get_schema_version()
    )

    store = KeyValueStore(database, encryptor)
    repository = AssessmentRepository(store)
    accounts = AccountService(database, session_ttl_hours=settings.session_ttl_hours)
    expired = accounts.purge_expired_sessions()
    if expired:
        logger.info("Purged %d expired sessions", expired)

    services = ToolServices(
        accounts=accounts,
        repository=repository,
        audit_logger=AuditLogger(database),
    )

    # --- Practitioner directory ---
    if directory_override is not None:
        directory = directory_override
    else:
        directory = load_practitioner_directory(settings.practitioner_directory_path or None)

    # --- Register tools ---
    @server.tool
    async def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "schema_version": database.get_schema_version(),
            "stored_keys": store.count(),
            "registered_users": accounts.count_users(),
            "practitioners_listed": len(directory.practitioners),
        }

    register_account_tools(server, services)
    register_record_tools(server, services)
    register_assessment_tools(server, services)
    register_practitioner_tools(server, services, directory)
    register_data_management_tools(server, services)
    logger.info("Account, record, assessment, practitioner and data tools registered")

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
