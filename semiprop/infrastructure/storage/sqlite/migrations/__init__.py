"""Database migrations module."""

from semiprop.infrastructure.storage.sqlite.migrations.migrator import (
    REQUIRED_TABLES,
    MigrationInfo,
    MigrationResult,
    create_backup,
    discover_migrations,
    get_current_version,
    get_migration_status,
    initialize_database,
    restore_backup,
    run_migrations,
    verify_schema_integrity,
)

__all__ = [
    "REQUIRED_TABLES",
    "MigrationInfo",
    "MigrationResult",
    "create_backup",
    "discover_migrations",
    "get_current_version",
    "get_migration_status",
    "initialize_database",
    "restore_backup",
    "run_migrations",
    "verify_schema_integrity",
]
