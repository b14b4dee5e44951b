"""
Database schema migrator with versioned migrations.

Supports:
- Versioned SQL migrations (v001_, v002_, etc.)
- Migration tracking in schema_migrations table
- Validation before/after migrations
- Rollback support via backup
"""

import hashlib
import re
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from semiprop.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

REQUIRED_TABLES = [
    "inventory_items",
    "property_cards",
    "property_card_entries",
    "custodian_slips",
    "custodian_slip_items",
    "property_transfers",
    "transfer_items",
    "transfer_history",
    "audit_log",
    "schema_migrations",
]


@dataclass
class MigrationInfo:
    """Information about a migration file."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        """Parse migration info from filename."""
        # Expected format: v001_name.sql
        match = re.match(r"v(\d+)_(.+)\.sql", path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")

        version = match.group(1)
        name = match.group(2)
        content = path.read_text(encoding="utf-8")
        checksum = hashlib.sha256(content.encode()).hexdigest()[:16]

        return cls(version=version, name=name, path=path, checksum=checksum)


@dataclass
class MigrationResult:
    """Result of a migration operation."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Get dictionary of applied migration versions to checksums."""
    try:
        cursor = await conn.execute(
            "SELECT version, checksum FROM schema_migrations ORDER BY version"
        )
        rows = await cursor.fetchall()
        return {row[0]: row[1] for row in rows}
    except aiosqlite.OperationalError:
        # Table doesn't exist yet
        return {}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    """Get current schema version from database."""
    try:
        cursor = await conn.execute(
            "SELECT version FROM schema_migrations ORDER BY version DESC LIMIT 1"
        )
        row = await cursor.fetchone()
        return row[0] if row else None
    except aiosqlite.OperationalError:
        return None


def discover_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[MigrationInfo]:
    """Discover all migration files in order."""
    migrations = []
    for path in sorted(migrations_dir.glob("v*.sql")):
        try:
            migrations.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return migrations


async def validate_post_migration(
    conn: aiosqlite.Connection,
    migration: MigrationInfo,
) -> list[dict]:
    """Run post-migration validation checks."""
    checks = []

    # Verify migration was recorded
    cursor = await conn.execute(
        "SELECT 1 FROM schema_migrations WHERE version = ?",
        (migration.version,),
    )
    if not await cursor.fetchone():
        checks.append({
            "check": "migration_not_recorded",
            "status": "FAILED",
            "severity": "CRITICAL",
            "message": f"Migration {migration.version} not found in schema_migrations",
        })

    # Verify foreign key integrity
    cursor = await conn.execute("PRAGMA foreign_key_check")
    violations = await cursor.fetchall()
    if violations:
        checks.append({
            "check": "foreign_key_violation",
            "status": "FAILED",
            "severity": "CRITICAL",
            "message": f"Foreign key violations found: {len(violations)}",
        })

    return checks


async def apply_migration(
    conn: aiosqlite.Connection,
    migration: MigrationInfo,
) -> MigrationResult:
    """Apply a single migration."""
    logger.info(
        "applying_migration",
        version=migration.version,
        name=migration.name,
    )

    start_time = time.time()

    try:
        sql = migration.path.read_text(encoding="utf-8")
        await conn.executescript(sql)

        await conn.execute(
            """
            INSERT OR REPLACE INTO schema_migrations (version, name, checksum, execution_time_ms)
            VALUES (?, ?, ?, ?)
            """,
            (
                migration.version,
                migration.name,
                migration.checksum,
                int((time.time() - start_time) * 1000),
            ),
        )

        await conn.commit()

        execution_time = int((time.time() - start_time) * 1000)
        logger.info(
            "migration_applied",
            version=migration.version,
            name=migration.name,
            execution_time_ms=execution_time,
        )

        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=True,
            execution_time_ms=execution_time,
        )

    except aiosqlite.Error as e:
        await conn.rollback()
        execution_time = int((time.time() - start_time) * 1000)
        logger.error(
            "migration_failed",
            version=migration.version,
            name=migration.name,
            error=str(e),
        )
        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=False,
            execution_time_ms=execution_time,
            error=str(e),
        )


def create_backup(db_path: Path) -> Path:
    """Create a backup of the database before migration."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_suffix(f".backup_{timestamp}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    """Restore database from backup."""
    shutil.copy2(backup_path, db_path)
    logger.info("database_restored_from_backup", backup_path=str(backup_path))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Initialize the database with all pending migrations.

    Args:
        db_path: Path to database file (default from settings)
        create_backup_before: Whether to backup before migrations

    Returns:
        List of migration results
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info("initializing_database", db_path=str(db_path))

    backup_path = None
    if create_backup_before and db_path.exists():
        backup_path = create_backup(db_path)

    results = []

    try:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")

            migrations = discover_migrations()
            if not migrations:
                logger.warning("no_migrations_found")
                return results

            applied = await get_applied_migrations(conn)

            for migration in migrations:
                if migration.version in applied:
                    if applied[migration.version] == migration.checksum:
                        logger.debug("migration_already_applied", version=migration.version)
                        continue
                    # An edited migration must never be re-run against live data
                    logger.error(
                        "migration_checksum_changed",
                        version=migration.version,
                        applied=applied[migration.version],
                        current=migration.checksum,
                    )
                    results.append(
                        MigrationResult(
                            version=migration.version,
                            name=migration.name,
                            success=False,
                            execution_time_ms=0,
                            error="checksum mismatch with applied migration",
                        )
                    )
                    break

                result = await apply_migration(conn, migration)
                results.append(result)

                if not result.success:
                    logger.error("migration_failed_stopping", version=migration.version)
                    break

                post_checks = await validate_post_migration(conn, migration)
                if post_checks:
                    logger.error("post_migration_validation_failed", checks=post_checks)
                    break

            cursor = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
            )
            tables = [row[0] for row in await cursor.fetchall()]
            logger.info("database_tables", count=len(tables))

        if backup_path and all(r.success for r in results):
            backup_path.unlink()
            logger.info("backup_cleaned_up")

    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        if backup_path and backup_path.exists():
            restore_backup(db_path, backup_path)
        raise

    return results


# Alias used by the management CLI
run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> dict:
    """
    Get current migration status.

    Returns:
        Dictionary with migration status information
    """
    db_path = db_path or get_settings().storage.db_path

    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": [],
        }

    async with aiosqlite.connect(db_path) as conn:
        current = await get_current_version(conn)
        applied = await get_applied_migrations(conn)
        discovered = discover_migrations()

        pending = [m for m in discovered if m.version not in applied]

        return {
            "exists": True,
            "current_version": current,
            "applied_migrations": list(applied.keys()),
            "pending_migrations": [m.version for m in pending],
            "total_migrations": len(discovered),
        }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """
    Verify database schema integrity.

    Returns:
        List of integrity check results
    """
    db_path = db_path or get_settings().storage.db_path

    checks = []

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA foreign_key_check")
        fk_violations = await cursor.fetchall()
        checks.append({
            "check": "foreign_keys",
            "status": "PASS" if not fk_violations else "FAIL",
            "violations": len(fk_violations),
        })

        cursor = await conn.execute("PRAGMA integrity_check")
        integrity = await cursor.fetchone()
        checks.append({
            "check": "integrity",
            "status": "PASS" if integrity[0] == "ok" else "FAIL",
            "result": integrity[0],
        })

        cursor = await conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        )
        existing_tables = {row[0] for row in await cursor.fetchall()}

        missing = [t for t in REQUIRED_TABLES if t not in existing_tables]
        checks.append({
            "check": "required_tables",
            "status": "PASS" if not missing else "FAIL",
            "missing": missing,
        })

        # Assigned <=> custodian present
        if "inventory_items" in existing_tables:
            cursor = await conn.execute(
                """
                SELECT property_number FROM inventory_items
                WHERE (assignment_status = 'Assigned'
                       AND (custodian IS NULL OR TRIM(custodian) = ''))
                   OR (COALESCE(assignment_status, '') <> 'Assigned'
                       AND custodian IS NOT NULL AND TRIM(custodian) <> ''
                       AND assignment_status IS NOT NULL)
                """
            )
            inconsistent = [row[0] for row in await cursor.fetchall()]
            checks.append({
                "check": "assignment_consistency",
                "status": "PASS" if not inconsistent else "FAIL",
                "items": inconsistent,
            })

    return checks
