# resumekit/models/schema.py
"""
Database schema definition for SQLite resume persistence.

Provides DDL for tables, indexes, and schema initialization.
"""

import logging

import aiosqlite

logger = logging.getLogger(__name__)

# Schema version for future migrations
SCHEMA_VERSION = 2

# Resume content is stored as a JSON document (ResumeData.model_dump)
RESUMES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS resumes (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    template_id TEXT NOT NULL CHECK(template_id IN ('classic', 'modern', 'minimal')),
    accent_color TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    is_public INTEGER NOT NULL DEFAULT 0,
    public_slug TEXT UNIQUE
)
"""

# Index for per-user listing (newest first)
RESUMES_INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS idx_resumes_user_updated ON resumes(user_id, updated_at)"
)


async def _get_schema_version(db: aiosqlite.Connection) -> int:
    """
    Get current schema version from database.

    Args:
        db: Database connection

    Returns:
        Schema version (0 if no version table exists)
    """
    try:
        cursor = await db.execute("SELECT version FROM schema_version LIMIT 1")
        row = await cursor.fetchone()
        return row[0] if row else 0
    except aiosqlite.OperationalError:
        return 0


async def _set_schema_version(db: aiosqlite.Connection, version: int) -> None:
    await db.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER)")
    await db.execute("DELETE FROM schema_version")
    await db.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))


async def _migrate_v1_to_v2(db: aiosqlite.Connection) -> None:
    """
    Migrate schema from v1 to v2.

    Changes:
        - Add is_public and public_slug columns (public sharing links)
    """
    logger.info("Migrating schema from v1 to v2")

    cursor = await db.execute("PRAGMA table_info(resumes)")
    columns = await cursor.fetchall()
    column_names = [col[1] for col in columns]

    if "is_public" not in column_names:
        await db.execute("ALTER TABLE resumes ADD COLUMN is_public INTEGER NOT NULL DEFAULT 0")
        logger.info("Added is_public column to resumes table")

    if "public_slug" not in column_names:
        # ALTER TABLE cannot add a UNIQUE column; enforce it with an index instead
        await db.execute("ALTER TABLE resumes ADD COLUMN public_slug TEXT")
        await db.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS idx_resumes_public_slug ON resumes(public_slug)"
        )
        logger.info("Added public_slug column to resumes table")


async def init_db(db_path: str) -> None:
    """
    Initialize database schema with WAL mode and optimal settings.

    Handles schema migrations automatically.

    Args:
        db_path: Path to SQLite database file

    Settings:
        - WAL mode: Concurrent reads + writes
        - synchronous=NORMAL: Good durability/performance balance
        - busy_timeout=5000ms: Retry on SQLITE_BUSY
    """
    async with aiosqlite.connect(db_path) as db:
        await db.execute("PRAGMA journal_mode=WAL")
        await db.execute("PRAGMA synchronous=NORMAL")
        await db.execute("PRAGMA busy_timeout=5000")

        await db.execute(RESUMES_TABLE_SQL)
        await db.execute(RESUMES_INDEX_SQL)

        current_version = await _get_schema_version(db)

        if current_version < SCHEMA_VERSION:
            logger.info(
                f"Schema migration needed: v{current_version} -> v{SCHEMA_VERSION}"
            )

            if current_version < 1:
                # New database, set version directly
                await _set_schema_version(db, SCHEMA_VERSION)
                logger.info(f"New database initialized at v{SCHEMA_VERSION}")
            elif current_version == 1:
                await _migrate_v1_to_v2(db)
                await _set_schema_version(db, 2)
                logger.info("Migration to v2 complete")

        await db.commit()

        logger.info(f"Initialized database at {db_path} (schema v{SCHEMA_VERSION})")
