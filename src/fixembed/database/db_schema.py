"""
Database schema initialization and migration management.

Creates the two tables the bot persists to and brings databases written by
older releases up to date. Older files may lack the ``mention_users`` and
``delete_original`` columns, which are added with their defaults.
"""

import sqlite3

import aiosqlite

from fixembed.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 2

# Columns added after the first release: (table, column, definition)
_COLUMN_MIGRATIONS = [
    ("guild_settings", "mention_users", "BOOLEAN DEFAULT 1"),
    ("guild_settings", "delete_original", "BOOLEAN DEFAULT 1"),
]


class SchemaManager:
    """Creates tables and applies column migrations."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create or update all database tables.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._migrate_columns(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized (version %d)", SCHEMA_VERSION)

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS channel_states (
                channel_id INTEGER PRIMARY KEY,
                state BOOLEAN
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS guild_settings (
                guild_id INTEGER PRIMARY KEY,
                enabled_services TEXT,
                mention_users BOOLEAN DEFAULT 1,
                delete_original BOOLEAN DEFAULT 1
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _migrate_columns(db: aiosqlite.Connection) -> None:
        for table, column, definition in _COLUMN_MIGRATIONS:
            async with db.execute(f"PRAGMA table_info({table})") as cursor:
                existing = {row[1] for row in await cursor.fetchall()}
            if column in existing:
                continue
            try:
                await db.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")
                logger.info("[SCHEMA] Added %s column to %s", column, table)
            except sqlite3.OperationalError as exc:
                # Another process may have migrated between the check and the ALTER
                if "duplicate column" not in str(exc).lower():
                    raise

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
