"""
Database initialization and lifecycle.

The Database class owns the bot's single SQLite connection and makes sure the
schema exists before anything reads from it.

Lifecycle:
    1. ``await database.initialize()`` at program startup
    2. hand ``database.connection_manager`` to repositories / the config store
    3. ``await database.shutdown()`` at program end
"""

from __future__ import annotations

from pathlib import Path

from fixembed.database.db_connection import ConnectionManager
from fixembed.database.db_schema import SchemaManager
from fixembed.util.logger import get_logger

logger = get_logger("database")


class Database:
    """Coordinates connection setup, schema creation and shutdown."""

    def __init__(self, db_path: Path):
        """
        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self.connection_manager = ConnectionManager()
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """
        Open the connection and create the schema.

        Unlike most storage failures, a failure here propagates: the bot cannot
        serve traffic without its database, so startup aborts.
        """
        if self._initialized:
            logger.debug("[DATABASE] Already initialized, skipping")
            return

        await self.connection_manager.open(self.db_path)
        try:
            async with self.connection_manager.transaction() as conn:
                await SchemaManager.initialize_schema(conn)
        except Exception:
            await self.connection_manager.close()
            raise

        self._initialized = True
        logger.info("[DATABASE] Database initialized at %s", self.db_path)

    async def shutdown(self) -> None:
        """Close the connection. Safe to call when never initialized."""
        if not self._initialized:
            return

        await self.connection_manager.close()
        self._initialized = False
        logger.info("[DATABASE] Database shutdown complete")
