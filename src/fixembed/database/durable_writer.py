"""
Write-behind replication of in-memory state to SQLite.

The in-memory caches are what the bot serves requests from; SQLite is a
best-effort copy that lets the caches be rebuilt after a restart. Every durable
write goes through :class:`DurableWriter`, which applies one retry policy:

* ``database is locked`` / ``database is busy``: retried up to ``attempts``
  times with a fixed ``delay`` between attempts;
* any other error: abandoned immediately.

Failures are logged and reported as ``False``; they are never raised into the
event handler that triggered the write, and the cache is never rolled back.

Consistency windows
-------------------
* Channel activation: the cache changes first, so for the duration of the
  write (at most ``attempts * delay`` plus I/O) the store may lag the cache.
  If the write fails the store keeps the old value until the next toggle.
* Guild settings: the caller holds the settings lock across the write and
  updates the cache only after it, so no reader sees a value before the store
  has had its chance to accept it. If the write fails the cache is still
  updated; the store keeps the old row until the next successful write.
"""

from __future__ import annotations

import asyncio
import sqlite3
from typing import Awaitable, Callable

import aiosqlite

from fixembed.database.db_connection import ConnectionManager
from fixembed.util.logger import get_logger

logger = get_logger("durable_writer")

DEFAULT_ATTEMPTS = 5
DEFAULT_DELAY_SECONDS = 0.1

WriteOperation = Callable[[aiosqlite.Connection], Awaitable[None]]


def is_busy_error(exc: BaseException) -> bool:
    """True for SQLite errors that mean another writer currently holds the database."""
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    message = str(exc).lower()
    return "database is locked" in message or "database is busy" in message or "database table is locked" in message


class DurableWriter:
    """
    Runs write operations in a transaction with the retry-on-busy policy.

    Parameters
    ----------
    connection_manager:
        Provides serialised transactions on the shared connection.
    attempts:
        Total attempts while the database reports busy/locked.
    delay:
        Seconds slept between attempts.
    sleep:
        Injectable sleep coroutine for tests.
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        attempts: int = DEFAULT_ATTEMPTS,
        delay: float = DEFAULT_DELAY_SECONDS,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._connection_manager = connection_manager
        self.attempts = max(1, attempts)
        self.delay = delay
        self._sleep = sleep

    async def write(self, description: str, operation: WriteOperation) -> bool:
        """
        Run ``operation`` inside a transaction, retrying while the database is busy.

        Args:
            description: Short human readable label used in log lines.
            operation: Coroutine function receiving the open connection.

        Returns:
            True once a transaction committed, False if the write was abandoned.
        """
        for attempt in range(1, self.attempts + 1):
            try:
                async with self._connection_manager.transaction() as conn:
                    await operation(conn)
            except Exception as exc:
                if not is_busy_error(exc):
                    logger.error("[DURABLE WRITER] %s failed: %s", description, exc)
                    return False
                if attempt == self.attempts:
                    logger.error(
                        "[DURABLE WRITER] %s failed: database still locked after %d attempts",
                        description, self.attempts,
                    )
                    return False
                logger.debug(
                    "[DURABLE WRITER] %s hit a locked database (attempt %d/%d), retrying in %.2fs",
                    description, attempt, self.attempts, self.delay,
                )
                await self._sleep(self.delay)
            else:
                if attempt > 1:
                    logger.info("[DURABLE WRITER] %s succeeded on attempt %d", description, attempt)
                return True
        return False
