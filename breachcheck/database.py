"""SQLite storage of hashed compromised e-mail addresses."""

from __future__ import annotations

import hashlib
import logging
import os
import sqlite3
import threading
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS compromised_emails (
    id INTEGER PRIMARY KEY,
    email_hash VARCHAR(64) UNIQUE,
    breach_date TIMESTAMP,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA cache_size=1000",
    "PRAGMA foreign_keys=ON",
)

SEED_EMAILS = (
    "test@example.com",
    "breached@example.com",
    "leaked@example.com",
    "pwned@example.com",
    "compromised@example.com",
)


def init_database(db_path: str | os.PathLike[str]) -> sqlite3.Connection:
    """Open the database at ``db_path`` and make sure the schema exists."""
    connection = sqlite3.connect(os.fspath(db_path), check_same_thread=False)
    try:
        for pragma in _PRAGMAS:
            connection.execute(pragma)
        with connection:
            connection.execute(_CREATE_TABLE)
    except sqlite3.Error:
        connection.close()
        raise
    logger.info("Database initialized successfully with WAL mode")
    return connection


class EmailService:
    """Queries and updates the table of compromised e-mail hashes."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._lock = threading.Lock()

    def is_email_compromised(self, email_hash: str) -> bool:
        """Return True if ``email_hash`` is recorded as compromised."""
        with self._lock:
            (count,) = self._connection.execute(
                "SELECT COUNT(*) FROM compromised_emails WHERE email_hash = ?",
                (email_hash,),
            ).fetchone()
        return count > 0

    def add_compromised_email(self, email_hash: str, breach_date: datetime) -> None:
        """Record ``email_hash``; an existing hash is left unchanged."""
        with self._lock, self._connection:
            self._connection.execute(
                "INSERT OR IGNORE INTO compromised_emails (email_hash, breach_date) VALUES (?, ?)",
                (email_hash, breach_date.isoformat(sep=" ")),
            )

    def compromised_email_count(self) -> int:
        """Return the number of recorded hashes."""
        with self._lock:
            (count,) = self._connection.execute(
                "SELECT COUNT(*) FROM compromised_emails"
            ).fetchone()
        return count


def seed_database(service: EmailService) -> None:
    """Insert the sample addresses with a breach date 30 days ago."""
    for email in SEED_EMAILS:
        email_hash = hashlib.sha256(email.encode("utf-8")).hexdigest()
        breach_date = datetime.now() - timedelta(days=30)
        try:
            service.add_compromised_email(email_hash, breach_date)
        except sqlite3.Error as exc:
            raise sqlite3.DatabaseError(f"failed to add {email}: {exc}") from exc