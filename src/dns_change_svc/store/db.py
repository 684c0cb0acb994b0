"""SQLite database connection and schema initialization for the change store."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

# Default database path
DEFAULT_DB_PATH = "domain_changes.db"

# Seconds a writer waits on a locked database before giving up
DEFAULT_BUSY_TIMEOUT = 30.0

# SQL schema for the change store
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY,
    username TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL DEFAULT '',
    created_at TEXT,
    updated_at TEXT
);

-- DNS zones managed by the service
CREATE TABLE IF NOT EXISTS domains (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    provider_zone_id TEXT,
    created_at TEXT,
    updated_at TEXT
);

-- Role bindings; role is an integer rank (1 reader, 2 writer, 3 owner)
CREATE TABLE IF NOT EXISTS user_domains (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL REFERENCES users(id),
    domain_id INTEGER NOT NULL REFERENCES domains(id),
    role INTEGER NOT NULL CHECK (role IN (1, 2, 3)),
    created_at TEXT,
    updated_at TEXT,
    UNIQUE(user_id, domain_id)
);

-- Proposed DNS mutations awaiting an owner's decision
CREATE TABLE IF NOT EXISTS domain_changes (
    id INTEGER PRIMARY KEY,
    domain_id INTEGER NOT NULL REFERENCES domains(id),
    user_id INTEGER NOT NULL REFERENCES users(id),
    action_type TEXT NOT NULL CHECK (action_type IN ('submit', 'edit_dns')),
    action_status TEXT NOT NULL DEFAULT 'pending'
        CHECK (action_status IN ('pending', 'approved', 'rejected')),
    operation TEXT NOT NULL,
    -- set while an accepted change is being applied at the DNS provider
    claim_token TEXT,
    claimed_at TEXT,
    created_at TEXT,
    updated_at TEXT
);

-- operation is written once
CREATE TRIGGER IF NOT EXISTS trg_domain_changes_operation_immutable
BEFORE UPDATE OF operation ON domain_changes
WHEN NEW.operation IS NOT OLD.operation
BEGIN
    SELECT RAISE(ABORT, 'domain_changes.operation is immutable');
END;

-- approved and rejected are terminal
CREATE TRIGGER IF NOT EXISTS trg_domain_changes_status_terminal
BEFORE UPDATE OF action_status ON domain_changes
WHEN OLD.action_status <> 'pending' AND NEW.action_status IS NOT OLD.action_status
BEGIN
    SELECT RAISE(ABORT, 'domain_changes.action_status is terminal');
END;

CREATE INDEX IF NOT EXISTS idx_user_domains_user ON user_domains(user_id, role);
CREATE INDEX IF NOT EXISTS idx_domain_changes_user ON domain_changes(user_id);
CREATE INDEX IF NOT EXISTS idx_domain_changes_domain ON domain_changes(domain_id);
"""


def connect(
    db_path: str | Path = DEFAULT_DB_PATH,
    busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
) -> sqlite3.Connection:
    """Open a connection in autocommit mode.

    Transactions are opened explicitly (``BEGIN IMMEDIATE``) by callers that
    need one.

    Args:
        db_path: Path to the SQLite database file.
        busy_timeout: Seconds to wait on a locked database.

    Returns:
        A connection to the database.
    """
    conn = sqlite3.connect(str(db_path), timeout=busy_timeout, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(
    db_path: str | Path = DEFAULT_DB_PATH,
    busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
) -> sqlite3.Connection:
    """Initialize the database and create tables if they don't exist.

    Args:
        db_path: Path to the SQLite database file.
        busy_timeout: Seconds to wait on a locked database.

    Returns:
        A connection to the database.
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = connect(db_path, busy_timeout)
    conn.execute("PRAGMA journal_mode = WAL")
    conn.executescript(SCHEMA_SQL)

    return conn


@contextmanager
def get_db(
    db_path: str | Path = DEFAULT_DB_PATH,
    busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
) -> Generator[sqlite3.Connection, None, None]:
    """Get a database connection as a context manager.

    Args:
        db_path: Path to the SQLite database file.
        busy_timeout: Seconds to wait on a locked database.

    Yields:
        A connection to the database.
    """
    conn = connect(db_path, busy_timeout)
    try:
        yield conn
    finally:
        conn.close()
