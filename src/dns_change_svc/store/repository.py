"""Repository layer for change store database operations."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator, Iterator

from ..changes.errors import ConflictError, StorageError
from ..changes.types import (
    ActionStatus,
    ActionType,
    Domain,
    DomainChange,
    Role,
    User,
    UserDomainRole,
)
from .db import DEFAULT_BUSY_TIMEOUT, DEFAULT_DB_PATH, connect, init_db

logger = logging.getLogger(__name__)


# Change rows with their domain and requesting user in one pass
_CHANGE_SELECT = """
    SELECT
        dc.id, dc.domain_id, dc.user_id, dc.action_type, dc.action_status,
        dc.operation, dc.claim_token, dc.claimed_at, dc.created_at, dc.updated_at,
        d.name AS d_name,
        d.provider_zone_id AS d_provider_zone_id,
        d.created_at AS d_created_at,
        d.updated_at AS d_updated_at,
        u.username AS u_username,
        u.email AS u_email,
        u.created_at AS u_created_at,
        u.updated_at AS u_updated_at
    FROM domain_changes dc
    JOIN domains d ON d.id = dc.domain_id
    JOIN users u ON u.id = dc.user_id
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    """Translate sqlite errors into StorageError."""
    try:
        yield
    except sqlite3.Error as e:
        raise StorageError(f"Failed to {action}: {e}") from e


def _row_to_domain(row: sqlite3.Row) -> Domain:
    return Domain(
        id=row["id"],
        name=row["name"],
        provider_zone_id=row["provider_zone_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_change(row: sqlite3.Row) -> DomainChange:
    """Build a DomainChange (with embedded domain and user) from a joined row."""
    return DomainChange(
        id=row["id"],
        domain_id=row["domain_id"],
        user_id=row["user_id"],
        action_type=ActionType(row["action_type"]),
        action_status=ActionStatus(row["action_status"]),
        operation=row["operation"],
        domain=Domain(
            id=row["domain_id"],
            name=row["d_name"],
            provider_zone_id=row["d_provider_zone_id"],
            created_at=row["d_created_at"],
            updated_at=row["d_updated_at"],
        ),
        user=User(
            id=row["user_id"],
            username=row["u_username"],
            email=row["u_email"],
            created_at=row["u_created_at"],
            updated_at=row["u_updated_at"],
        ),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        claim_token=row["claim_token"],
        claimed_at=row["claimed_at"],
    )


class ChangeUnit:
    """Reads and writes bound to one connection inside an open transaction."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get_by_id(self, change_id: int) -> DomainChange | None:
        with _storage_errors(f"load domain change {change_id}"):
            row = self.conn.execute(
                _CHANGE_SELECT + " WHERE dc.id = ?",
                (change_id,),
            ).fetchone()
        return _row_to_change(row) if row else None

    def get_domain(self, domain_id: int) -> Domain | None:
        with _storage_errors(f"load domain {domain_id}"):
            row = self.conn.execute(
                "SELECT * FROM domains WHERE id = ?",
                (domain_id,),
            ).fetchone()
        return _row_to_domain(row) if row else None

    def save(self, change: DomainChange, claim_token: str | None = None) -> DomainChange:
        """Persist the status of a change that is leaving PENDING.

        Only ``action_status`` and ``updated_at`` are written, and the claim
        is cleared. The update is conditional on the row still being pending
        and still carrying ``claim_token`` (None for an unclaimed row).

        Raises:
            ConflictError: If the row is missing, no longer pending, or
                claimed by someone else.
            StorageError: On database failure.
        """
        updated_at = _now()
        with _storage_errors(f"save domain change {change.id}"):
            cursor = self.conn.execute(
                """
                UPDATE domain_changes
                SET action_status = ?, updated_at = ?, claim_token = NULL, claimed_at = NULL
                WHERE id = ? AND action_status = ? AND claim_token IS ?
                """,
                (change.action_status.value, updated_at, change.id,
                 ActionStatus.PENDING.value, claim_token),
            )
        if cursor.rowcount != 1:
            raise ConflictError(f"Domain change {change.id} is no longer pending")
        change.updated_at = updated_at
        change.claim_token = None
        change.claimed_at = None
        return change

    def claim(self, change: DomainChange) -> str:
        """Mark a pending change as being applied and return the claim token.

        The row must still carry the claim seen when ``change`` was loaded,
        so a stale claim can be taken over but a live one cannot.

        Raises:
            ConflictError: If the row is no longer pending or was re-claimed.
            StorageError: On database failure.
        """
        token = uuid.uuid4().hex
        claimed_at = _now()
        with _storage_errors(f"claim domain change {change.id}"):
            cursor = self.conn.execute(
                """
                UPDATE domain_changes
                SET claim_token = ?, claimed_at = ?
                WHERE id = ? AND action_status = ? AND claim_token IS ?
                """,
                (token, claimed_at, change.id, ActionStatus.PENDING.value, change.claim_token),
            )
        if cursor.rowcount != 1:
            raise ConflictError(f"Domain change {change.id} is no longer pending")
        change.claim_token = token
        change.claimed_at = claimed_at
        return token


class ChangeStore:
    """
    Persistence for domains, users, role bindings and change requests.

    Every call opens its own connection, so one store can be shared across
    worker threads. The store keeps no cache.
    """

    def __init__(
        self,
        db_path: str | Path = DEFAULT_DB_PATH,
        busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
    ):
        """Initialize the store and create the schema if needed.

        Args:
            db_path: Path to the SQLite database file.
            busy_timeout: Seconds a writer waits on a locked database.
        """
        self.db_path = Path(db_path)
        self.busy_timeout = busy_timeout
        with _storage_errors("initialize database"):
            init_db(self.db_path, self.busy_timeout).close()

    @contextmanager
    def _connection(self, action: str) -> Generator[sqlite3.Connection, None, None]:
        with _storage_errors(action):
            conn = connect(self.db_path, self.busy_timeout)
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Generator[ChangeUnit, None, None]:
        """Open a write transaction and yield a unit bound to it.

        ``BEGIN IMMEDIATE`` takes the database write lock up front, so
        concurrent transactions are serialized: the second one blocks until
        the first commits or rolls back, then reads the committed state.
        Commits on clean exit, rolls back if the body raises.
        """
        with self._connection("open transaction") as conn:
            with _storage_errors("begin transaction"):
                conn.execute("BEGIN IMMEDIATE")
            try:
                yield ChangeUnit(conn)
            except BaseException:
                if conn.in_transaction:
                    conn.rollback()
                raise
            with _storage_errors("commit transaction"):
                conn.execute("COMMIT")

    # =========================================================================
    # Change Requests
    # =========================================================================

    def list_requested_by(self, user_id: int) -> list[DomainChange]:
        """List every change request submitted by a user.

        Args:
            user_id: The requesting user.

        Returns:
            Changes ordered by id, each with domain and user embedded.
        """
        with self._connection("list requested changes") as conn:
            with _storage_errors(f"list changes requested by user {user_id}"):
                rows = conn.execute(
                    _CHANGE_SELECT + " WHERE dc.user_id = ? ORDER BY dc.id",
                    (user_id,),
                ).fetchall()
        return [_row_to_change(row) for row in rows]

    def list_approvable_by(self, user_id: int) -> list[DomainChange]:
        """List every change request on a domain the user owns.

        Args:
            user_id: The prospective approver.

        Returns:
            Changes ordered by id, each with domain and user embedded.
        """
        with self._connection("list approvable changes") as conn:
            with _storage_errors(f"list changes approvable by user {user_id}"):
                rows = conn.execute(
                    _CHANGE_SELECT
                    + """
                    WHERE dc.domain_id IN (
                        SELECT domain_id FROM user_domains
                        WHERE user_id = ? AND role >= ?
                    )
                    ORDER BY dc.id
                    """,
                    (user_id, int(Role.OWNER)),
                ).fetchall()
        return [_row_to_change(row) for row in rows]

    def get_by_id(self, change_id: int) -> DomainChange | None:
        """Get a change request by id, or None."""
        with self._connection("load domain change") as conn:
            return ChangeUnit(conn).get_by_id(change_id)

    def save(self, change: DomainChange, claim_token: str | None = None) -> DomainChange:
        """Persist a change leaving PENDING in its own transaction."""
        with self.transaction() as unit:
            return unit.save(change, claim_token)

    def release_claim(self, change_id: int, claim_token: str) -> bool:
        """Drop a claim so the change can be decided again.

        Returns:
            False if the claim was no longer held.
        """
        with self._connection("release claim") as conn:
            with _storage_errors(f"release claim on domain change {change_id}"):
                cursor = conn.execute(
                    """
                    UPDATE domain_changes
                    SET claim_token = NULL, claimed_at = NULL
                    WHERE id = ? AND claim_token = ?
                    """,
                    (change_id, claim_token),
                )
        return cursor.rowcount == 1

    def add_change(
        self,
        domain_id: int,
        user_id: int,
        action_type: ActionType,
        operation: str,
    ) -> DomainChange:
        """Insert a new pending change request."""
        now = _now()
        with self._connection("add domain change") as conn:
            with _storage_errors("add domain change"):
                cursor = conn.execute(
                    """
                    INSERT INTO domain_changes
                        (domain_id, user_id, action_type, action_status, operation,
                         created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (domain_id, user_id, action_type.value, ActionStatus.PENDING.value,
                     operation, now, now),
                )
            change_id = cursor.lastrowid
        logger.info(f"Domain change submitted: {change_id} ({action_type.value}) on domain {domain_id}")
        return DomainChange(
            id=change_id,
            domain_id=domain_id,
            user_id=user_id,
            action_type=action_type,
            operation=operation,
            created_at=now,
            updated_at=now,
        )

    # =========================================================================
    # Users, Domains and Roles
    # =========================================================================

    def add_user(self, username: str, email: str = "") -> User:
        now = _now()
        with self._connection("add user") as conn:
            with _storage_errors(f"add user {username}"):
                cursor = conn.execute(
                    "INSERT INTO users (username, email, created_at, updated_at) VALUES (?, ?, ?, ?)",
                    (username, email, now, now),
                )
        return User(id=cursor.lastrowid, username=username, email=email,
                    created_at=now, updated_at=now)

    def get_user_by_username(self, username: str) -> User | None:
        with self._connection("load user") as conn:
            with _storage_errors(f"load user {username}"):
                row = conn.execute(
                    "SELECT * FROM users WHERE username = ?",
                    (username,),
                ).fetchone()
        return _row_to_user(row) if row else None

    def add_domain(self, name: str, provider_zone_id: str | None = None) -> Domain:
        now = _now()
        with self._connection("add domain") as conn:
            with _storage_errors(f"add domain {name}"):
                cursor = conn.execute(
                    """
                    INSERT INTO domains (name, provider_zone_id, created_at, updated_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (name, provider_zone_id, now, now),
                )
        return Domain(id=cursor.lastrowid, name=name, provider_zone_id=provider_zone_id,
                      created_at=now, updated_at=now)

    def get_domain(self, domain_id: int) -> Domain | None:
        with self._connection("load domain") as conn:
            return ChangeUnit(conn).get_domain(domain_id)

    def get_domain_by_name(self, name: str) -> Domain | None:
        with self._connection("load domain") as conn:
            with _storage_errors(f"load domain {name}"):
                row = conn.execute(
                    "SELECT * FROM domains WHERE name = ?",
                    (name,),
                ).fetchone()
        return _row_to_domain(row) if row else None

    def grant_role(self, user_id: int, domain_id: int, role: Role) -> UserDomainRole:
        """Bind a user to a domain, replacing any existing binding."""
        now = _now()
        with self._connection("grant role") as conn:
            with _storage_errors(f"grant role on domain {domain_id} to user {user_id}"):
                conn.execute(
                    """
                    INSERT INTO user_domains (user_id, domain_id, role, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(user_id, domain_id)
                    DO UPDATE SET role = excluded.role, updated_at = excluded.updated_at
                    """,
                    (user_id, domain_id, int(role), now, now),
                )
        return UserDomainRole(user_id=user_id, domain_id=domain_id, role=role)

    def get_role(self, user_id: int, domain_id: int) -> Role | None:
        with self._connection("load role") as conn:
            with _storage_errors(f"load role on domain {domain_id} for user {user_id}"):
                row = conn.execute(
                    "SELECT role FROM user_domains WHERE user_id = ? AND domain_id = ?",
                    (user_id, domain_id),
                ).fetchone()
        return Role(row["role"]) if row else None

    def has_role_at_least(self, user_id: int, domain_id: int, role: Role) -> bool:
        """Point lookup: does the user hold ``role`` or higher on the domain?"""
        with self._connection("check role") as conn:
            with _storage_errors(f"check role on domain {domain_id} for user {user_id}"):
                row = conn.execute(
                    """
                    SELECT 1 FROM user_domains
                    WHERE domain_id = ? AND user_id = ? AND role >= ?
                    LIMIT 1
                    """,
                    (domain_id, user_id, int(role)),
                ).fetchone()
        return row is not None
