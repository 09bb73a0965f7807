from __future__ import annotations

import sqlite3
from datetime import timedelta
from sqlite3 import Connection

from ..db import transaction
from ..errors import DuplicateEmail, NotFound, StorageError
from ..models import User, UserCandidate, ts_from_db, ts_to_db, utc_now

DDL = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT UNIQUE NOT NULL,
    age INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

_COLUMNS = "id, name, email, age, created_at, updated_at"
_TICK = timedelta(microseconds=1)


def _is_unique_violation(e: sqlite3.Error) -> bool:
    if not isinstance(e, sqlite3.IntegrityError):
        return False
    errname = getattr(e, "sqlite_errorname", None)  # Python 3.11+
    if errname is not None:
        # email is the only UNIQUE column; the primary key reports its own code
        return errname == "SQLITE_CONSTRAINT_UNIQUE"
    return "users.email" in str(e)


def _write_error(e: sqlite3.Error, fallback: str) -> StorageError:
    if _is_unique_violation(e):
        return DuplicateEmail()
    return StorageError(fallback)


def row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        age=row["age"],
        created_at=ts_from_db(row["created_at"]),
        updated_at=ts_from_db(row["updated_at"]),
    )


def ensure_schema(conn: Connection):
    try:
        conn.execute(DDL)
    except sqlite3.Error as e:
        raise StorageError("failed to create users table") from e


def create(conn: Connection, candidate: UserCandidate) -> User:
    now = utc_now()
    stamp = ts_to_db(now)
    try:
        cur = conn.execute(
            "INSERT INTO users(name, email, age, created_at, updated_at) VALUES(?, ?, ?, ?, ?)",
            (candidate.name, candidate.email, candidate.age, stamp, stamp),
        )
    except sqlite3.Error as e:
        raise _write_error(e, "failed to create user") from e
    # round-trip through the stored text so the result equals a later read
    created = ts_from_db(stamp)
    return User(
        id=cur.lastrowid,
        name=candidate.name,
        email=candidate.email,
        age=candidate.age,
        created_at=created,
        updated_at=created,
    )


def get_by_id(conn: Connection, user_id: int) -> User:
    try:
        row = conn.execute(f"SELECT {_COLUMNS} FROM users WHERE id=?", (user_id,)).fetchone()
    except sqlite3.Error as e:
        raise StorageError("failed to read user") from e
    if row is None:
        raise NotFound()
    return row_to_user(row)


def list_all(conn: Connection) -> list[User]:
    try:
        rows = conn.execute(
            f"SELECT {_COLUMNS} FROM users ORDER BY created_at DESC, id DESC"
        ).fetchall()
    except sqlite3.Error as e:
        raise StorageError("failed to list users") from e
    return [row_to_user(r) for r in rows]


def update(conn: Connection, user_id: int, candidate: UserCandidate) -> User:
    """Overwrite name/email/age and refresh updated_at.

    Write and re-read share one transaction, so a concurrent delete cannot
    slip in between them. updated_at always moves forward, even when the
    clock has not ticked since the previous write.
    """
    try:
        with transaction(conn):
            prev = conn.execute("SELECT updated_at FROM users WHERE id=?", (user_id,)).fetchone()
            now = utc_now()
            if prev is not None:
                now = max(now, ts_from_db(prev["updated_at"]) + _TICK)
            stamp = ts_to_db(now)
            cur = conn.execute(
                "UPDATE users SET name=?, email=?, age=?, updated_at=? WHERE id=?",
                (candidate.name, candidate.email, candidate.age, stamp, user_id),
            )
            if cur.rowcount == 0:
                raise NotFound()
            row = conn.execute(f"SELECT {_COLUMNS} FROM users WHERE id=?", (user_id,)).fetchone()
    except sqlite3.Error as e:
        raise _write_error(e, "failed to update user") from e
    return row_to_user(row)


def delete(conn: Connection, user_id: int):
    try:
        cur = conn.execute("DELETE FROM users WHERE id=?", (user_id,))
    except sqlite3.Error as e:
        raise StorageError("failed to delete user") from e
    if cur.rowcount == 0:
        raise NotFound()
