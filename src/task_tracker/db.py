from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Generator, List, Mapping, Optional

from .errors import Conflict
from .logger import logger
from .models import TaskEntity, UserEntity
from .repositories import TaskRepository, UserRepository, _check_fields, utcnow


@dataclass(frozen=True)
class _UserCols:
    table: str = "users"
    id: str = "id"
    email: str = "email"
    password_hash: str = "password_hash"
    created_at: str = "created_at"


@dataclass(frozen=True)
class _TaskCols:
    table: str = "tasks"
    id: str = "id"
    creator_id: str = "creator_id"
    assignee_id: str = "assignee_id"
    title: str = "title"
    description: str = "description"
    due_date: str = "due_date"
    priority: str = "priority"
    is_completed: str = "is_completed"
    completed_at: str = "completed_at"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_U = _UserCols()
_T = _TaskCols()


def _parse_dt(s: Optional[str]) -> Optional[datetime]:
    if s is None:
        return None
    return datetime.fromisoformat(s)


def _to_db(value: Any) -> Any:
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if hasattr(value, "value"):  # enums
        return value.value
    return value


class _SQLiteStore:
    """
    Shared connection handling and schema for the SQLite repositories.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_U.table} (
                    {_U.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_U.email} TEXT NOT NULL UNIQUE,
                    {_U.password_hash} TEXT NOT NULL,
                    {_U.created_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.table} (
                    {_T.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_T.creator_id} INTEGER NOT NULL REFERENCES {_U.table}({_U.id}) ON DELETE CASCADE,
                    {_T.assignee_id} INTEGER NOT NULL REFERENCES {_U.table}({_U.id}) ON DELETE CASCADE,
                    {_T.title} TEXT NOT NULL,
                    {_T.description} TEXT NULL,
                    {_T.due_date} TEXT NOT NULL,
                    {_T.priority} TEXT NOT NULL DEFAULT 'medium',
                    {_T.is_completed} INTEGER NOT NULL DEFAULT 0,
                    {_T.completed_at} TEXT NULL,
                    {_T.created_at} TEXT NOT NULL,
                    {_T.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_T.table}_assignee ON {_T.table}({_T.assignee_id})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_T.table}_due_date ON {_T.table}({_T.due_date})"
            )
        logger.info("SQLite schema ready at %s", self._db_path)


class SQLiteUserRepository(_SQLiteStore, UserRepository):
    """
    SQLite repository implementing the UserRepository interface.
    """

    def _row_to_entity(self, row: sqlite3.Row) -> UserEntity:
        return {
            "id": int(row[_U.id]),
            "email": str(row[_U.email]),
            "password_hash": str(row[_U.password_hash]),
            "created_at": _parse_dt(row[_U.created_at]),  # type: ignore[typeddict-item]
        }

    def create(self, email: str, password_hash: str) -> UserEntity:
        with self._conn() as conn:
            try:
                cur = conn.execute(
                    f"INSERT INTO {_U.table} ({_U.email}, {_U.password_hash}, {_U.created_at}) VALUES (?, ?, ?)",
                    (email, password_hash, utcnow().isoformat()),
                )
            except sqlite3.IntegrityError as e:
                raise Conflict("An account with this email already exists") from e
            row = conn.execute(
                f"SELECT * FROM {_U.table} WHERE {_U.id} = ?", (cur.lastrowid,)
            ).fetchone()
            assert row is not None
            return self._row_to_entity(row)

    def get(self, user_id: int) -> Optional[UserEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_U.table} WHERE {_U.id} = ?", (user_id,)).fetchone()
            return self._row_to_entity(row) if row else None

    def get_by_email(self, email: str) -> Optional[UserEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_U.table} WHERE {_U.email} = ?", (email,)).fetchone()
            return self._row_to_entity(row) if row else None

    def list(self) -> List[UserEntity]:
        with self._conn() as conn:
            rows = conn.execute(f"SELECT * FROM {_U.table} ORDER BY {_U.email} ASC").fetchall()
            return [self._row_to_entity(r) for r in rows]


class SQLiteTaskRepository(_SQLiteStore, TaskRepository):
    """
    SQLite repository implementing the TaskRepository interface.
    """

    def _row_to_entity(self, row: sqlite3.Row) -> TaskEntity:
        return {
            "id": int(row[_T.id]),
            "creator_id": int(row[_T.creator_id]),
            "assignee_id": int(row[_T.assignee_id]),
            "title": str(row[_T.title]),
            "description": row[_T.description],
            "due_date": date.fromisoformat(row[_T.due_date]),
            "priority": str(row[_T.priority]),
            "is_completed": bool(row[_T.is_completed]),
            "completed_at": _parse_dt(row[_T.completed_at]),
            "created_at": _parse_dt(row[_T.created_at]),  # type: ignore[typeddict-item]
            "updated_at": _parse_dt(row[_T.updated_at]),  # type: ignore[typeddict-item]
        }

    def _fetch(self, conn: sqlite3.Connection, task_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT * FROM {_T.table} WHERE {_T.id} = ?", (task_id,)).fetchone()

    def create(
        self,
        *,
        creator_id: int,
        assignee_id: int,
        title: str,
        description: Optional[str],
        due_date: date,
        priority: str,
    ) -> TaskEntity:
        now = utcnow().isoformat()
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_T.table} ({_T.creator_id}, {_T.assignee_id}, {_T.title}, {_T.description},
                    {_T.due_date}, {_T.priority}, {_T.is_completed}, {_T.completed_at},
                    {_T.created_at}, {_T.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, 0, NULL, ?, ?)
                """,
                (creator_id, assignee_id, title, description, _to_db(due_date), _to_db(priority), now, now),
            )
            row = self._fetch(conn, cur.lastrowid)
            assert row is not None
            return self._row_to_entity(row)

    def get(self, task_id: int) -> Optional[TaskEntity]:
        with self._conn() as conn:
            row = self._fetch(conn, task_id)
            return self._row_to_entity(row) if row else None

    def update(self, task_id: int, changes: Mapping[str, Any]) -> Optional[TaskEntity]:
        _check_fields(changes)
        with self._conn() as conn:
            if self._fetch(conn, task_id) is None:
                return None

            # Column names come from the UPDATABLE_FIELDS whitelist
            assignments = [f"{field} = ?" for field in changes]
            params = [_to_db(value) for value in changes.values()]
            assignments.append(f"{_T.updated_at} = ?")
            params.append(utcnow().isoformat())
            conn.execute(
                f"UPDATE {_T.table} SET {', '.join(assignments)} WHERE {_T.id} = ?",
                [*params, task_id],
            )
            row = self._fetch(conn, task_id)
            assert row is not None
            return self._row_to_entity(row)

    def delete(self, task_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_T.table} WHERE {_T.id} = ?", (task_id,))
            return cur.rowcount > 0

    def list_for_assignee(self, assignee_id: int) -> List[TaskEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {_T.table}
                WHERE {_T.assignee_id} = ?
                ORDER BY {_T.due_date} ASC, {_T.id} ASC
                """,
                (assignee_id,),
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]
