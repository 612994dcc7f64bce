from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from functools import lru_cache
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional

from .errors import Conflict
from .models import TaskEntity, UserEntity
from .settings import get_settings

# Fields a caller may change through TaskRepository.update
UPDATABLE_FIELDS = frozenset(
    {"title", "description", "due_date", "priority", "is_completed", "completed_at"}
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def due_order(task: TaskEntity) -> tuple:
    """Sort key used by every backend: due date ascending, then id."""
    return (task["due_date"], task["id"])


# PUBLIC_INTERFACE
class UserRepository(ABC):
    """Abstract repository contract for user storage backends."""

    @abstractmethod
    def create(self, email: str, password_hash: str) -> UserEntity:
        """Create and return a new user. Raises Conflict if the email is taken."""

    @abstractmethod
    def get(self, user_id: int) -> Optional[UserEntity]:
        """Return a user by id, or None if not found."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[UserEntity]:
        """Return a user by exact email, or None if not found."""

    @abstractmethod
    def list(self) -> List[UserEntity]:
        """Return all users ordered by email."""


# PUBLIC_INTERFACE
class TaskRepository(ABC):
    """Abstract repository contract for task storage backends."""

    @abstractmethod
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
        """Create and return a new, incomplete task."""

    @abstractmethod
    def get(self, task_id: int) -> Optional[TaskEntity]:
        """Return a task by id, or None if not found."""

    @abstractmethod
    def update(self, task_id: int, changes: Mapping[str, Any]) -> Optional[TaskEntity]:
        """Apply the given field changes. Return the updated task or None if not found."""

    @abstractmethod
    def delete(self, task_id: int) -> bool:
        """Delete a task by id. Return True if deleted, False if not found."""

    @abstractmethod
    def list_for_assignee(self, assignee_id: int) -> List[TaskEntity]:
        """Return the tasks assigned to a user, ordered by due date then id."""


def _check_fields(changes: Mapping[str, Any]) -> None:
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")


class InMemoryUserRepository(UserRepository):
    """
    Thread-safe in-memory user store suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[int, UserEntity] = {}
        self._next_id = 1

    def create(self, email: str, password_hash: str) -> UserEntity:
        with self._lock:
            if any(u["email"] == email for u in self._items.values()):
                raise Conflict("An account with this email already exists")
            entity: UserEntity = {
                "id": self._next_id,
                "email": email,
                "password_hash": password_hash,
                "created_at": utcnow(),
            }
            self._next_id += 1
            self._items[entity["id"]] = entity
            return entity.copy()

    def get(self, user_id: int) -> Optional[UserEntity]:
        with self._lock:
            item = self._items.get(user_id)
            return None if item is None else item.copy()

    def get_by_email(self, email: str) -> Optional[UserEntity]:
        with self._lock:
            for item in self._items.values():
                if item["email"] == email:
                    return item.copy()
            return None

    def list(self) -> List[UserEntity]:
        with self._lock:
            return [u.copy() for u in sorted(self._items.values(), key=lambda u: u["email"])]


class InMemoryTaskRepository(TaskRepository):
    """
    Thread-safe in-memory task store suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[int, TaskEntity] = {}
        self._next_id = 1

    def _now(self) -> datetime:
        return utcnow()

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

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
        now = self._now()
        entity: TaskEntity = {
            "id": self._allocate_id(),
            "creator_id": creator_id,
            "assignee_id": assignee_id,
            "title": title,
            "description": description,
            "due_date": due_date,
            "priority": priority,
            "is_completed": False,
            "completed_at": None,
            "created_at": now,
            "updated_at": now,
        }
        with self._lock:
            self._items[entity["id"]] = entity
        return entity.copy()

    def get(self, task_id: int) -> Optional[TaskEntity]:
        with self._lock:
            item = self._items.get(task_id)
            return None if item is None else item.copy()

    def update(self, task_id: int, changes: Mapping[str, Any]) -> Optional[TaskEntity]:
        _check_fields(changes)
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                return None

            updated = existing.copy()
            updated.update(changes)  # type: ignore[typeddict-item]
            updated["updated_at"] = self._now()

            self._items[task_id] = updated
            return updated.copy()

    def delete(self, task_id: int) -> bool:
        with self._lock:
            return self._items.pop(task_id, None) is not None

    def list_for_assignee(self, assignee_id: int) -> List[TaskEntity]:
        with self._lock:
            items = [t for t in self._items.values() if t["assignee_id"] == assignee_id]
            # Return copies to avoid external mutation
            return [t.copy() for t in sorted(items, key=due_order)]


@lru_cache(maxsize=None)
def _memory_repositories() -> tuple:
    return InMemoryUserRepository(), InMemoryTaskRepository()


@lru_cache(maxsize=None)
def _sqlite_repositories(db_path: str) -> tuple:
    from .db import SQLiteTaskRepository, SQLiteUserRepository

    return SQLiteUserRepository(db_path), SQLiteTaskRepository(db_path)


# PUBLIC_INTERFACE
def get_user_repository() -> UserRepository:
    """
    Return the process-wide user repository for the configured backend.
    - memory: InMemoryUserRepository
    - sqlite: SQLiteUserRepository
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        return _sqlite_repositories(settings.sqlite_db_path)[0]
    return _memory_repositories()[0]


# PUBLIC_INTERFACE
def get_task_repository() -> TaskRepository:
    """
    Return the process-wide task repository for the configured backend.
    - memory: InMemoryTaskRepository
    - sqlite: SQLiteTaskRepository
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        return _sqlite_repositories(settings.sqlite_db_path)[1]
    return _memory_repositories()[1]
