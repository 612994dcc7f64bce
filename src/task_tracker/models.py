from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TaskStatus(str, Enum):
    """Derived classification of a task. Never persisted."""

    DONE = "done"
    MISSED = "missed"
    DUE_TODAY = "due-today"
    UPCOMING = "upcoming"


# PUBLIC_INTERFACE
class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """
    Storage representation of a user.

    Fields:
    - id: Unique integer identifier
    - email: Unique email address, case-sensitive as stored
    - password_hash: Opaque password hash; never leaves the backend
    - created_at: UTC creation timestamp
    """

    id: int
    email: str
    password_hash: str
    created_at: datetime


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    Storage representation of a task, shared by all storage backends.

    Fields:
    - id: Unique integer identifier
    - creator_id: User who authored the task
    - assignee_id: User responsible for completing it (may equal creator_id)
    - title: Short title (1..255 chars, trimmed on input via schemas)
    - description: Optional detailed description (max 1000 chars)
    - due_date: Calendar due date
    - priority: One of low, medium, high
    - is_completed: Completion flag
    - completed_at: Set exactly when is_completed is true
    - created_at / updated_at: UTC timestamps
    """

    id: int
    creator_id: int
    assignee_id: int
    title: str
    description: Optional[str]
    due_date: date
    priority: str
    is_completed: bool
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
