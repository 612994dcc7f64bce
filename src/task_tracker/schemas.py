from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .models import Priority, TaskStatus

# Shared type for incoming due_date which can be a date, datetime, or ISO8601 date string
DueDateInput = Union[date, datetime, str]

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 1000


def _parse_due_date(value: Optional[DueDateInput]) -> Optional[date]:
    """
    Internal helper to normalize due_date input into a calendar date.
    - If value is a datetime, its time-of-day is dropped.
    - If value is a string, it must be YYYY-MM-DD.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        s = value.strip()
        if not _ISO_DATE.match(s):
            raise ValueError("Due date must be in YYYY-MM-DD format")
        try:
            return date.fromisoformat(s)
        except ValueError as e:
            raise ValueError("Due date must be a valid calendar date") from e

    raise ValueError("Invalid type for due_date; expected date or YYYY-MM-DD string.")


def _clean_title(v: str) -> str:
    s = v.strip()
    if not (1 <= len(s) <= TITLE_MAX_LENGTH):
        raise ValueError(f"title length must be between 1 and {TITLE_MAX_LENGTH} characters")
    return s


# PUBLIC_INTERFACE
class SignupRequest(BaseModel):
    """
    Credentials for creating a new account.

    The email is normalized by the validator: the domain is lowercased and the
    local part is kept as typed. Lookups normalize the same way.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "alice@example.com", "password": "s3cret-pass"}}
    )

    email: EmailStr = Field(..., description="Email address, unique per account")
    password: str = Field(..., min_length=6, max_length=128, description="Password (6..128 characters)")


# PUBLIC_INTERFACE
class LoginRequest(BaseModel):
    email: EmailStr = Field(..., description="Account email address")
    password: str = Field(..., min_length=1, description="Account password")


# PUBLIC_INTERFACE
class UserOut(BaseModel):
    """Public view of a user. The password hash is never exposed."""

    id: int = Field(..., description="Unique identifier of the user")
    email: str = Field(..., description="Email address")


# PUBLIC_INTERFACE
class AuthResponse(BaseModel):
    """Returned by signup and login."""

    user: UserOut
    token: str = Field(..., description="Signed bearer access token")
    token_type: str = Field(default="bearer")


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task and assigning it by email.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Prepare quarterly report",
                "description": "Numbers for Q3",
                "due_date": "2025-02-01",
                "priority": "high",
                "assignee_email": "bob@example.com",
            }
        }
    )

    title: str = Field(..., description="Short title for the task", min_length=1)
    description: Optional[str] = Field(
        default=None, description="Optional detailed description", max_length=DESCRIPTION_MAX_LENGTH
    )
    due_date: date = Field(..., description="Due date as YYYY-MM-DD")
    priority: Priority = Field(default=Priority.MEDIUM, description="low, medium or high")
    assignee_email: EmailStr = Field(..., description="Email of an existing user responsible for the task")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..255 length.
        """
        return _clean_title(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[date]:
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class TaskReplace(BaseModel):
    """
    Schema for replacing the editable fields of a task (PUT).
    Omitted description/priority fall back to empty/medium.
    """

    title: str = Field(..., min_length=1)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    due_date: date = Field(..., description="Due date as YYYY-MM-DD")
    priority: Priority = Field(default=Priority.MEDIUM)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[date]:
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for partially updating a task (PATCH).
    All fields are optional; only provided fields will be updated.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Prepare quarterly report (final)",
                "priority": "medium",
                "is_completed": True,
            }
        }
    )

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    due_date: Optional[date] = Field(default=None, description="Due date as YYYY-MM-DD")
    priority: Optional[Priority] = Field(default=None)
    is_completed: Optional[bool] = Field(default=None, description="Completion status flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """
        If title is provided, strip whitespace and enforce 1..255 length.
        """
        if v is None:
            return v
        return _clean_title(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[date]:
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class ToggleComplete(BaseModel):
    """Optional body for toggle-complete. Without is_completed the flag is flipped."""

    is_completed: Optional[bool] = Field(default=None)


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 7,
                "creator_id": 1,
                "assignee_id": 2,
                "creator_email": "alice@example.com",
                "assignee_email": "bob@example.com",
                "title": "Prepare quarterly report",
                "description": "Numbers for Q3",
                "due_date": "2025-02-01",
                "priority": "high",
                "is_completed": False,
                "completed_at": None,
                "status": "upcoming",
                "status_label": "Upcoming",
                "created_at": "2025-01-25T10:15:30.123456+00:00",
                "updated_at": "2025-01-25T10:15:30.123456+00:00",
            }
        }
    )

    id: int
    creator_id: int
    assignee_id: int
    creator_email: Optional[str] = None
    assignee_email: Optional[str] = None
    title: str
    description: Optional[str] = None
    due_date: date
    priority: Priority
    is_completed: bool
    completed_at: Optional[datetime] = None
    status: TaskStatus = Field(..., description="Derived from due date, completion and the current date")
    status_label: str = Field(..., description="Human-readable status, e.g. \"Missed/Late\"")
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
class StatsOut(BaseModel):
    total: int = Field(..., description="Tasks assigned to the user")
    done: int = Field(..., description="Completed tasks")
    missed: int = Field(..., description="Incomplete tasks past their due date")
    due_today: int = Field(..., description="Incomplete tasks due today")
