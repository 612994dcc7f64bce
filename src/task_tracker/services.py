from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi import Depends

from .errors import NotAuthorized, NotFound, ValidationFailed
from .filtering import TaskQuery, apply_query
from .logger import logger
from .models import TaskEntity
from .permissions import can_delete, can_read, can_toggle_complete, can_update_fields
from .repositories import (
    TaskRepository,
    UserRepository,
    get_task_repository,
    get_user_repository,
    utcnow,
)
from .schemas import TaskCreate, TaskReplace, TaskUpdate
from .status import TaskStats, aggregate, classify_task, completion_timestamp, status_label


# PUBLIC_INTERFACE
def get_today() -> date:
    """Current calendar date in UTC. Overridable as a FastAPI dependency."""
    return datetime.now(timezone.utc).date()


class TaskService:
    """
    Task operations for an acting user.

    Every mutating operation looks the task up first (NotFound), then asks the
    permission predicates (NotAuthorized) before touching storage.
    """

    def __init__(
        self,
        tasks: TaskRepository,
        users: UserRepository,
        today: date,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._tasks = tasks
        self._users = users
        self.today = today
        self._now = now

    def _load(self, task_id: int) -> TaskEntity:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFound("Task not found")
        return task

    def _deny(self, user_id: int, task_id: int, action: str, message: str) -> NotAuthorized:
        logger.warning("User %s denied %s on task %s", user_id, action, task_id)
        return NotAuthorized(message)

    def present(self, task: TaskEntity) -> Dict[str, Any]:
        """Task record enriched with the participants' emails and the derived status."""
        creator = self._users.get(task["creator_id"])
        assignee = self._users.get(task["assignee_id"])
        status = classify_task(task, self.today)
        return {
            **task,
            "creator_email": creator["email"] if creator else None,
            "assignee_email": assignee["email"] if assignee else None,
            "status": status,
            "status_label": status_label(status),
        }

    def list_tasks(self, user_id: int, query: Optional[TaskQuery] = None) -> Tuple[List[TaskEntity], int]:
        """Tasks assigned to the user, filtered and paginated; returns (page, total matching)."""
        q = query or TaskQuery()
        return apply_query(self._tasks.list_for_assignee(user_id), q, today=self.today)

    def stats(self, user_id: int) -> TaskStats:
        return aggregate(self._tasks.list_for_assignee(user_id), self.today)

    def get_task(self, user_id: int, task_id: int) -> TaskEntity:
        task = self._load(task_id)
        if not can_read(task, user_id):
            raise self._deny(user_id, task_id, "read", "Unauthorized access to task")
        return task

    def create_task(self, user_id: int, payload: TaskCreate) -> TaskEntity:
        assignee = self._users.get_by_email(payload.assignee_email)
        if assignee is None:
            raise NotFound("Assignee email not found. User must have an account in the system.")
        if payload.due_date < self.today:
            raise ValidationFailed("Due date cannot be in the past")

        task = self._tasks.create(
            creator_id=user_id,
            assignee_id=assignee["id"],
            title=payload.title,
            description=payload.description,
            due_date=payload.due_date,
            priority=payload.priority.value,
        )
        logger.info("Task %s created by user %s for user %s", task["id"], user_id, assignee["id"])
        return task

    def replace_task(self, user_id: int, task_id: int, payload: TaskReplace) -> TaskEntity:
        task = self._load(task_id)
        if not can_update_fields(task, user_id):
            raise self._deny(user_id, task_id, "update", "You can only edit tasks assigned to you")

        changes = {
            "title": payload.title,
            "description": payload.description,
            "due_date": payload.due_date,
            "priority": payload.priority.value,
        }
        return self._save(task_id, changes)

    def update_task(self, user_id: int, task_id: int, payload: TaskUpdate) -> TaskEntity:
        task = self._load(task_id)
        if not can_update_fields(task, user_id):
            raise self._deny(user_id, task_id, "update", "You can only edit tasks assigned to you")

        provided = payload.model_fields_set
        changes: Dict[str, Any] = {}
        for field in ("title", "due_date", "priority", "is_completed"):
            if field in provided and getattr(payload, field) is None:
                raise ValidationFailed(f"{field} cannot be null")
        for field in ("title", "due_date", "priority"):
            value = getattr(payload, field)
            if value is not None:
                changes[field] = value.value if field == "priority" else value
        if "description" in provided:
            # Respect explicit nulling of description
            changes["description"] = payload.description
        if payload.is_completed is not None:
            changes.update(self._completion_changes(task, payload.is_completed))
        return self._save(task_id, changes)

    def toggle_complete(self, user_id: int, task_id: int, is_completed: Optional[bool] = None) -> TaskEntity:
        """Set the completion flag, or flip it when no value is given."""
        task = self._load(task_id)
        if not can_toggle_complete(task, user_id):
            raise self._deny(user_id, task_id, "toggle", "You can only complete tasks assigned to you")

        target = (not task["is_completed"]) if is_completed is None else is_completed
        updated = self._save(task_id, self._completion_changes(task, target))
        logger.info("Task %s marked %s by user %s", task_id, "complete" if target else "incomplete", user_id)
        return updated

    def delete_task(self, user_id: int, task_id: int) -> None:
        task = self._load(task_id)
        if not can_delete(task, user_id):
            raise self._deny(
                user_id, task_id, "delete", "You can only delete tasks assigned to you or created by you"
            )
        if not self._tasks.delete(task_id):
            raise NotFound("Task not found")
        logger.info("Task %s deleted by user %s", task_id, user_id)

    def _completion_changes(self, task: TaskEntity, is_completed: bool) -> Dict[str, Any]:
        return {
            "is_completed": is_completed,
            "completed_at": completion_timestamp(
                task["is_completed"], is_completed, task["completed_at"], self._now()
            ),
        }

    def _save(self, task_id: int, changes: Dict[str, Any]) -> TaskEntity:
        updated = self._tasks.update(task_id, changes)
        if updated is None:
            # Deleted between load and update
            raise NotFound("Task not found")
        return updated


# PUBLIC_INTERFACE
def get_task_service(
    tasks: TaskRepository = Depends(get_task_repository),
    users: UserRepository = Depends(get_user_repository),
    today: date = Depends(get_today),
) -> TaskService:
    """FastAPI dependency building a TaskService for the current request."""
    return TaskService(tasks, users, today)
