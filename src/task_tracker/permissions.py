from __future__ import annotations

from typing import Mapping


# PUBLIC_INTERFACE
def can_read(task: Mapping, user_id: int) -> bool:
    """Only the assignee may view a task."""
    return user_id == task["assignee_id"]


# PUBLIC_INTERFACE
def can_update_fields(task: Mapping, user_id: int) -> bool:
    """Only the assignee may edit a task; the creator loses that right once it exists."""
    return user_id == task["assignee_id"]


# PUBLIC_INTERFACE
def can_toggle_complete(task: Mapping, user_id: int) -> bool:
    return user_id == task["assignee_id"]


# PUBLIC_INTERFACE
def can_delete(task: Mapping, user_id: int) -> bool:
    """Either the assignee or the creator may delete a task."""
    return user_id == task["assignee_id"] or user_id == task["creator_id"]
