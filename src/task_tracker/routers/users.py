from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from ..auth import get_current_user
from ..repositories import UserRepository, get_user_repository
from ..schemas import UserOut

router = APIRouter(
    prefix="/api/v1/users",
    tags=["users"],
    dependencies=[Depends(get_current_user)],
)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[UserOut],
    summary="List Users",
    description="List every account (id and email) ordered by email, for choosing an assignee.",
)
def list_users(users: UserRepository = Depends(get_user_repository)) -> List[UserOut]:
    return [UserOut(id=u["id"], email=u["email"]) for u in users.list()]
