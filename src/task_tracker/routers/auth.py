from __future__ import annotations

from fastapi import APIRouter, Depends, status

from .. import auth
from ..models import UserEntity
from ..repositories import UserRepository, get_user_repository
from ..schemas import AuthResponse, LoginRequest, SignupRequest, UserOut

router = APIRouter(
    prefix="/api/v1/auth",
    tags=["auth"],
)


def _user_out(user: UserEntity) -> UserOut:
    return UserOut(id=user["id"], email=user["email"])


# PUBLIC_INTERFACE
@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
    description="Create an account and return it together with a bearer token.",
    responses={
        201: {"description": "Account created"},
        409: {"description": "Email already registered"},
        422: {"description": "Invalid email or password"},
    },
)
def signup(payload: SignupRequest, users: UserRepository = Depends(get_user_repository)) -> AuthResponse:
    user, token = auth.signup(users, payload.email, payload.password)
    return AuthResponse(user=_user_out(user), token=token)


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in",
    description="Exchange email and password for a bearer token.",
    responses={401: {"description": "Invalid email or password"}},
)
def login(payload: LoginRequest, users: UserRepository = Depends(get_user_repository)) -> AuthResponse:
    user, token = auth.login(users, payload.email, payload.password)
    return AuthResponse(user=_user_out(user), token=token)


# PUBLIC_INTERFACE
@router.get(
    "/me",
    response_model=UserOut,
    summary="Current user",
    responses={401: {"description": "Authentication required"}},
)
def me(current_user: UserEntity = Depends(auth.get_current_user)) -> UserOut:
    """
    Return the user identified by the bearer token.
    """
    return _user_out(current_user)
