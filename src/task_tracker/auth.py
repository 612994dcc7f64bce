from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from .errors import AuthenticationFailed
from .logger import logger
from .models import UserEntity
from .repositories import UserRepository, get_user_repository
from .settings import get_settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=get_settings().bcrypt_rounds,
)

_security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# PUBLIC_INTERFACE
def create_access_token(user: UserEntity, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed access token identifying the user."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {"sub": user["email"], "user_id": user["id"], "exp": expire, "type": "access"}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


# PUBLIC_INTERFACE
def decode_token(token: str) -> dict:
    """
    Verify signature and expiry and return the claims.

    Raises:
        AuthenticationFailed if the token is malformed, tampered with, expired,
        or is not an access token.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning("Rejected access token: %s", e)
        raise AuthenticationFailed("Could not validate credentials") from e

    if payload.get("sub") is None or payload.get("user_id") is None or payload.get("type") != "access":
        logger.warning("Rejected access token: missing claims")
        raise AuthenticationFailed("Could not validate credentials")
    return payload


# PUBLIC_INTERFACE
def signup(users: UserRepository, email: str, password: str) -> Tuple[UserEntity, str]:
    """
    Create an account and return it with a fresh access token.

    Raises:
        Conflict if the email is already registered.
    """
    user = users.create(email, hash_password(password))
    logger.info("User registered: id=%s", user["id"])
    return user, create_access_token(user)


# PUBLIC_INTERFACE
def login(users: UserRepository, email: str, password: str) -> Tuple[UserEntity, str]:
    """
    Check credentials and return the user with a fresh access token.

    Raises:
        AuthenticationFailed for an unknown email or a wrong password.
    """
    user = users.get_by_email(email)
    if user is None or not verify_password(password, user["password_hash"]):
        logger.info("Failed login attempt")
        raise AuthenticationFailed("Invalid email or password")
    logger.info("User logged in: id=%s", user["id"])
    return user, create_access_token(user)


# PUBLIC_INTERFACE
def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_security),
    users: UserRepository = Depends(get_user_repository),
) -> UserEntity:
    """
    FastAPI dependency resolving the acting user from the bearer token.

    Raises:
        AuthenticationFailed if the token is missing or invalid, or the user no
        longer exists.
    """
    if creds is None or not creds.credentials:
        raise AuthenticationFailed("Authentication required")

    payload = decode_token(creds.credentials)
    user = users.get(int(payload["user_id"]))
    if user is None or user["email"] != payload["sub"]:
        logger.warning("Rejected access token: unknown user")
        raise AuthenticationFailed("Could not validate credentials")
    return user
