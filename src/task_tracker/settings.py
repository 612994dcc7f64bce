from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/tasks.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - JWT_SECRET_KEY: secret used to sign access tokens
    - JWT_ALGORITHM: signing algorithm (default: HS256)
    - ACCESS_TOKEN_EXPIRE_MINUTES: access token lifetime (default: 1440, one day)
    - BCRYPT_ROUNDS: password hashing cost, clamped to 4..31 (default: 12)
    - LOG_LEVEL: root log level (default: INFO)
    """

    persistence_backend: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    jwt_secret_key: str
    jwt_algorithm: str
    access_token_expire_minutes: int
    bcrypt_rounds: int
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    sqlite_path = _get_env("SQLITE_DB_PATH", "./data/tasks.db").strip()
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=sqlite_path,
        cors_allow_origins=origins,
        jwt_secret_key=_get_env("JWT_SECRET_KEY", "change-me-in-production"),
        jwt_algorithm=_get_env("JWT_ALGORITHM", "HS256").strip(),
        access_token_expire_minutes=_parse_int(_get_env("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"), 1440),
        bcrypt_rounds=min(max(_parse_int(_get_env("BCRYPT_ROUNDS", "12"), 12), 4), 31),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
