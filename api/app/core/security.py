from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

from fastapi import Depends, Header, HTTPException, status
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.auth import Principal
from app.core.config import Settings, get_settings


@lru_cache
def _password_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(password: str, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    # bcrypt only reads the first 72 bytes.
    return _password_context(settings.bcrypt_rounds).hash(password.encode("utf-8")[:72])


def verify_password(password: str, password_hash: str, settings: Settings | None = None) -> bool:
    settings = settings or get_settings()
    return _password_context(settings.bcrypt_rounds).verify(password.encode("utf-8")[:72], password_hash)


def create_token(user: dict[str, Any], settings: Settings | None = None) -> str:
    """Sign a token for ``user`` (needs ``username``; ``isAdmin`` defaults to False)."""
    settings = settings or get_settings()
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.token_expire_minutes)
    claims = {
        "username": user["username"],
        "isAdmin": bool(user.get("isAdmin", False)),
        "exp": expires_at,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.token_algorithm)


def decode_token(token: str, settings: Settings | None = None) -> Principal:
    settings = settings or get_settings()
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.token_algorithm])
    except JWTError as exc:
        raise PermissionError("invalid bearer token") from exc

    username = claims.get("username")
    if not isinstance(username, str) or not username:
        raise PermissionError("invalid bearer token")
    return Principal(username=username, is_admin=claims.get("isAdmin") is True)


async def get_current_principal(
    settings: Settings = Depends(get_settings),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> Principal | None:
    if not authorization:
        return None
    if not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="auth requires bearer token")

    token = authorization.split(" ", maxsplit=1)[1].strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="empty bearer token")

    try:
        return decode_token(token, settings)
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc


async def get_authenticated_principal(principal: Principal | None = Depends(get_current_principal)) -> Principal:
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="auth requires bearer token")
    return principal
