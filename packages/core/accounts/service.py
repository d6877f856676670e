from __future__ import annotations

import datetime as dt
import os
from typing import Any, Dict, Tuple

import bcrypt
from jose import JWTError, jwt

from ..storage.base import UserState, UserStore


JWT_ALGORITHM = "HS256"
TOKEN_TTL = dt.timedelta(days=30)
BCRYPT_ROUNDS = 10
# bcrypt only reads the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


class UsernameTakenError(ValueError):
    pass


class InvalidCredentialsError(ValueError):
    pass


class InvalidTokenError(ValueError):
    pass


class PasswordTooLongError(ValueError):
    pass


def _jwt_secret() -> str:
    return os.getenv("JWT_SECRET", "dev_jwt_secret_change_me")


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def issue_token(user: UserState) -> str:
    expires = dt.datetime.now(dt.timezone.utc) + TOKEN_TTL
    claims = {"sub": str(user.id), "username": user.username, "exp": expires}
    return jwt.encode(claims, _jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    try:
        claims = jwt.decode(token, _jwt_secret(), algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc
    subject = claims.get("sub")
    if not subject or not str(subject).isdigit():
        raise InvalidTokenError("token subject is missing")
    return {"id": int(subject), "username": claims.get("username")}


def register(store: UserStore, username: str, password: str) -> Tuple[UserState, str]:
    username = (username or "").strip()
    if not username or not password:
        raise ValueError("missing")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise PasswordTooLongError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
    if store.get_user_by_username(username) is not None:
        raise UsernameTakenError(username)
    password_hash = hash_password(password)
    try:
        user = store.create_user(username, password_hash)
    except ValueError as exc:
        raise UsernameTakenError(username) from exc
    return user, issue_token(user)


def authenticate(store: UserStore, username: str, password: str) -> Tuple[UserState, str]:
    username = (username or "").strip()
    if not username or not password:
        raise ValueError("missing")
    user = store.get_user_by_username(username)
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentialsError(username)
    return user, issue_token(user)
