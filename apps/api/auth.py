from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException

from packages.core.accounts.service import InvalidTokenError, decode_token
from apps.api.schemas.auth import UserResponse


def current_user(authorization: Optional[str] = Header(default=None)) -> UserResponse:
    if not authorization:
        raise HTTPException(status_code=401, detail="no auth")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="invalid token")
    try:
        claims = decode_token(token.strip())
    except InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail="invalid token") from exc
    return UserResponse(id=claims["id"], username=claims["username"] or "")
