from __future__ import annotations

from fastapi import APIRouter, HTTPException

from apps.api.schemas.auth import AuthResponse, CredentialsRequest, UserResponse
from apps.api.storage import default_store
from packages.core.accounts.service import (
    InvalidCredentialsError,
    PasswordTooLongError,
    UsernameTakenError,
    authenticate,
    register,
)


router = APIRouter(prefix="/api", tags=["auth"])


def _store():
    return default_store()


@router.post("/register", response_model=AuthResponse)
def register_user(payload: CredentialsRequest) -> AuthResponse:
    try:
        user, token = register(_store(), payload.username or "", payload.password or "")
    except UsernameTakenError as exc:
        raise HTTPException(status_code=400, detail="username exists") from exc
    except PasswordTooLongError as exc:
        raise HTTPException(status_code=400, detail="password too long") from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="missing") from exc
    return AuthResponse(token=token, user=UserResponse(id=user.id, username=user.username))


@router.post("/login", response_model=AuthResponse)
def login(payload: CredentialsRequest) -> AuthResponse:
    try:
        user, token = authenticate(_store(), payload.username or "", payload.password or "")
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=400, detail="invalid credentials") from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="missing") from exc
    return AuthResponse(token=token, user=UserResponse(id=user.id, username=user.username))
