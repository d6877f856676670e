from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class CredentialsRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    username: str


class AuthResponse(BaseModel):
    token: str
    user: UserResponse
