from .service import (
    InvalidCredentialsError,
    InvalidTokenError,
    PasswordTooLongError,
    UsernameTakenError,
    authenticate,
    decode_token,
    issue_token,
    register,
)

__all__ = [
    "InvalidCredentialsError",
    "InvalidTokenError",
    "PasswordTooLongError",
    "UsernameTakenError",
    "authenticate",
    "decode_token",
    "issue_token",
    "register",
]
