"""Authentication schemas."""

from .request import LoginRequest, RefreshTokenRequest, RegisterRequest
from .token import TokenPair
from .user import UserInDB, UserResponse

__all__ = [
    "LoginRequest",
    "RefreshTokenRequest",
    "RegisterRequest",
    "TokenPair",
    "UserInDB",
    "UserResponse",
]
