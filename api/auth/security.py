"""Password hashing and JWT helpers."""

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from api.config import get_settings

settings = get_settings()


class PasswordHelper:
    @staticmethod
    def hash_password(password: str) -> str:
        salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        try:
            return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return False


class JWTHelper:
    """Issues and verifies signed access/refresh tokens."""

    @staticmethod
    def _encode(subject: dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
        to_encode = subject.copy()
        to_encode.update({"exp": datetime.now(UTC) + expires_delta, "type": token_type})
        return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    @staticmethod
    def create_access_token(subject: dict[str, Any], expires_delta: timedelta | None = None) -> str:
        """
        Create an access token.

        Args:
            subject: Claims to embed (usually {"user_id": 123, "organization_id": 1})
            expires_delta: Lifetime (defaults to settings)

        Returns:
            Encoded JWT
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)
        return JWTHelper._encode(subject, "access", expires_delta)

    @staticmethod
    def create_refresh_token(subject: dict[str, Any], expires_delta: timedelta | None = None) -> str:
        if expires_delta is None:
            expires_delta = timedelta(days=settings.jwt_refresh_token_expire_days)
        return JWTHelper._encode(subject, "refresh", expires_delta)

    @staticmethod
    def decode_token(token: str) -> dict[str, Any] | None:
        try:
            return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        except jwt.PyJWTError:
            return None

    @staticmethod
    def verify_token(token: str, token_type: str = "access") -> dict[str, Any] | None:
        """Decode a token and check its type. Returns None when invalid or expired."""
        payload = JWTHelper.decode_token(token)
        if payload is None or payload.get("type") != token_type:
            return None
        return payload
