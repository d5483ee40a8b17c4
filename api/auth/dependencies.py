"""Authentication dependencies."""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.security import JWTHelper
from api.dependencies import get_db_session
from api.repositories.auth_repos import UserRepository
from api.schemas.auth import UserInDB
from api.shared.exceptions import UnauthorizedError

# auto_error=False so a missing header yields 401 rather than the framework's 403
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    session: AsyncSession = Depends(get_db_session),
) -> UserInDB:
    """
    Resolve the user from a bearer access token.

    Raises:
        UnauthorizedError: Missing/invalid token, unknown or deactivated user
    """
    if credentials is None:
        raise UnauthorizedError("Not authenticated")

    payload = JWTHelper.verify_token(credentials.credentials, token_type="access")
    if not payload or not payload.get("user_id"):
        raise UnauthorizedError("Invalid or expired token")

    user = await UserRepository(session).get_by_id(payload["user_id"])
    if not user or not user.is_active:
        raise UnauthorizedError("Invalid or expired token")

    return user


async def get_current_organization_user(current_user: UserInDB = Depends(get_current_user)) -> UserInDB:
    """Same as get_current_user, but the user must belong to an organization."""
    if current_user.organization_id is None:
        raise UnauthorizedError()
    return current_user
