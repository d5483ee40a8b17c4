"""Authentication endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.dependencies import get_current_user
from api.auth.security import JWTHelper, PasswordHelper
from api.config import get_settings
from api.dependencies import get_db_session
from api.repositories.auth_repos import OrganizationRepository, UserRepository
from api.repositories.automation_repos import AutomationSettingsRepository
from api.schemas.auth import LoginRequest, RefreshTokenRequest, RegisterRequest, TokenPair, UserInDB, UserResponse
from api.schemas.common import ApiResponse, ok
from api.shared.exceptions import BadRequestError, UnauthorizedError
from config.settings import settings as app_settings
from database.auth_models import UserModel
from logger import format_log, get_logger

logger = get_logger("api.auth")
settings = get_settings()

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])

# Same message for unknown email and wrong password
INVALID_CREDENTIALS = "Incorrect email or password"


def _issue_tokens(user: UserInDB) -> TokenPair:
    claims = {"user_id": user.id, "organization_id": user.organization_id}
    return TokenPair(
        access_token=JWTHelper.create_access_token(claims),
        refresh_token=JWTHelper.create_refresh_token({"user_id": user.id}),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


@router.post("/register", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, session: AsyncSession = Depends(get_db_session)):
    """Register an organization and its first admin user."""
    user_repo = UserRepository(session)

    if await user_repo.get_by_email(request.email):
        # Do not reveal that the account exists
        raise BadRequestError("Unable to register with the provided details")

    organization = await OrganizationRepository(session).create(
        request.organization_name, app_settings.automation.default_timezone
    )
    user = await user_repo.create(
        email=request.email,
        hashed_password=PasswordHelper.hash_password(request.password),
        organization_id=organization.id,
        full_name=request.full_name,
    )
    await AutomationSettingsRepository(session).get_or_create(organization.id)
    await session.commit()

    logger.info(format_log("Organization registered", organization_id=organization.id, user_id=user.id))
    return ok(UserResponse.model_validate(user))


@router.post("/login", response_model=ApiResponse[TokenPair])
async def login(request: LoginRequest, session: AsyncSession = Depends(get_db_session)):
    user_repo = UserRepository(session)
    user = await user_repo.get_by_email(request.email)

    if not user or not PasswordHelper.verify_password(request.password, user.hashed_password) or not user.is_active:
        raise UnauthorizedError(INVALID_CREDENTIALS)

    await user_repo.touch_login(user.id)
    logger.info(format_log("User logged in", user_id=user.id))
    return ok(_issue_tokens(user))


@router.post("/refresh", response_model=ApiResponse[TokenPair])
async def refresh_token(request: RefreshTokenRequest, session: AsyncSession = Depends(get_db_session)):
    """Exchange a refresh token for a new token pair."""
    payload = JWTHelper.verify_token(request.refresh_token, token_type="refresh")
    if not payload or not payload.get("user_id"):
        raise UnauthorizedError("Invalid refresh token")

    user = await UserRepository(session).get_by_id(payload["user_id"])
    if not user or not user.is_active:
        raise UnauthorizedError("Invalid refresh token")

    return ok(_issue_tokens(user))


@router.get("/me", response_model=ApiResponse[UserResponse])
async def me(current_user: UserInDB = Depends(get_current_user), session: AsyncSession = Depends(get_db_session)):
    user = await session.get(UserModel, current_user.id)
    return ok(UserResponse.model_validate(user))
