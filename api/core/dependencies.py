"""ServiceContext dependency (separate module to avoid circular imports)."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.dependencies import get_current_organization_user
from api.core.context import ServiceContext
from api.dependencies import get_db_session
from api.schemas.auth import UserInDB


def get_service_context(
    session: AsyncSession = Depends(get_db_session),
    current_user: UserInDB = Depends(get_current_organization_user),
) -> ServiceContext:
    return ServiceContext.create(
        session=session,
        organization_id=current_user.organization_id,
        user_id=current_user.id,
    )
