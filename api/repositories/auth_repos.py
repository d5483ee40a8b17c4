"""Repositories for users and organizations."""

import re

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.auth import UserInDB
from database.auth_models import OrganizationModel, UserModel
from utils.date_utils import utcnow


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> UserInDB | None:
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        db_user = result.scalars().first()
        return UserInDB.model_validate(db_user) if db_user else None

    async def get_by_email(self, email: str) -> UserInDB | None:
        result = await self.session.execute(select(UserModel).where(func.lower(UserModel.email) == email.lower()))
        db_user = result.scalars().first()
        return UserInDB.model_validate(db_user) if db_user else None

    async def create(
        self,
        email: str,
        hashed_password: str,
        organization_id: int | None,
        full_name: str | None = None,
        role: str = "admin",
    ) -> UserModel:
        user = UserModel(
            email=email.lower(),
            hashed_password=hashed_password,
            full_name=full_name,
            organization_id=organization_id,
            role=role,
        )
        self.session.add(user)
        await self.session.flush()
        return user

    async def touch_login(self, user_id: int) -> None:
        user = await self.session.get(UserModel, user_id)
        if user:
            user.last_login_at = utcnow()
            await self.session.commit()

    async def get_organization_emails(self, organization_id: int) -> list[str]:
        """Emails of active admin users, the fallback recipients for automation mail."""
        stmt = select(UserModel.email).where(
            UserModel.organization_id == organization_id,
            UserModel.is_active.is_(True),
            UserModel.role == "admin",
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class OrganizationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, organization_id: int) -> OrganizationModel | None:
        return await self.session.get(OrganizationModel, organization_id)

    async def _unique_code(self, name: str) -> str:
        base = re.sub(r"[^A-Z0-9]", "", name.upper())[:6] or "ORG"
        candidate = base
        suffix = 1
        while True:
            exists = await self.session.execute(select(OrganizationModel.id).where(OrganizationModel.code == candidate))
            if exists.scalar_one_or_none() is None:
                return candidate
            suffix += 1
            candidate = f"{base[: 6 - len(str(suffix))]}{suffix}"

    async def create(self, name: str, timezone: str) -> OrganizationModel:
        organization = OrganizationModel(name=name, code=await self._unique_code(name), timezone=timezone)
        self.session.add(organization)
        await self.session.flush()
        return organization
