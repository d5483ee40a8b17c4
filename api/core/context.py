"""Service context carrying the session and tenant through service calls."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession


@dataclass
class ServiceContext:
    """Execution context of one request: database session plus caller and tenant ids."""

    session: AsyncSession
    user_id: int | None
    organization_id: int

    @classmethod
    def create(cls, session: AsyncSession, organization_id: int, user_id: int | None = None) -> "ServiceContext":
        return cls(session=session, user_id=user_id, organization_id=organization_id)

    @property
    def actor(self) -> str:
        """Identifier written to audit logs and `created_by` columns."""
        return f"user:{self.user_id}" if self.user_id is not None else "automation-system"
