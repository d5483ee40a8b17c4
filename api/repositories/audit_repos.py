"""Repositories for the audit trail and in-app notifications."""

from __future__ import annotations

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.audit_models import AuditLogModel, NotificationModel


class AuditLogRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        organization_id: int,
        action: str,
        entity_type: str,
        entity_id: int | str | None,
        details: dict | None = None,
        actor: str = "system",
    ) -> AuditLogModel:
        """Stage an audit entry in the current transaction."""
        entry = AuditLogModel(
            organization_id=organization_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            details=details or {},
            actor=actor,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def list(self, organization_id: int, action: str | None = None, limit: int = 100) -> list[AuditLogModel]:
        stmt = select(AuditLogModel).where(AuditLogModel.organization_id == organization_id)
        if action:
            stmt = stmt.where(AuditLogModel.action == action)
        stmt = stmt.order_by(AuditLogModel.created_at.desc(), AuditLogModel.id.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class NotificationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        organization_id: int,
        title: str,
        message: str,
        type: str = "info",
        link: str | None = None,
    ) -> NotificationModel:
        notification = NotificationModel(
            organization_id=organization_id, title=title, message=message, type=type, link=link
        )
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def list(self, organization_id: int, unread_only: bool = False, limit: int = 50) -> list[NotificationModel]:
        stmt = select(NotificationModel).where(NotificationModel.organization_id == organization_id)
        if unread_only:
            stmt = stmt.where(NotificationModel.is_read.is_(False))
        stmt = stmt.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_id(self, notification_id: int, organization_id: int) -> NotificationModel | None:
        stmt = select(NotificationModel).where(
            and_(NotificationModel.id == notification_id, NotificationModel.organization_id == organization_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_read(self, notification: NotificationModel) -> NotificationModel:
        notification.is_read = True
        await self.session.commit()
        return notification
