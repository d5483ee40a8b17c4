"""Database models for audit trail and in-app notifications."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from database.models import Base, JSONType
from utils.date_utils import utcnow


class AuditLogModel(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(100), nullable=False, index=True)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(50), nullable=True)
    actor = Column(String(100), nullable=False, default="system")
    details = Column(JSONType, nullable=False, default=dict)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class NotificationModel(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), default="info", nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(500), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
