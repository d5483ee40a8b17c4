"""Database models for billing automations and their run ledger."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from database.models import Base, JSONType
from utils.date_utils import utcnow


class AutomationModel(Base):
    """Scheduled administrative task (billing run, recurring transaction, daily digest)."""

    __tablename__ = "automations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(50), nullable=False)
    enabled = Column(Boolean, default=True, nullable=False)

    schedule = Column(JSONType, nullable=False)
    parameters = Column(JSONType, nullable=False, default=dict)

    last_run_at = Column(DateTime, nullable=True)
    last_run_status = Column(String(20), nullable=True)
    next_run_at = Column(DateTime, nullable=True, index=True)
    # Claim marker set atomically while a run is in flight
    running_since = Column(DateTime, nullable=True)

    created_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    runs = relationship(
        "AutomationRunModel",
        back_populates="automation",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Automation(id={self.id}, type={self.type}, name='{self.name}', enabled={self.enabled})>"


class AutomationRunModel(Base):
    """One execution attempt. Finalized to success/failed and never reused."""

    __tablename__ = "automation_runs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    automation_id = Column(Integer, ForeignKey("automations.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(String(20), default="running", nullable=False)
    triggered_by = Column(String(20), default="manual", nullable=False)
    started_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    finished_at = Column(DateTime, nullable=True)
    summary = Column(Text, nullable=True)
    metrics = Column(JSONType, nullable=True)
    error = Column(JSONType, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    automation = relationship("AutomationModel", back_populates="runs")

    def __repr__(self):
        return f"<AutomationRun(id={self.id}, automation_id={self.automation_id}, status={self.status})>"


class AutomationSettingsModel(Base):
    """Organization-wide automation preferences and error handling policy."""

    __tablename__ = "automation_settings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(
        Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )

    enabled = Column(Boolean, default=True, nullable=False)
    run_time = Column(String(5), default="02:00", nullable=False)
    timezone = Column(String(50), default="Australia/Sydney", nullable=False)
    admin_emails = Column(JSONType, nullable=False, default=list)
    notify_on_success = Column(Boolean, default=False, nullable=False)
    notify_on_failure = Column(Boolean, default=True, nullable=False)

    max_retries = Column(Integer, default=3, nullable=False)
    retry_delay_ms = Column(Integer, default=5000, nullable=False)
    continue_on_error = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
