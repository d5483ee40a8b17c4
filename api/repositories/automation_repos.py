"""Automation, run ledger and automation settings repositories"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from api.shared.enums import RunStatus
from database.automation_models import AutomationModel, AutomationRunModel, AutomationSettingsModel
from utils.date_utils import utcnow


class AutomationRepository:
    """Repository for automation definitions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, data: dict, organization_id: int, created_by_user_id: int | None = None) -> AutomationModel:
        now = utcnow()
        automation = AutomationModel(
            **data,
            organization_id=organization_id,
            created_by_user_id=created_by_user_id,
            created_at=now,
            updated_at=now,
        )
        self.session.add(automation)
        await self.session.commit()
        await self.session.refresh(automation)
        return automation

    async def get_by_id(self, automation_id: int, organization_id: int) -> AutomationModel | None:
        """Get automation by ID, scoped to the organization."""
        stmt = select(AutomationModel).where(
            and_(AutomationModel.id == automation_id, AutomationModel.organization_id == organization_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list(self, organization_id: int, enabled_only: bool = False) -> list[AutomationModel]:
        stmt = select(AutomationModel).where(AutomationModel.organization_id == organization_id)
        if enabled_only:
            stmt = stmt.where(AutomationModel.enabled.is_(True))
        stmt = stmt.order_by(AutomationModel.created_at.desc(), AutomationModel.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_due(self, now: datetime, limit: int) -> list[AutomationModel]:
        """Enabled automations across all organizations whose slot has arrived."""
        stmt = (
            select(AutomationModel)
            .where(
                AutomationModel.enabled.is_(True),
                AutomationModel.next_run_at.is_not(None),
                AutomationModel.next_run_at <= now,
            )
            .order_by(AutomationModel.next_run_at)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update(self, automation: AutomationModel, updates: dict) -> AutomationModel:
        for key, value in updates.items():
            setattr(automation, key, value)
        automation.updated_at = utcnow()
        await self.session.commit()
        await self.session.refresh(automation)
        return automation

    async def delete(self, automation: AutomationModel) -> None:
        await self.session.delete(automation)
        await self.session.commit()

    async def claim(self, automation: AutomationModel, stale_after: timedelta) -> bool:
        """
        Atomically mark the automation as running.

        Succeeds only when no live claim exists; claims older than
        `stale_after` are considered abandoned and may be taken over.
        """
        now = utcnow()
        stmt = (
            update(AutomationModel)
            .where(
                AutomationModel.id == automation.id,
                or_(AutomationModel.running_since.is_(None), AutomationModel.running_since < now - stale_after),
            )
            .values(running_since=now)
        )
        result = await self.session.execute(stmt, execution_options={"synchronize_session": False})
        await self.session.commit()
        claimed = result.rowcount == 1
        if claimed:
            # Reflect the new value without marking the instance dirty
            set_committed_value(automation, "running_since", now)
        return claimed

    async def release(self, automation_id: int, claimed_at: datetime) -> bool:
        """Drop the claim taken at `claimed_at`. A newer claim by someone else is left alone."""
        stmt = (
            update(AutomationModel)
            .where(AutomationModel.id == automation_id, AutomationModel.running_since == claimed_at)
            .values(running_since=None)
        )
        result = await self.session.execute(stmt, execution_options={"synchronize_session": False})
        await self.session.commit()
        return result.rowcount == 1

    async def record_outcome(self, automation: AutomationModel, status: RunStatus, next_run_at: datetime) -> None:
        """Run bookkeeping: last run, next slot, and release of the claim."""
        now = utcnow()
        automation.last_run_at = now
        automation.last_run_status = status.value
        automation.next_run_at = next_run_at
        automation.running_since = None
        automation.updated_at = now
        await self.session.commit()

    async def skip_slot(self, automation: AutomationModel, next_run_at: datetime | None) -> None:
        """Advance the schedule without recording a run."""
        automation.next_run_at = next_run_at
        await self.session.commit()


class AutomationRunRepository:
    """Ledger of run attempts."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def start(self, automation: AutomationModel, triggered_by: str) -> AutomationRunModel:
        """Insert the `running` record and commit it before any work starts."""
        run = AutomationRunModel(
            automation_id=automation.id,
            organization_id=automation.organization_id,
            status=RunStatus.RUNNING.value,
            triggered_by=triggered_by,
            started_at=utcnow(),
        )
        self.session.add(run)
        await self.session.commit()
        await self.session.refresh(run)
        return run

    async def finish(
        self,
        run: AutomationRunModel,
        status: RunStatus,
        summary: str,
        metrics: dict,
        error: dict | None,
    ) -> AutomationRunModel:
        run.status = status.value
        run.finished_at = utcnow()
        run.summary = summary
        run.metrics = metrics
        run.error = error
        await self.session.commit()
        return run

    async def abandon(self, run_id: int, message: str) -> None:
        """Close a run that is still `running` after the pipeline itself failed."""
        stmt = (
            update(AutomationRunModel)
            .where(AutomationRunModel.id == run_id, AutomationRunModel.status == RunStatus.RUNNING.value)
            .values(status=RunStatus.FAILED.value, finished_at=utcnow(), error={"message": message})
        )
        await self.session.execute(stmt, execution_options={"synchronize_session": False})
        await self.session.commit()

    async def has_running(self, automation_id: int, since: datetime) -> bool:
        """Whether a run for this automation started after `since` is still `running`."""
        stmt = select(AutomationRunModel.id).where(
            AutomationRunModel.automation_id == automation_id,
            AutomationRunModel.status == RunStatus.RUNNING.value,
            AutomationRunModel.started_at >= since,
        )
        result = await self.session.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None

    async def get_by_id(self, run_id: int, organization_id: int) -> AutomationRunModel | None:
        stmt = select(AutomationRunModel).where(
            and_(AutomationRunModel.id == run_id, AutomationRunModel.organization_id == organization_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_automation(self, automation_id: int, limit: int = 20) -> list[AutomationRunModel]:
        stmt = (
            select(AutomationRunModel)
            .where(AutomationRunModel.automation_id == automation_id)
            .order_by(AutomationRunModel.started_at.desc(), AutomationRunModel.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_organization(self, organization_id: int, limit: int = 50) -> list[AutomationRunModel]:
        stmt = (
            select(AutomationRunModel)
            .where(AutomationRunModel.organization_id == organization_id)
            .order_by(AutomationRunModel.started_at.desc(), AutomationRunModel.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def failed_since(self, organization_id: int, since: datetime) -> list[tuple[AutomationRunModel, str]]:
        """Failed runs after `since` with the automation name."""
        stmt = (
            select(AutomationRunModel, AutomationModel.name)
            .join(AutomationModel, AutomationModel.id == AutomationRunModel.automation_id)
            .where(
                AutomationRunModel.organization_id == organization_id,
                AutomationRunModel.status == RunStatus.FAILED.value,
                AutomationRunModel.started_at >= since,
            )
            .order_by(AutomationRunModel.started_at.desc())
        )
        result = await self.session.execute(stmt)
        return [(run, name) for run, name in result.all()]


class AutomationSettingsRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, organization_id: int) -> AutomationSettingsModel | None:
        stmt = select(AutomationSettingsModel).where(AutomationSettingsModel.organization_id == organization_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, organization_id: int) -> AutomationSettingsModel:
        """Settings row of the organization, created with defaults on first access (not committed)."""
        existing = await self.get(organization_id)
        if existing:
            return existing
        model = AutomationSettingsModel(organization_id=organization_id, admin_emails=[])
        self.session.add(model)
        await self.session.flush()
        return model

    async def update(self, model: AutomationSettingsModel, updates: dict) -> AutomationSettingsModel:
        for key, value in updates.items():
            setattr(model, key, value)
        model.updated_at = utcnow()
        await self.session.commit()
        await self.session.refresh(model)
        return model
