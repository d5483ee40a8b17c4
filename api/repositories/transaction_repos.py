"""Repositories for transactions and durable identifier sequences."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database.finance_models import IdSequenceModel, TransactionModel


class IdSequenceRepository:
    """Issues per-organization sequence numbers inside the caller's transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def next_value(self, organization_id: int, name: str) -> int:
        """
        Increment and return the counter.

        The row stays locked by the UPDATE until the surrounding transaction
        ends, so two writers never receive the same value and a rolled back
        transaction gives its number back.
        """
        key = and_(IdSequenceModel.organization_id == organization_id, IdSequenceModel.name == name)
        stmt = update(IdSequenceModel).where(key).values(last_value=IdSequenceModel.last_value + 1)

        result = await self.session.execute(stmt, execution_options={"synchronize_session": False})
        if result.rowcount == 0:
            try:
                async with self.session.begin_nested():
                    self.session.add(IdSequenceModel(organization_id=organization_id, name=name, last_value=1))
                return 1
            except IntegrityError:
                # Created concurrently; fall through to the increment
                await self.session.execute(stmt, execution_options={"synchronize_session": False})

        value = await self.session.execute(select(IdSequenceModel.last_value).where(key))
        return value.scalar_one()


class TransactionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, transaction: TransactionModel) -> TransactionModel:
        """Stage a transaction without committing (runners commit per batch)."""
        self.session.add(transaction)
        await self.session.flush()
        return transaction

    async def get_by_id(self, transaction_id: int, organization_id: int) -> TransactionModel | None:
        stmt = select(TransactionModel).where(
            and_(TransactionModel.id == transaction_id, TransactionModel.organization_id == organization_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list(
        self,
        organization_id: int,
        resident_id: int | None = None,
        contract_id: int | None = None,
        status: str | None = None,
        source: str | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        limit: int = 100,
    ) -> list[TransactionModel]:
        stmt = select(TransactionModel).where(TransactionModel.organization_id == organization_id)
        if resident_id:
            stmt = stmt.where(TransactionModel.resident_id == resident_id)
        if contract_id:
            stmt = stmt.where(TransactionModel.contract_id == contract_id)
        if status:
            stmt = stmt.where(TransactionModel.status == status)
        if source:
            stmt = stmt.where(TransactionModel.source == source)
        if from_date:
            stmt = stmt.where(TransactionModel.occurred_at >= from_date)
        if to_date:
            stmt = stmt.where(TransactionModel.occurred_at < to_date)
        stmt = stmt.order_by(TransactionModel.occurred_at.desc(), TransactionModel.id.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def exists_for_resident(
        self,
        organization_id: int,
        resident_id: int,
        start: datetime,
        end: datetime,
        source: str,
    ) -> bool:
        """Whether the resident already has a non-voided transaction from `source` in [start, end)."""
        stmt = select(func.count(TransactionModel.id)).where(
            TransactionModel.organization_id == organization_id,
            TransactionModel.resident_id == resident_id,
            TransactionModel.source == source,
            TransactionModel.status != "voided",
            TransactionModel.created_at >= start,
            TransactionModel.created_at < end,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one() > 0

    async def totals_between(self, organization_id: int, start: datetime, end: datetime) -> tuple[int, float, int]:
        """(transaction count, total amount, distinct residents) for non-voided transactions in [start, end)."""
        stmt = select(
            func.count(TransactionModel.id),
            func.coalesce(func.sum(TransactionModel.amount), 0),
            func.count(func.distinct(TransactionModel.resident_id)),
        ).where(
            TransactionModel.organization_id == organization_id,
            TransactionModel.status != "voided",
            TransactionModel.occurred_at >= start,
            TransactionModel.occurred_at < end,
        )
        count, total, residents = (await self.session.execute(stmt)).one()
        return int(count), float(total), int(residents)

    async def status_totals(self, organization_id: int, status: str) -> tuple[int, float]:
        """(count, total amount) of transactions currently in `status`."""
        stmt = select(func.count(TransactionModel.id), func.coalesce(func.sum(TransactionModel.amount), 0)).where(
            TransactionModel.organization_id == organization_id,
            TransactionModel.status == status,
        )
        count, total = (await self.session.execute(stmt)).one()
        return int(count), float(total)
