"""Repositories for houses, residents and funding contracts."""

from __future__ import annotations

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.care_models import FundingContractModel, HouseModel, ResidentModel


class HouseRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, data: dict, organization_id: int) -> HouseModel:
        house = HouseModel(**data, organization_id=organization_id)
        self.session.add(house)
        await self.session.commit()
        await self.session.refresh(house)
        return house

    async def get_by_id(self, house_id: int, organization_id: int) -> HouseModel | None:
        stmt = select(HouseModel).where(and_(HouseModel.id == house_id, HouseModel.organization_id == organization_id))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list(self, organization_id: int) -> list[HouseModel]:
        stmt = select(HouseModel).where(HouseModel.organization_id == organization_id).order_by(HouseModel.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, organization_id: int) -> tuple[int, int]:
        """(number of active houses, total bedrooms)."""
        houses = [h for h in await self.list(organization_id) if h.status == "active"]
        return len(houses), sum(h.bedrooms or 0 for h in houses)


class ResidentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, data: dict, organization_id: int) -> ResidentModel:
        resident = ResidentModel(**data, organization_id=organization_id)
        self.session.add(resident)
        await self.session.commit()
        await self.session.refresh(resident)
        return resident

    async def get_by_id(self, resident_id: int, organization_id: int) -> ResidentModel | None:
        stmt = select(ResidentModel).where(
            and_(ResidentModel.id == resident_id, ResidentModel.organization_id == organization_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list(self, organization_id: int, status: str | None = None) -> list[ResidentModel]:
        stmt = select(ResidentModel).where(ResidentModel.organization_id == organization_id)
        if status:
            stmt = stmt.where(ResidentModel.status == status)
        stmt = stmt.order_by(ResidentModel.last_name, ResidentModel.first_name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update(self, resident: ResidentModel, updates: dict) -> ResidentModel:
        for key, value in updates.items():
            setattr(resident, key, value)
        await self.session.commit()
        await self.session.refresh(resident)
        return resident


class ContractRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, data: dict, organization_id: int) -> FundingContractModel:
        contract = FundingContractModel(**data, organization_id=organization_id)
        self.session.add(contract)
        await self.session.commit()
        await self.session.refresh(contract)
        return contract

    async def get_by_id(self, contract_id: int, organization_id: int) -> FundingContractModel | None:
        stmt = select(FundingContractModel).where(
            and_(FundingContractModel.id == contract_id, FundingContractModel.organization_id == organization_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_update(self, contract_id: int, organization_id: int) -> FundingContractModel | None:
        """Load and row-lock a contract for a balance change."""
        stmt = (
            select(FundingContractModel)
            .where(and_(FundingContractModel.id == contract_id, FundingContractModel.organization_id == organization_id))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list(
        self,
        organization_id: int,
        status: str | None = None,
        resident_id: int | None = None,
    ) -> list[FundingContractModel]:
        stmt = select(FundingContractModel).where(FundingContractModel.organization_id == organization_id)
        if status:
            stmt = stmt.where(FundingContractModel.contract_status == status)
        if resident_id:
            stmt = stmt.where(FundingContractModel.resident_id == resident_id)
        stmt = stmt.order_by(FundingContractModel.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_with_residents(
        self,
        organization_id: int,
        contract_ids: list[int] | None = None,
    ) -> list[tuple[FundingContractModel, ResidentModel, HouseModel | None]]:
        """Contracts of the organization joined with their resident and (optional) house."""
        stmt = (
            select(FundingContractModel, ResidentModel, HouseModel)
            .join(ResidentModel, ResidentModel.id == FundingContractModel.resident_id)
            .outerjoin(HouseModel, HouseModel.id == ResidentModel.house_id)
            .where(FundingContractModel.organization_id == organization_id)
            .order_by(FundingContractModel.next_run_date, FundingContractModel.id)
        )
        if contract_ids is not None:
            stmt = stmt.where(FundingContractModel.id.in_(contract_ids))
        result = await self.session.execute(stmt)
        return [tuple(row) for row in result.all()]

    async def update(self, contract: FundingContractModel, updates: dict) -> FundingContractModel:
        for key, value in updates.items():
            setattr(contract, key, value)
        await self.session.commit()
        await self.session.refresh(contract)
        return contract
