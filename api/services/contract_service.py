"""Funding contract management and automated billing setup."""

from datetime import date

from api.core.context import ServiceContext
from api.repositories.care_repos import ContractRepository, ResidentRepository
from api.schemas.automation import CalculateRatesRequest, CalculateRatesResponse, ContractRates
from api.schemas.care import ContractCreate, ContractUpdate
from api.services.contract_eligibility import ContractEligibilityService
from api.services.rate_calculator import calculate_contract_rates, transaction_amount
from api.shared.exceptions import BadRequestError, NotFoundError
from database.care_models import FundingContractModel
from logger import format_log, get_logger

logger = get_logger("api.contracts")


class ContractService:
    def __init__(self, ctx: ServiceContext):
        self.ctx = ctx
        self.repo = ContractRepository(ctx.session)

    async def get(self, contract_id: int) -> FundingContractModel:
        contract = await self.repo.get_by_id(contract_id, self.ctx.organization_id)
        if contract is None:
            raise NotFoundError("Contract", contract_id)
        return contract

    async def create(self, data: ContractCreate) -> FundingContractModel:
        resident = await ResidentRepository(self.ctx.session).get_by_id(data.resident_id, self.ctx.organization_id)
        if resident is None:
            raise NotFoundError("Resident", data.resident_id)
        contract = await self.repo.create(data.model_dump(), self.ctx.organization_id)
        logger.info(format_log("Contract created", contract_id=contract.id, resident_id=contract.resident_id))
        return contract

    async def update(self, contract_id: int, data: ContractUpdate) -> FundingContractModel:
        contract = await self.get(contract_id)
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise BadRequestError("No fields to update")

        start = updates.get("start_date", contract.start_date)
        end = updates.get("end_date", contract.end_date)
        if start and end and end < start:
            raise BadRequestError("end_date must be on or after start_date")
        return await self.repo.update(contract, updates)

    async def calculate_rates(self, request: CalculateRatesRequest) -> CalculateRatesResponse:
        """
        Work out the drawdown rates, from the request figures or the stored
        contract. With `action="enable"` the rate, frequency and first run date
        are written to the contract and automated billing is switched on.
        """
        contract = await self.get(request.contract_id) if request.contract_id is not None else None
        amount = request.amount or (contract.original_amount if contract else None)
        start = request.start_date or (contract.start_date if contract else None)
        end = request.end_date or (contract.end_date if contract else None)
        if amount is None or start is None or end is None:
            raise BadRequestError("Contract amount, start date and end date are required to calculate rates")

        try:
            rates = calculate_contract_rates(amount, start, end)
        except ValueError as e:
            raise BadRequestError(str(e)) from e

        response = CalculateRatesResponse(
            rates=ContractRates(
                total_days=rates.total_days,
                daily_rate=float(rates.daily_rate),
                weekly_rate=float(rates.weekly_rate),
                fortnightly_rate=float(rates.fortnightly_rate),
            ),
            frequency=request.frequency,
            transaction_amount=float(transaction_amount(request.frequency, rates.daily_rate)),
            contract_id=request.contract_id,
        )
        if request.action != "enable":
            return response

        first_run = request.first_run_date or await self._default_first_run(start)
        await self.repo.update(
            contract,
            {
                "daily_support_item_cost": rates.daily_rate,
                "drawdown_frequency": request.frequency.value,
                "next_run_date": first_run,
                "auto_billing_enabled": True,
            },
        )
        logger.info(
            format_log(
                "Automated billing enabled",
                contract_id=contract.id,
                daily_rate=rates.daily_rate,
                frequency=request.frequency.value,
                next_run_date=first_run,
            )
        )
        response.enabled = True
        response.next_run_date = first_run
        return response

    async def _default_first_run(self, start: date) -> date:
        today = await ContractEligibilityService(self.ctx.session, self.ctx.organization_id).today()
        return max(start, today)
