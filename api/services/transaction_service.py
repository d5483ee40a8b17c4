"""Transaction creation, posting and voiding with contract balance bookkeeping."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from api.repositories.auth_repos import OrganizationRepository
from api.repositories.care_repos import ContractRepository, ResidentRepository
from api.repositories.transaction_repos import IdSequenceRepository, TransactionRepository
from api.services.rate_calculator import to_money
from api.shared.enums import TransactionSource, TransactionStatus
from api.shared.exceptions import ConflictError, ItemProcessingError, NotFoundError
from database.finance_models import TransactionModel
from logger import format_log, get_logger
from utils.date_utils import utcnow

logger = get_logger("api.transactions")

TXN_SEQUENCE = "transaction"


def format_txn_id(code: str, value: int) -> str:
    """Human readable transaction identifier, e.g. TXN-HAVEN1-A000042."""
    return f"TXN-{code}-A{value:06d}"


class TransactionService:
    """
    Transactions of one organization.

    Nothing here commits; callers decide the transaction boundary so a runner
    can keep each billed item inside its own savepoint.
    """

    def __init__(self, session: AsyncSession, organization_id: int):
        self.session = session
        self.organization_id = organization_id
        self.repo = TransactionRepository(session)
        self.contract_repo = ContractRepository(session)
        self._org_code: str | None = None

    async def next_txn_id(self) -> str:
        if self._org_code is None:
            organization = await OrganizationRepository(self.session).get_by_id(self.organization_id)
            if organization is None:
                raise NotFoundError("Organization", self.organization_id)
            self._org_code = organization.code
        value = await IdSequenceRepository(self.session).next_value(self.organization_id, TXN_SEQUENCE)
        return format_txn_id(self._org_code, value)

    async def create(
        self,
        *,
        resident_id: int,
        amount: Decimal,
        contract_id: int | None = None,
        description: str | None = None,
        support_item_code: str | None = None,
        occurred_at: datetime | None = None,
        source: TransactionSource = TransactionSource.MANUAL,
        automation_id: int | None = None,
        automation_run_id: int | None = None,
        created_by: str | None = None,
    ) -> TransactionModel:
        """
        Stage a draft transaction and draw its amount from the contract, if any.

        Raises:
            ItemProcessingError: Non-positive amount, unknown contract or insufficient balance
        """
        amount = to_money(amount)
        if amount <= 0:
            raise ItemProcessingError("Transaction amount must be greater than zero")

        if contract_id is not None:
            contract = await self.contract_repo.get_for_update(contract_id, self.organization_id)
            if contract is None:
                raise ItemProcessingError(f"Contract {contract_id} not found")
            if contract.resident_id != resident_id:
                raise ItemProcessingError(f"Contract {contract_id} does not belong to resident {resident_id}")
            balance = to_money(contract.current_balance or 0)
            if balance < amount:
                raise ItemProcessingError(f"Insufficient balance: {balance} available, {amount} required")
            contract.current_balance = balance - amount
            if support_item_code is None:
                support_item_code = contract.support_item_code

        transaction = TransactionModel(
            txn_id=await self.next_txn_id(),
            organization_id=self.organization_id,
            resident_id=resident_id,
            contract_id=contract_id,
            amount=amount,
            description=description,
            support_item_code=support_item_code,
            status=TransactionStatus.DRAFT.value,
            occurred_at=occurred_at or utcnow(),
            source=source.value,
            automation_id=automation_id,
            automation_run_id=automation_run_id,
            created_by=created_by,
        )
        return await self.repo.add(transaction)

    async def create_manual(self, data: dict, actor: str) -> TransactionModel:
        """Create a transaction from the API (commits)."""
        resident = await ResidentRepository(self.session).get_by_id(data["resident_id"], self.organization_id)
        if resident is None:
            raise NotFoundError("Resident", data["resident_id"])

        transaction = await self.create(**data, source=TransactionSource.MANUAL, created_by=actor)
        await self.session.commit()
        logger.info(format_log("Transaction created", txn_id=transaction.txn_id, amount=transaction.amount))
        return transaction

    async def get(self, transaction_id: int) -> TransactionModel:
        transaction = await self.repo.get_by_id(transaction_id, self.organization_id)
        if transaction is None:
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    async def post(self, transaction_id: int) -> TransactionModel:
        transaction = await self.get(transaction_id)
        if transaction.status != TransactionStatus.DRAFT.value:
            raise ConflictError(f"Only draft transactions can be posted (status is {transaction.status})")
        transaction.status = TransactionStatus.POSTED.value
        transaction.updated_at = utcnow()
        await self.session.commit()
        return transaction

    async def void(self, transaction_id: int) -> TransactionModel:
        """Void a transaction and give its amount back to the contract."""
        transaction = await self.get(transaction_id)
        if transaction.status == TransactionStatus.VOIDED.value:
            raise ConflictError("Transaction is already voided")

        if transaction.contract_id is not None:
            contract = await self.contract_repo.get_for_update(transaction.contract_id, self.organization_id)
            if contract is not None:
                contract.current_balance = to_money(contract.current_balance or 0) + to_money(transaction.amount)

        transaction.status = TransactionStatus.VOIDED.value
        transaction.updated_at = utcnow()
        await self.session.commit()
        logger.info(format_log("Transaction voided", txn_id=transaction.txn_id))
        return transaction
