"""Recurring transaction runner: clones a template transaction on every run."""

from decimal import Decimal

from api.repositories.transaction_repos import TransactionRepository
from api.schemas.automation import RecurringTransactionParameters
from api.services.transaction_service import TransactionService
from api.shared.enums import TransactionSource
from api.shared.exceptions import ItemProcessingError

from .base import AutomationRunner, ItemTally


class RecurringTransactionRunner(AutomationRunner):
    async def load_items(self) -> list[int]:
        self.params = RecurringTransactionParameters.model_validate(self.parameters)
        self.created_txn_id: str | None = None
        self.amount = Decimal("0.00")
        return [self.params.template_transaction_id]

    def item_label(self, item: int) -> str:
        return f"template transaction {item}"

    async def process_item(self, item: int) -> None:
        template = await TransactionRepository(self.session).get_by_id(item, self.organization_id)
        if template is None:
            raise ItemProcessingError("template transaction not found")

        transaction = await TransactionService(self.session, self.organization_id).create(
            resident_id=template.resident_id,
            contract_id=template.contract_id,
            amount=template.amount,
            description=template.description,
            support_item_code=template.support_item_code,
            source=TransactionSource.AUTOMATION,
            automation_id=self.automation_id,
            automation_run_id=self.run_id,
            created_by=self.ctx.actor,
        )
        self.created_txn_id = transaction.txn_id
        self.amount = transaction.amount

    def extra_metrics(self) -> dict:
        return {
            "totalAmount": float(self.amount),
            "transactionIds": [self.created_txn_id] if self.created_txn_id else [],
        }

    def describe(self, tally: ItemTally) -> str:
        if self.created_txn_id:
            return f"Created {self.created_txn_id} for ${self.amount:,.2f}"
        return "No transaction created"
