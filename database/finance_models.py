"""Database models for transactions and durable identifier sequences."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text

from database.models import Base
from utils.date_utils import utcnow


class TransactionModel(Base):
    """Charge against a resident, optionally drawn from a funding contract."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    txn_id = Column(String(32), nullable=False, unique=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    resident_id = Column(Integer, ForeignKey("residents.id", ondelete="CASCADE"), nullable=False, index=True)
    contract_id = Column(Integer, ForeignKey("funding_contracts.id", ondelete="SET NULL"), nullable=True, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=True)
    support_item_code = Column(String(50), nullable=True)
    status = Column(String(20), default="draft", nullable=False, index=True)
    occurred_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    source = Column(String(20), default="manual", nullable=False)
    automation_id = Column(Integer, ForeignKey("automations.id", ondelete="SET NULL"), nullable=True)
    automation_run_id = Column(Integer, ForeignKey("automation_runs.id", ondelete="SET NULL"), nullable=True)
    created_by = Column(String(100), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Transaction(txn_id='{self.txn_id}', amount={self.amount}, status={self.status})>"


class IdSequenceModel(Base):
    """Per-organization counter; incremented inside the transaction that consumes the value."""

    __tablename__ = "id_sequences"

    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True)
    name = Column(String(50), primary_key=True)
    last_value = Column(Integer, default=0, nullable=False)
