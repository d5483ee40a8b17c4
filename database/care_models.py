"""Database models for houses, residents and funding contracts."""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from database.models import Base
from utils.date_utils import utcnow


class HouseModel(Base):
    """Property where residents live."""

    __tablename__ = "houses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    address = Column(String(500), nullable=False)
    suburb = Column(String(100), nullable=True)
    state = Column(String(20), nullable=True)
    postcode = Column(String(10), nullable=True)
    bedrooms = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default="active", nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    residents = relationship("ResidentModel", back_populates="house")

    @property
    def full_address(self) -> str:
        parts = [self.address, self.suburb, self.state, self.postcode]
        return ", ".join(part for part in parts if part)

    def __repr__(self):
        return f"<House(id={self.id}, name='{self.name}')>"


class ResidentModel(Base):
    """Person receiving care, funded by one or more contracts."""

    __tablename__ = "residents"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    house_id = Column(Integer, ForeignKey("houses.id", ondelete="SET NULL"), nullable=True, index=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    status = Column(String(20), default="active", nullable=False)
    ndis_number = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    house = relationship("HouseModel", back_populates="residents")
    contracts = relationship("FundingContractModel", back_populates="resident", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<Resident(id={self.id}, name='{self.full_name}', status={self.status})>"


class FundingContractModel(Base):
    """Funding contract whose balance is drawn down by automated billing runs."""

    __tablename__ = "funding_contracts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    resident_id = Column(Integer, ForeignKey("residents.id", ondelete="CASCADE"), nullable=False, index=True)

    contract_type = Column(String(50), default="NDIS", nullable=False)
    contract_status = Column(String(20), default="draft", nullable=False, index=True)
    description = Column(Text, nullable=True)

    original_amount = Column(Numeric(12, 2), nullable=False)
    current_balance = Column(Numeric(12, 2), nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    auto_billing_enabled = Column(Boolean, default=True, nullable=False)
    drawdown_frequency = Column(String(20), default="daily", nullable=True)
    next_run_date = Column(Date, nullable=True, index=True)
    daily_support_item_cost = Column(Numeric(12, 2), nullable=True)
    support_item_code = Column(String(50), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    resident = relationship("ResidentModel", back_populates="contracts")

    def __repr__(self):
        return (
            f"<FundingContract(id={self.id}, resident_id={self.resident_id}, "
            f"status={self.contract_status}, balance={self.current_balance})>"
        )
