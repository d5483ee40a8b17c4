"""Schemas for houses, residents and funding contracts."""

from .contract import ContractCreate, ContractResponse, ContractUpdate
from .house import HouseCreate, HouseResponse
from .resident import ResidentCreate, ResidentResponse, ResidentUpdate

__all__ = [
    "ContractCreate",
    "ContractResponse",
    "ContractUpdate",
    "HouseCreate",
    "HouseResponse",
    "ResidentCreate",
    "ResidentResponse",
    "ResidentUpdate",
]
