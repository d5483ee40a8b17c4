"""Schemas for transactions and notifications."""

from .notification import NotificationResponse
from .transaction import TransactionCreate, TransactionResponse

__all__ = ["NotificationResponse", "TransactionCreate", "TransactionResponse"]
