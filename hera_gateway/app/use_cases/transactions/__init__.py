"""
Transaction Use Cases

Dispatch over UniversalTransaction headers and their lines.
"""

from .dtos import (
    LineInput,
    TransactionCrudRequest,
    TransactionCrudResponse,
    TransactionData,
)
from .transaction_crud_use_case import TransactionCrudUseCase

__all__ = [
    "LineInput",
    "TransactionCrudRequest",
    "TransactionCrudResponse",
    "TransactionCrudUseCase",
    "TransactionData",
]
