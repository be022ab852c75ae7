from abc import ABC, abstractmethod
from typing import List, Sequence
from uuid import UUID

from hera_gateway.domain.entities import TransactionLine


class ITransactionLineRepository(ABC):
    """TransactionLine repository interface - application layer"""

    @abstractmethod
    async def get_by_transaction_id(self, transaction_id: UUID) -> List[TransactionLine]:
        """Get the lines of a transaction ordered by line_number"""
        pass

    @abstractmethod
    async def create_many(self, lines: Sequence[TransactionLine]) -> List[TransactionLine]:
        """Create lines for a transaction"""
        pass

    @abstractmethod
    async def delete_by_transaction_id(self, transaction_id: UUID) -> int:
        """Remove all lines of a transaction, returns the number removed"""
        pass
