from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from hera_gateway.domain.entities import UniversalTransaction


class ITransactionRepository(ABC):
    """UniversalTransaction repository interface - application layer"""

    @abstractmethod
    async def get_in_organization(
        self, transaction_id: UUID, organization_id: UUID
    ) -> Optional[UniversalTransaction]:
        """Get a transaction header of one organization"""
        pass

    @abstractmethod
    async def list_by_organization(
        self,
        organization_id: UUID,
        transaction_type: Optional[str] = None,
        status: Optional[str] = None,
        smart_code: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[UniversalTransaction]:
        """List transaction headers of one organization, newest first"""
        pass

    @abstractmethod
    async def create(self, transaction: UniversalTransaction) -> UniversalTransaction:
        """Create a new transaction header"""
        pass

    @abstractmethod
    async def update(self, transaction: UniversalTransaction) -> UniversalTransaction:
        """Update existing transaction header"""
        pass
