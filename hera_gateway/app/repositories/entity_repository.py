from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from uuid import UUID

from hera_gateway.domain.entities import CoreEntity


class IEntityRepository(ABC):
    """CoreEntity repository interface - application layer"""

    @abstractmethod
    async def get_in_organizations(
        self, entity_id: UUID, organization_ids: Sequence[UUID]
    ) -> Optional[CoreEntity]:
        """Get entity by ID if it lives in one of the given organizations"""
        pass

    @abstractmethod
    async def get_user_by_external_id(self, external_user_id: str) -> Optional[CoreEntity]:
        """Get the platform USER entity linked to an external (token) user id"""
        pass

    @abstractmethod
    async def list_by_organization(
        self,
        organization_id: UUID,
        entity_type: Optional[str] = None,
        status: Optional[str] = None,
        smart_code: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[CoreEntity]:
        """List entities of one organization, newest first"""
        pass

    @abstractmethod
    async def create(self, entity: CoreEntity) -> CoreEntity:
        """Create a new entity"""
        pass

    @abstractmethod
    async def update(self, entity: CoreEntity) -> CoreEntity:
        """Update existing entity"""
        pass
