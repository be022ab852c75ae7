from abc import ABC, abstractmethod
from typing import List, Sequence
from uuid import UUID

from hera_gateway.domain.entities import DynamicField


class IDynamicFieldRepository(ABC):
    """DynamicField repository interface - application layer"""

    @abstractmethod
    async def get_by_entity_id(self, entity_id: UUID) -> List[DynamicField]:
        """Get all dynamic fields owned by an entity"""
        pass

    @abstractmethod
    async def upsert(self, field: DynamicField) -> DynamicField:
        """Create the field, or replace the value of the same-named field"""
        pass

    @abstractmethod
    async def delete_by_names(self, entity_id: UUID, field_names: Sequence[str]) -> int:
        """Remove named fields from their owner, returns the number removed"""
        pass
