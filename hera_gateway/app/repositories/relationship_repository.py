from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from uuid import UUID

from hera_gateway.domain.entities import EntityRelationship


class IRelationshipRepository(ABC):
    """EntityRelationship repository interface - application layer"""

    @abstractmethod
    async def get_active_membership(
        self,
        actor_id: UUID,
        organization_id: UUID,
        relationship_types: Sequence[str],
        scope_organization_ids: Sequence[UUID],
    ) -> Optional[EntityRelationship]:
        """Get an active membership edge from actor to organization"""
        pass

    @abstractmethod
    async def get_active_memberships_for_actor(
        self, actor_id: UUID, relationship_types: Sequence[str]
    ) -> List[EntityRelationship]:
        """Get all active membership edges of an actor, oldest first"""
        pass

    @abstractmethod
    async def get_by_source_id(self, source_entity_id: UUID) -> List[EntityRelationship]:
        """Get all edges leaving an entity"""
        pass

    @abstractmethod
    async def find(
        self, source_entity_id: UUID, target_entity_id: UUID, relationship_type: str
    ) -> Optional[EntityRelationship]:
        """Get the edge of a type between two entities"""
        pass

    @abstractmethod
    async def create(self, relationship: EntityRelationship) -> EntityRelationship:
        """Create a new edge"""
        pass

    @abstractmethod
    async def update(self, relationship: EntityRelationship) -> EntityRelationship:
        """Update existing edge"""
        pass
