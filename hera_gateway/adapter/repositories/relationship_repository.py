from typing import List, Optional, Sequence
from uuid import UUID

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from hera_gateway.app.repositories.relationship_repository import IRelationshipRepository
from hera_gateway.domain.entities import EntityRelationship


class RelationshipRepository(IRelationshipRepository):
    """EntityRelationship repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_membership(
        self,
        actor_id: UUID,
        organization_id: UUID,
        relationship_types: Sequence[str],
        scope_organization_ids: Sequence[UUID],
    ) -> Optional[EntityRelationship]:
        """Get an active membership edge from actor to organization"""
        stmt = select(EntityRelationship).where(
            EntityRelationship.source_entity_id == actor_id,
            EntityRelationship.target_entity_id == organization_id,
            col(EntityRelationship.relationship_type).in_(list(relationship_types)),
            col(EntityRelationship.organization_id).in_(list(scope_organization_ids)),
            EntityRelationship.is_active == True,  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_active_memberships_for_actor(
        self, actor_id: UUID, relationship_types: Sequence[str]
    ) -> List[EntityRelationship]:
        """Get all active membership edges of an actor, oldest first"""
        stmt = (
            select(EntityRelationship)
            .where(
                EntityRelationship.source_entity_id == actor_id,
                col(EntityRelationship.relationship_type).in_(list(relationship_types)),
                EntityRelationship.is_active == True,  # noqa: E712
            )
            .order_by(col(EntityRelationship.created_at).asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_source_id(self, source_entity_id: UUID) -> List[EntityRelationship]:
        """Get all edges leaving an entity"""
        stmt = (
            select(EntityRelationship)
            .where(EntityRelationship.source_entity_id == source_entity_id)
            .order_by(col(EntityRelationship.created_at).asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find(
        self, source_entity_id: UUID, target_entity_id: UUID, relationship_type: str
    ) -> Optional[EntityRelationship]:
        """Get the edge of a type between two entities"""
        stmt = select(EntityRelationship).where(
            EntityRelationship.source_entity_id == source_entity_id,
            EntityRelationship.target_entity_id == target_entity_id,
            EntityRelationship.relationship_type == relationship_type,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create(self, relationship: EntityRelationship) -> EntityRelationship:
        """Create a new edge"""
        self.session.add(relationship)
        await self.session.flush()
        await self.session.refresh(relationship)
        return relationship

    async def update(self, relationship: EntityRelationship) -> EntityRelationship:
        """Update existing edge"""
        self.session.add(relationship)
        await self.session.flush()
        await self.session.refresh(relationship)
        return relationship
