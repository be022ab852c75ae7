from typing import List, Optional, Sequence
from uuid import UUID

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from hera_gateway.app.repositories.entity_repository import IEntityRepository
from hera_gateway.domain.constants import (
    EXTERNAL_USER_ID_FIELD,
    PLATFORM_ORGANIZATION_ID,
    USER_ENTITY_TYPE,
)
from hera_gateway.domain.entities import CoreEntity, DynamicField


class EntityRepository(IEntityRepository):
    """CoreEntity repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_in_organizations(
        self, entity_id: UUID, organization_ids: Sequence[UUID]
    ) -> Optional[CoreEntity]:
        """Get entity by ID if it lives in one of the given organizations"""
        stmt = select(CoreEntity).where(
            CoreEntity.id == entity_id,
            col(CoreEntity.organization_id).in_(list(organization_ids)),
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_user_by_external_id(self, external_user_id: str) -> Optional[CoreEntity]:
        """Get the platform USER entity linked to an external (token) user id"""
        stmt = (
            select(CoreEntity)
            .join(DynamicField, DynamicField.entity_id == CoreEntity.id)
            .where(
                DynamicField.field_name == EXTERNAL_USER_ID_FIELD,
                DynamicField.field_value_text == external_user_id,
                CoreEntity.organization_id == PLATFORM_ORGANIZATION_ID,
                CoreEntity.entity_type == USER_ENTITY_TYPE,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

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
        stmt = select(CoreEntity).where(CoreEntity.organization_id == organization_id)
        if entity_type is not None:
            stmt = stmt.where(CoreEntity.entity_type == entity_type)
        if status is not None:
            stmt = stmt.where(CoreEntity.status == status)
        if smart_code is not None:
            stmt = stmt.where(CoreEntity.smart_code == smart_code)
        stmt = stmt.order_by(col(CoreEntity.created_at).desc()).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, entity: CoreEntity) -> CoreEntity:
        """Create a new entity"""
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def update(self, entity: CoreEntity) -> CoreEntity:
        """Update existing entity"""
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity
