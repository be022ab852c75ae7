from typing import List, Sequence
from uuid import UUID

from sqlalchemy import delete
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from hera_gateway.app.repositories.dynamic_field_repository import IDynamicFieldRepository
from hera_gateway.domain.entities import DynamicField
from hera_gateway.domain.field_value import VALUE_SLOTS


class DynamicFieldRepository(IDynamicFieldRepository):
    """DynamicField repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_entity_id(self, entity_id: UUID) -> List[DynamicField]:
        """Get all dynamic fields owned by an entity"""
        stmt = (
            select(DynamicField)
            .where(DynamicField.entity_id == entity_id)
            .order_by(DynamicField.field_name)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def upsert(self, field: DynamicField) -> DynamicField:
        """Create the field, or replace the value of the same-named field"""
        stmt = select(DynamicField).where(
            DynamicField.entity_id == field.entity_id,
            DynamicField.field_name == field.field_name,
        )
        result = await self.session.execute(stmt)
        existing = result.scalar_one_or_none()

        if existing is None:
            self.session.add(field)
            target = field
        else:
            # Clear every slot first so exactly one stays populated
            for slot in VALUE_SLOTS:
                setattr(existing, slot, getattr(field, slot))
            existing.field_type = field.field_type
            existing.smart_code = field.smart_code
            self.session.add(existing)
            target = existing

        await self.session.flush()
        await self.session.refresh(target)
        return target

    async def delete_by_names(self, entity_id: UUID, field_names: Sequence[str]) -> int:
        """Remove named fields from their owner, returns the number removed"""
        if not field_names:
            return 0
        stmt = delete(DynamicField).where(
            DynamicField.entity_id == entity_id,
            col(DynamicField.field_name).in_(list(field_names)),
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount or 0
