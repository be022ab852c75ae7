from typing import Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from hera_gateway.app.repositories.organization_repository import IOrganizationRepository
from hera_gateway.domain.entities import Organization


class OrganizationRepository(IOrganizationRepository):
    """Organization repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, organization_id: UUID) -> Optional[Organization]:
        """Get organization by ID"""
        stmt = select(Organization).where(Organization.id == organization_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, organization: Organization) -> Organization:
        """Create a new organization"""
        self.session.add(organization)
        await self.session.flush()
        await self.session.refresh(organization)
        return organization
