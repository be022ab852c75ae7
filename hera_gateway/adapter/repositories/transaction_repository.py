from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from hera_gateway.app.repositories.transaction_repository import ITransactionRepository
from hera_gateway.domain.entities import UniversalTransaction


class TransactionRepository(ITransactionRepository):
    """UniversalTransaction repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_in_organization(
        self, transaction_id: UUID, organization_id: UUID
    ) -> Optional[UniversalTransaction]:
        """Get a transaction header of one organization"""
        stmt = select(UniversalTransaction).where(
            UniversalTransaction.id == transaction_id,
            UniversalTransaction.organization_id == organization_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

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
        stmt = select(UniversalTransaction).where(
            UniversalTransaction.organization_id == organization_id
        )
        if transaction_type is not None:
            stmt = stmt.where(UniversalTransaction.transaction_type == transaction_type)
        if status is not None:
            stmt = stmt.where(UniversalTransaction.transaction_status == status)
        if smart_code is not None:
            stmt = stmt.where(UniversalTransaction.smart_code == smart_code)
        if date_from is not None:
            stmt = stmt.where(col(UniversalTransaction.transaction_date) >= date_from)
        if date_to is not None:
            stmt = stmt.where(col(UniversalTransaction.transaction_date) <= date_to)
        stmt = (
            stmt.order_by(col(UniversalTransaction.transaction_date).desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, transaction: UniversalTransaction) -> UniversalTransaction:
        """Create a new transaction header"""
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def update(self, transaction: UniversalTransaction) -> UniversalTransaction:
        """Update existing transaction header"""
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction
