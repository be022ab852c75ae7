from typing import List, Sequence
from uuid import UUID

from sqlalchemy import delete
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from hera_gateway.app.repositories.transaction_line_repository import ITransactionLineRepository
from hera_gateway.domain.entities import TransactionLine


class TransactionLineRepository(ITransactionLineRepository):
    """TransactionLine repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_transaction_id(self, transaction_id: UUID) -> List[TransactionLine]:
        """Get the lines of a transaction ordered by line_number"""
        stmt = (
            select(TransactionLine)
            .where(TransactionLine.transaction_id == transaction_id)
            .order_by(TransactionLine.line_number)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_many(self, lines: Sequence[TransactionLine]) -> List[TransactionLine]:
        """Create lines for a transaction"""
        self.session.add_all(list(lines))
        await self.session.flush()
        for line in lines:
            await self.session.refresh(line)
        return list(lines)

    async def delete_by_transaction_id(self, transaction_id: UUID) -> int:
        """Remove all lines of a transaction, returns the number removed"""
        stmt = delete(TransactionLine).where(TransactionLine.transaction_id == transaction_id)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount or 0
