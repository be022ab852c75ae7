from sqlmodel.ext.asyncio.session import AsyncSession

from hera_gateway.adapter.repositories.dynamic_field_repository import DynamicFieldRepository
from hera_gateway.adapter.repositories.entity_repository import EntityRepository
from hera_gateway.adapter.repositories.organization_repository import OrganizationRepository
from hera_gateway.adapter.repositories.relationship_repository import RelationshipRepository
from hera_gateway.adapter.repositories.transaction_line_repository import TransactionLineRepository
from hera_gateway.adapter.repositories.transaction_repository import TransactionRepository
from hera_gateway.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.organizations = OrganizationRepository(self.session)
        self.entities = EntityRepository(self.session)
        self.dynamic_fields = DynamicFieldRepository(self.session)
        self.relationships = RelationshipRepository(self.session)
        self.transactions = TransactionRepository(self.session)
        self.transaction_lines = TransactionLineRepository(self.session)
        return self

    async def __aexit__(self, *args):
        # No-op after a successful commit; discards anything uncommitted
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
