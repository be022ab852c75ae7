from abc import ABC, abstractmethod

from hera_gateway.app.repositories.dynamic_field_repository import IDynamicFieldRepository
from hera_gateway.app.repositories.entity_repository import IEntityRepository
from hera_gateway.app.repositories.organization_repository import IOrganizationRepository
from hera_gateway.app.repositories.relationship_repository import IRelationshipRepository
from hera_gateway.app.repositories.transaction_line_repository import ITransactionLineRepository
from hera_gateway.app.repositories.transaction_repository import ITransactionRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - the atomic store seam.

    A dispatch writes header + children through the repositories and is
    acknowledged only once commit() returns.
    """

    # Repository properties (initialized in __aenter__)
    organizations: IOrganizationRepository
    entities: IEntityRepository
    dynamic_fields: IDynamicFieldRepository
    relationships: IRelationshipRepository
    transactions: ITransactionRepository
    transaction_lines: ITransactionLineRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
