from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from hera_gateway.app.guardrails import Guardrails, GuardrailPolicy
from hera_gateway.app.use_cases.identity import RequestContext
from hera_gateway.domain.constants import PLATFORM_ORGANIZATION_ID
from hera_gateway.domain.entities import CoreEntity, EntityRelationship


@pytest.fixture
def policy():
    return GuardrailPolicy.build()


@pytest.fixture
def guardrails(policy):
    return Guardrails.from_policy(policy)


@pytest.fixture
def mock_uow():
    """Mock UnitOfWork with all repositories"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.entities = MagicMock()
    uow.entities.get_in_organizations = AsyncMock(return_value=None)
    uow.entities.get_user_by_external_id = AsyncMock(return_value=None)
    uow.entities.list_by_organization = AsyncMock(return_value=[])
    uow.entities.create = AsyncMock(side_effect=lambda entity: entity)
    uow.entities.update = AsyncMock(side_effect=lambda entity: entity)

    uow.dynamic_fields = MagicMock()
    uow.dynamic_fields.get_by_entity_id = AsyncMock(return_value=[])
    uow.dynamic_fields.upsert = AsyncMock(side_effect=lambda field: field)
    uow.dynamic_fields.delete_by_names = AsyncMock(return_value=0)

    uow.relationships = MagicMock()
    uow.relationships.get_active_membership = AsyncMock(return_value=None)
    uow.relationships.get_active_memberships_for_actor = AsyncMock(return_value=[])
    uow.relationships.get_by_source_id = AsyncMock(return_value=[])
    uow.relationships.find = AsyncMock(return_value=None)
    uow.relationships.create = AsyncMock(side_effect=lambda rel: rel)
    uow.relationships.update = AsyncMock(side_effect=lambda rel: rel)

    uow.transactions = MagicMock()
    uow.transactions.get_in_organization = AsyncMock(return_value=None)
    uow.transactions.list_by_organization = AsyncMock(return_value=[])
    uow.transactions.create = AsyncMock(side_effect=lambda txn: txn)
    uow.transactions.update = AsyncMock(side_effect=lambda txn: txn)

    uow.transaction_lines = MagicMock()
    uow.transaction_lines.get_by_transaction_id = AsyncMock(return_value=[])
    uow.transaction_lines.create_many = AsyncMock(side_effect=lambda lines: list(lines))
    uow.transaction_lines.delete_by_transaction_id = AsyncMock(return_value=0)

    return uow


@pytest.fixture
def tenant():
    """Actor USER entity, ORGANIZATION entity and their membership edge"""
    organization_id = uuid4()
    actor = CoreEntity(
        id=uuid4(),
        organization_id=PLATFORM_ORGANIZATION_ID,
        entity_type="USER",
        entity_name="Test User",
        smart_code="HERA.PLATFORM.USER.ENTITY.v1",
    )
    organization = CoreEntity(
        id=organization_id,
        organization_id=organization_id,
        entity_type="ORGANIZATION",
        entity_name="Acme",
        smart_code="HERA.PLATFORM.ORG.ENTITY.v1",
    )
    membership = EntityRelationship(
        id=uuid4(),
        organization_id=PLATFORM_ORGANIZATION_ID,
        source_entity_id=actor.id,
        target_entity_id=organization_id,
        relationship_type="MEMBER_OF",
    )
    return {
        "organization_id": organization_id,
        "actor": actor,
        "organization": organization,
        "membership": membership,
        "context": RequestContext(
            actor_id=actor.id,
            organization_id=organization_id,
            external_user_id="ext-user-1",
            organization_source="header",
        ),
    }


@pytest.fixture
def member_uow(mock_uow, tenant):
    """mock_uow where the tenant's actor passes every actor check"""
    entities = {tenant["actor"].id: tenant["actor"], tenant["organization_id"]: tenant["organization"]}

    async def get_in_organizations(entity_id, organization_ids):
        return entities.get(entity_id)

    mock_uow.entities.get_in_organizations.side_effect = get_in_organizations
    mock_uow.relationships.get_active_membership.return_value = tenant["membership"]
    return mock_uow
