from uuid import uuid4

import pytest

from hera_gateway.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from hera_gateway.domain.constants import PLATFORM_ORGANIZATION_ID
from hera_gateway.domain.entities import CoreEntity
from tests.integration.conftest import seed_organization


@pytest.mark.asyncio
async def test_organization_registry_matches_entity(db_session):
    organization_id = await seed_organization(db_session, "Registry Spa")

    uow = SqlAlchemyUnitOfWork(db_session)
    async with uow:
        organization = await uow.organizations.get_by_id(organization_id)
        entity = await uow.entities.get_in_organizations(organization_id, [organization_id])

    assert organization.organization_name == "Registry Spa"
    assert entity.entity_type == "ORGANIZATION"


@pytest.mark.asyncio
async def test_entity_lookup_is_scoped_to_organizations(db_session):
    organization_id = await seed_organization(db_session, "Scoped Spa")

    uow = SqlAlchemyUnitOfWork(db_session)
    async with uow:
        customer = await uow.entities.create(
            CoreEntity(
                organization_id=organization_id,
                entity_type="CUSTOMER",
                entity_name="Layla",
                smart_code="HERA.SALON.CRM.CUSTOMER.v1",
            )
        )
        await uow.commit()

    async with uow:
        visible = await uow.entities.get_in_organizations(customer.id, [organization_id])
        hidden = await uow.entities.get_in_organizations(
            customer.id, [PLATFORM_ORGANIZATION_ID, uuid4()]
        )
        assert await uow.organizations.get_by_id(uuid4()) is None

    assert visible is not None
    assert hidden is None
