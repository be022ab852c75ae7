from dataclasses import dataclass
from uuid import UUID, uuid4

import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from tests.fixtures.json_loader import TestDataLoader
from hera_gateway.depends import get_unit_of_work
from hera_gateway.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from hera_gateway.api.utils.jwt import create_access_token
from hera_gateway.domain.constants import PLATFORM_ORGANIZATION_ID
from hera_gateway.domain.entities import (
    CoreEntity,
    DynamicField,
    EntityRelationship,
    Organization,
)


@dataclass
class SeededTenant:
    organization_id: UUID
    actor_id: UUID
    external_user_id: str
    token: str

    def headers(self, **extra) -> dict:
        headers = {
            "Authorization": f"Bearer {self.token}",
            "X-Organization-Id": str(self.organization_id),
        }
        headers.update(extra)
        return headers


async def seed_organization(db_session, name: str) -> UUID:
    """Registry row plus the ORGANIZATION entity whose id equals the org id"""
    uow = SqlAlchemyUnitOfWork(db_session)
    async with uow:
        organization = await uow.organizations.create(
            Organization(organization_name=name, organization_code=name.upper())
        )
        await uow.entities.create(
            CoreEntity(
                id=organization.id,
                organization_id=organization.id,
                entity_type="ORGANIZATION",
                entity_name=name,
                smart_code="HERA.PLATFORM.ORG.ENTITY.v1",
            )
        )
        await uow.commit()
    return organization.id


async def seed_user(db_session, external_user_id: str) -> UUID:
    """Platform USER entity linked to a token subject"""
    uow = SqlAlchemyUnitOfWork(db_session)
    async with uow:
        user = await uow.entities.create(
            CoreEntity(
                organization_id=PLATFORM_ORGANIZATION_ID,
                entity_type="USER",
                entity_name=external_user_id,
                smart_code="HERA.PLATFORM.USER.ENTITY.v1",
            )
        )
        await uow.dynamic_fields.upsert(
            DynamicField(
                organization_id=PLATFORM_ORGANIZATION_ID,
                entity_id=user.id,
                field_name="external_user_id",
                field_type="text",
                field_value_text=external_user_id,
            )
        )
        await uow.commit()
    return user.id


async def seed_membership(db_session, actor_id: UUID, organization_id: UUID, is_active=True):
    uow = SqlAlchemyUnitOfWork(db_session)
    async with uow:
        await uow.relationships.create(
            EntityRelationship(
                organization_id=PLATFORM_ORGANIZATION_ID,
                source_entity_id=actor_id,
                target_entity_id=organization_id,
                relationship_type="MEMBER_OF",
                is_active=is_active,
            )
        )
        await uow.commit()


@pytest_asyncio.fixture
def test_data():
    return TestDataLoader()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def tenant(db_session) -> SeededTenant:
    """Organization with one member actor and a valid bearer token"""
    organization_id = await seed_organization(db_session, "Acme Salon")
    external_user_id = f"auth0|{uuid4().hex[:12]}"
    actor_id = await seed_user(db_session, external_user_id)
    await seed_membership(db_session, actor_id, organization_id)
    return SeededTenant(
        organization_id=organization_id,
        actor_id=actor_id,
        external_user_id=external_user_id,
        token=create_access_token(external_user_id),
    )


@pytest_asyncio.fixture
async def client(db_session):
    from httpx import ASGITransport
    from hera_gateway.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
