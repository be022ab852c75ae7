from datetime import timedelta
from uuid import uuid4

import pytest
from httpx import AsyncClient

from hera_gateway.api.utils.jwt import create_access_token
from tests.integration.conftest import seed_membership, seed_organization, seed_user


@pytest.mark.asyncio
async def test_missing_token_is_401(client: AsyncClient, tenant, test_data):
    body = test_data.payload("create_customer", tenant.organization_id)

    response = await client.post(
        "/entities", json=body, headers={"X-Organization-Id": str(tenant.organization_id)}
    )

    assert response.status_code == 401
    assert response.json()["error"] == "invalid_token"


@pytest.mark.asyncio
async def test_expired_token_is_401(client: AsyncClient, tenant, test_data):
    token = create_access_token(tenant.external_user_id, expires_delta=timedelta(seconds=-1))
    body = test_data.payload("create_customer", tenant.organization_id)

    response = await client.post(
        "/entities",
        json=body,
        headers={**tenant.headers(), "Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_identity_is_401(client: AsyncClient, tenant, test_data):
    token = create_access_token("auth0|stranger")
    body = test_data.payload("create_customer", tenant.organization_id)

    response = await client.post(
        "/entities",
        json=body,
        headers={**tenant.headers(), "Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 401
    assert response.json()["error"] == "identity_not_resolved"


@pytest.mark.asyncio
async def test_organization_from_first_membership(client: AsyncClient, tenant, test_data):
    body = test_data.payload("create_customer", tenant.organization_id)

    response = await client.post(
        "/entities", json=body, headers={"Authorization": f"Bearer {tenant.token}"}
    )

    assert response.status_code == 200
    assert response.json()["data"]["organization_id"] == str(tenant.organization_id)


@pytest.mark.asyncio
async def test_unparseable_organization_header_is_403(client: AsyncClient, tenant, test_data):
    body = test_data.payload("create_customer", tenant.organization_id)

    response = await client.post(
        "/entities", json=body, headers=tenant.headers(**{"X-Organization-Id": "acme"})
    )

    assert response.status_code == 403
    assert response.json()["error"] == "no_organization_context"


@pytest.mark.asyncio
async def test_other_tenant_is_403(client: AsyncClient, tenant, test_data, db_session):
    """A valid USER with no membership in the target organization is refused"""
    other_org = await seed_organization(db_session, "Rival Spa")
    body = test_data.payload("create_customer", other_org)

    response = await client.post(
        "/entities", json=body, headers=tenant.headers(**{"X-Organization-Id": str(other_org)})
    )

    assert response.status_code == 403
    assert response.json()["error"] == "actor_not_member"


@pytest.mark.asyncio
async def test_inactive_membership_is_403(client: AsyncClient, db_session, test_data):
    organization_id = await seed_organization(db_session, "Dormant")
    actor_id = await seed_user(db_session, "auth0|dormant")
    await seed_membership(db_session, actor_id, organization_id, is_active=False)
    headers = {
        "Authorization": f"Bearer {create_access_token('auth0|dormant')}",
        "X-Organization-Id": str(organization_id),
    }

    response = await client.post(
        "/entities", json=test_data.payload("create_customer", organization_id), headers=headers
    )

    assert response.status_code == 403
    assert response.json()["error"] == "actor_not_member"


@pytest.mark.asyncio
@pytest.mark.parametrize("path, key", [("/entities", "create_customer"), ("/transactions", "balanced_journal")])
async def test_payload_for_another_organization_is_400(
    client: AsyncClient, tenant, test_data, path, key
):
    body = test_data.payload(key, uuid4())

    response = await client.post(path, json=body, headers=tenant.headers())

    assert response.status_code == 400
    assert response.json()["error"] == "ORG_FILTER_MISMATCH"


@pytest.mark.asyncio
async def test_payload_without_organization_is_400(client: AsyncClient, tenant, test_data):
    body = test_data.get_copy("create_customer")

    response = await client.post("/entities", json=body, headers=tenant.headers())

    assert response.status_code == 400
    assert response.json()["error"] == "ORG_FILTER_MISSING"


@pytest.mark.asyncio
async def test_missing_organization_entity_is_403(client: AsyncClient, tenant, test_data, db_session):
    """Membership edge to an organization id with no ORGANIZATION entity behind it"""
    ghost_org = uuid4()
    await seed_membership(db_session, tenant.actor_id, ghost_org)

    response = await client.post(
        "/entities",
        json=test_data.payload("create_customer", ghost_org),
        headers=tenant.headers(**{"X-Organization-Id": str(ghost_org)}),
    )

    assert response.status_code == 403
    assert response.json()["error"] == "ORGANIZATION_ENTITY_NOT_FOUND"


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient, tenant, test_data):
    body = test_data.get_copy("create_customer")

    response = await client.post(
        "/entities", json=body, headers=tenant.headers(**{"X-Request-Id": "req-123"})
    )

    assert response.headers["X-Request-Id"] == "req-123"
    assert response.json()["rid"] == "req-123"
