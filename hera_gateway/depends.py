from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from hera_gateway.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from hera_gateway.api.error import raise_for_error
from hera_gateway.app.guardrails import Guardrails, GuardrailPolicy
from hera_gateway.app.services.unit_of_work import UnitOfWork
from hera_gateway.app.use_cases.identity import RequestContext, ResolveContextUseCase

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

# Missing credentials are reported as invalid_token by the resolver
security = HTTPBearer(auto_error=False)

# Built once; validators only read it
guardrail_policy = GuardrailPolicy.from_config(ApplicationConfig)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_guardrails() -> Guardrails:
    return Guardrails.from_policy(guardrail_policy)


async def get_request_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_organization_id: Optional[str] = Header(default=None),
    uow: UnitOfWork = Depends(get_unit_of_work),
) -> RequestContext:
    """
    Dependency resolving the caller's actor and tenant.

    Args:
        credentials: Bearer token from Authorization header
        x_organization_id: Optional tenant hint header
        uow: Unit of work, shared with the route for this request

    Returns:
        RequestContext for the request

    Raises:
        ClientError: 401 for identity failures, 403 for tenant failures
    """
    token = credentials.credentials if credentials else None
    result = await ResolveContextUseCase(uow).execute(token, x_organization_id)
    if result.is_err():
        raise_for_error(result.error)
    return result.value
