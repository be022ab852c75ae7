import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from hera_gateway.api.error import raise_for_error
from hera_gateway.app.guardrails import Guardrails
from hera_gateway.app.services.unit_of_work import UnitOfWork
from hera_gateway.app.use_cases.entities import EntityCrudRequest
from hera_gateway.app.use_cases.identity import RequestContext
from hera_gateway.app.use_cases.transactions import TransactionCrudRequest
from hera_gateway.depends import get_guardrails, get_request_context, get_unit_of_work
from hera_gateway.domain.entities import EntityFamily
from hera_gateway.libs.result import Error

from .entities import dispatch_entities
from .transactions import dispatch_transactions

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Command"])


@router.post("/command")
async def command(
    body: Dict[str, Any] = Body(...),
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    guardrails: Guardrails = Depends(get_guardrails),
    x_idempotency_key: Optional[str] = Header(default=None),
):
    """
    Single-endpoint dispatch: {"op": "entities" | "transactions", ...}

    The rest of the body is exactly what the family endpoint accepts.

    Raises:
        - 404 Not Found: unknown op (route_not_found)
        - otherwise as POST /entities and POST /transactions
    """
    payload = dict(body)
    op = payload.pop("op", None)
    try:
        family = EntityFamily(op)
    except ValueError:
        raise_for_error(Error("route_not_found", f"Unknown command op: {op!r}"))

    try:
        if family == EntityFamily.entities:
            request = EntityCrudRequest.model_validate(payload)
        else:
            request = TransactionCrudRequest.model_validate(payload)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())

    if family == EntityFamily.entities:
        response = await dispatch_entities(request, context, uow, guardrails, x_idempotency_key)
    else:
        response = await dispatch_transactions(
            request, context, uow, guardrails, x_idempotency_key
        )
    return response.model_dump()
