import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, status

from hera_gateway.api.error import SERVER_CODES, raise_for_error
from hera_gateway.api.metrics import record_dispatch, record_guardrail_rejection
from hera_gateway.app.guardrails import Guardrails
from hera_gateway.app.services.unit_of_work import UnitOfWork
from hera_gateway.app.use_cases.identity import RequestContext
from hera_gateway.app.use_cases.transactions import (
    TransactionCrudRequest,
    TransactionCrudResponse,
    TransactionCrudUseCase,
)
from hera_gateway.depends import get_guardrails, get_request_context, get_unit_of_work

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Transactions"])


async def dispatch_transactions(
    request: TransactionCrudRequest,
    context: RequestContext,
    uow: UnitOfWork,
    guardrails: Guardrails,
    idempotency_key: Optional[str] = None,
) -> TransactionCrudResponse:
    """Run transaction dispatch and translate its Result for HTTP"""
    if idempotency_key:
        logger.info(f"Transaction dispatch idempotency key: {idempotency_key}")

    use_case = TransactionCrudUseCase(uow, guardrails)
    result = await use_case.execute(context, request)

    operation = request.operation.value
    if result.is_err():
        error = result.error
        record_dispatch("transactions", operation, error.code)
        if error.code not in SERVER_CODES:
            record_guardrail_rejection(error.code)
        raise_for_error(error)

    record_dispatch("transactions", operation, "ok")
    return result.value


@router.post(
    "/transactions", status_code=status.HTTP_200_OK, response_model=TransactionCrudResponse
)
async def transactions(
    request: TransactionCrudRequest,
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    guardrails: Guardrails = Depends(get_guardrails),
    x_idempotency_key: Optional[str] = Header(default=None),
):
    """
    Transaction CRUD dispatch

    Raises:
        - 400 Bad Request: guardrail or payload rejection
        - 401 Unauthorized: invalid token or unknown identity
        - 403 Forbidden: no tenant context, not a member, actor integrity
        - 404 Not Found: TRANSACTION_NOT_FOUND
        - 500 Internal Server Error: STORE_ERROR
    """
    return await dispatch_transactions(request, context, uow, guardrails, x_idempotency_key)
