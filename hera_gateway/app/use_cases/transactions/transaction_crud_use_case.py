"""
Transaction CRUD Use Case

Dispatches CREATE / READ / UPDATE / DELETE / ARCHIVE over
UniversalTransaction headers and their lines. Header and lines are written
in one unit of work, after smart-code and GL balance checks pass.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from hera_gateway.app.guardrails import GLBalanceReport, Guardrails
from hera_gateway.app.guardrails.conditions import ConditionError
from hera_gateway.app.guardrails.gl_balance import is_gl_line
from hera_gateway.app.guardrails.posting_rules import REJECTED, PostingRule
from hera_gateway.app.services.actor_requirement import enforce_actor_requirement
from hera_gateway.app.services.unit_of_work import UnitOfWork
from hera_gateway.app.use_cases.common import serialize_transaction, store_error
from hera_gateway.app.use_cases.identity import RequestContext
from hera_gateway.domain.entities import (
    CrudOperation,
    TransactionLine,
    TransactionStatus,
    UniversalTransaction,
)
from hera_gateway.libs.result import Error, Result, Return

from .dtos import LineInput, TransactionCrudRequest, TransactionCrudResponse

logger = logging.getLogger(__name__)

TXN_TYPE_REQUIRED = "TXN_TYPE_REQUIRED"
TRANSACTION_ID_REQUIRED = "TRANSACTION_ID_REQUIRED"
TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
DYNAMIC_FIELDS_NOT_SUPPORTED = "DYNAMIC_FIELDS_NOT_SUPPORTED"
INVALID_POSTING_RULE = "INVALID_POSTING_RULE"
POSTING_RULE_REJECTED = "POSTING_RULE_REJECTED"
INVALID_STATUS = "INVALID_STATUS"
NEGATIVE_TOTAL_AMOUNT = "NEGATIVE_TOTAL_AMOUNT"
TOTAL_AMOUNT_MISMATCH = "TOTAL_AMOUNT_MISMATCH"
STATUS_TRANSITION_NOT_ALLOWED = "STATUS_TRANSITION_NOT_ALLOWED"


def business_total(lines: Sequence[Any]) -> Optional[Decimal]:
    """Sum of the non-GL lines, None when every line is a GL line"""
    business = [line for line in lines if not is_gl_line(line)]
    if not business:
        return None
    return sum((Decimal(str(line.line_amount or 0)) for line in business), Decimal("0"))


def default_total(lines: Sequence[Any]) -> float:
    """Sum of the business (non-GL) lines, or the debit side of a pure journal"""
    business = business_total(lines)
    if business is not None:
        return float(business)
    return float(
        sum(Decimal(str(line.line_amount or 0)) for line in lines if line.side == "DR")
    )


class TransactionCrudUseCase:
    """
    Use case for transaction dispatch.

    Business Rules:
    - Payload organization_id must equal the caller's tenant
    - Header and every line carry a valid smart code
    - GL lines balance per currency within the policy tolerance
    - A given total_amount is non-negative and matches the business lines
    - Optional posting rule decides posted / staged / rejected
    - Only a posting rule posts; UPDATE cannot move a document to posted
    - Dynamic fields belong to entities and are refused here
    - Lines are replaced as a set on UPDATE, and only when given
    - One commit per call; a store failure rolls everything back
    """

    def __init__(self, uow: UnitOfWork, guardrails: Guardrails):
        self.uow = uow
        self.guardrails = guardrails

    async def execute(
        self, context: RequestContext, request: TransactionCrudRequest
    ) -> Result[TransactionCrudResponse]:
        """
        Execute transaction dispatch.

        Args:
            context: Resolved actor and tenant
            request: Parsed POST /transactions body

        Returns:
            Result with TransactionCrudResponse DTO, or Error
        """
        scope = self.guardrails.org_scope.enforce(
            context.organization_id, request.model_dump()
        )
        if scope.is_err():
            return scope

        if request.dynamic_fields:
            return Return.err(
                Error(
                    DYNAMIC_FIELDS_NOT_SUPPORTED,
                    "Dynamic fields are stored on entities, not on transactions",
                )
            )

        operation = request.operation
        logger.info(
            f"Transaction dispatch {operation.value} org={context.organization_id} "
            f"actor={context.actor_id}"
        )

        handlers = {
            CrudOperation.CREATE: self._create,
            CrudOperation.READ: self._read,
            CrudOperation.UPDATE: self._update,
            CrudOperation.DELETE: self._delete,
            CrudOperation.ARCHIVE: self._archive,
        }
        try:
            return await handlers[operation](context, request)
        except SQLAlchemyError as exc:
            return Return.err(store_error(exc, f"transactions.{operation.value.lower()}"))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate_lines(
        self, lines: List[LineInput], document_currency: Optional[str]
    ) -> Result[GLBalanceReport]:
        for index, line in enumerate(lines):
            checked = self.guardrails.smart_codes.validate(
                line.smart_code, location=f"lines[{index}].smart_code"
            )
            if checked.is_err():
                return checked
        return self.guardrails.gl_balance.validate(
            [line.model_dump() for line in lines], document_currency
        )

    def _check_total(self, total_amount: float, lines: Sequence[Any]) -> Result[None]:
        total = Decimal(str(total_amount))
        if total < 0:
            return Return.err(
                Error(
                    NEGATIVE_TOTAL_AMOUNT,
                    f"total_amount cannot be negative: {total_amount}",
                    {"total_amount": total_amount},
                )
            )

        expected = business_total(lines)
        tolerance = self.guardrails.gl_balance.policy.gl_tolerance
        if expected is not None and abs(total - expected) > tolerance:
            return Return.err(
                Error(
                    TOTAL_AMOUNT_MISMATCH,
                    f"total_amount {total_amount} does not match line total {expected}",
                    {"total_amount": total_amount, "line_total": float(expected)},
                )
            )
        return Return.ok(None)

    def _posting_outcome(
        self,
        request: TransactionCrudRequest,
        transaction_type: str,
        total_amount: float,
        currency: Optional[str],
        line_count: int,
    ) -> Result[Optional[str]]:
        rule_payload = request.options.posting_rule
        if not rule_payload:
            return Return.ok(None)
        try:
            rule = PostingRule.from_payload(rule_payload)
        except ConditionError as exc:
            return Return.err(Error(INVALID_POSTING_RULE, f"Invalid posting rule: {exc}"))

        variables: Dict[str, Any] = {
            "total_amount": total_amount,
            "line_count": line_count,
            "transaction_type": transaction_type,
            "currency": currency,
            "ai_confidence": request.options.ai_confidence,
        }
        outcome = rule.evaluate(variables)
        if outcome == REJECTED:
            return Return.err(
                Error(
                    POSTING_RULE_REJECTED,
                    "Transaction rejected by its posting rule",
                    {"variables": variables},
                )
            )
        return Return.ok(outcome)

    def _build_lines(
        self, context: RequestContext, transaction_id, lines: List[LineInput]
    ) -> List[TransactionLine]:
        return [
            TransactionLine(
                organization_id=context.organization_id,
                transaction_id=transaction_id,
                line_number=line.line_number or index,
                line_type=line.line_type,
                description=line.description,
                smart_code=line.smart_code,
                entity_id=line.entity_id,
                quantity=line.quantity,
                unit_amount=line.unit_amount,
                line_amount=line.line_amount,
                side=line.side,
                transaction_currency_code=line.transaction_currency_code,
                line_data=line.line_data,
            )
            for index, line in enumerate(lines, start=1)
        ]

    async def _snapshot(
        self, transaction: UniversalTransaction, include_lines: bool
    ) -> Dict[str, Any]:
        if not include_lines:
            return serialize_transaction(transaction)
        lines = await self.uow.transaction_lines.get_by_transaction_id(transaction.id)
        report = self.guardrails.gl_balance.summarize(
            lines, transaction.transaction_currency_code
        )
        return serialize_transaction(transaction, lines, report.to_dict())

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def _create(
        self, context: RequestContext, request: TransactionCrudRequest
    ) -> Result[TransactionCrudResponse]:
        data = request.transaction_data
        if not data.transaction_type:
            return Return.err(
                Error(TXN_TYPE_REQUIRED, "transaction_data.transaction_type is required")
            )

        smart_code = self.guardrails.smart_codes.validate(
            data.smart_code,
            required_prefix=request.options.required_smart_code_prefix,
            location="transaction_data.smart_code",
        )
        if smart_code.is_err():
            return smart_code

        lines = request.lines or []
        balance = self._validate_lines(lines, data.transaction_currency_code)
        if balance.is_err():
            return balance

        if data.total_amount is not None:
            total_check = self._check_total(data.total_amount, lines)
            if total_check.is_err():
                return total_check

        total_amount = (
            data.total_amount if data.total_amount is not None else default_total(lines)
        )
        outcome = self._posting_outcome(
            request,
            data.transaction_type,
            total_amount,
            data.transaction_currency_code,
            len(lines),
        )
        if outcome.is_err():
            return outcome
        status = outcome.value or TransactionStatus.active.value

        async with self.uow:
            actor_check = await enforce_actor_requirement(
                self.uow, context.actor_id, context.organization_id, "transactions.create"
            )
            if actor_check.is_err():
                return actor_check

            transaction = UniversalTransaction(
                organization_id=context.organization_id,
                transaction_type=data.transaction_type,
                transaction_code=data.transaction_code,
                smart_code=smart_code.value,
                total_amount=total_amount,
                transaction_currency_code=data.transaction_currency_code,
                transaction_status=status,
                source_entity_id=data.source_entity_id,
                target_entity_id=data.target_entity_id,
                transaction_metadata=data.metadata,
                created_by=context.actor_id,
                updated_by=context.actor_id,
            )
            if data.transaction_date is not None:
                transaction.transaction_date = data.transaction_date
            transaction = await self.uow.transactions.create(transaction)

            rows = await self.uow.transaction_lines.create_many(
                self._build_lines(context, transaction.id, lines)
            )
            snapshot = serialize_transaction(transaction, rows, balance.value.to_dict())
            await self.uow.commit()

        logger.info(
            f"Transaction created: {transaction.id} ({transaction.transaction_type}, "
            f"{len(rows)} lines, {status})"
        )
        return Return.ok(
            TransactionCrudResponse(
                operation="CREATE",
                transaction_id=str(transaction.id),
                posting_outcome=outcome.value,
                data=snapshot,
            )
        )

    async def _read(
        self, context: RequestContext, request: TransactionCrudRequest
    ) -> Result[TransactionCrudResponse]:
        data = request.transaction_data
        options = request.options

        async with self.uow:
            actor_check = await enforce_actor_requirement(
                self.uow, context.actor_id, context.organization_id, "transactions.read"
            )
            if actor_check.is_err():
                return actor_check

            if data.transaction_id is not None:
                transaction = await self.uow.transactions.get_in_organization(
                    data.transaction_id, context.organization_id
                )
                if transaction is None:
                    return Return.err(
                        Error(
                            TRANSACTION_NOT_FOUND,
                            f"Transaction {data.transaction_id} not found",
                        )
                    )
                snapshot = await self._snapshot(transaction, options.include_lines)
                return Return.ok(
                    TransactionCrudResponse(
                        operation="READ", transaction_id=str(transaction.id), data=snapshot
                    )
                )

            transactions = await self.uow.transactions.list_by_organization(
                context.organization_id,
                transaction_type=data.transaction_type,
                status=data.transaction_status,
                smart_code=data.smart_code,
                date_from=options.date_from,
                date_to=options.date_to,
                limit=options.limit,
                offset=options.offset,
            )
            items = [
                await self._snapshot(transaction, options.include_lines)
                for transaction in transactions
            ]

        return Return.ok(
            TransactionCrudResponse(operation="READ", items=items, count=len(items))
        )

    async def _update(
        self, context: RequestContext, request: TransactionCrudRequest
    ) -> Result[TransactionCrudResponse]:
        data = request.transaction_data
        if data.transaction_id is None:
            return Return.err(
                Error(TRANSACTION_ID_REQUIRED, "transaction_data.transaction_id is required")
            )

        if data.smart_code is not None:
            smart_code = self.guardrails.smart_codes.validate(
                data.smart_code,
                required_prefix=request.options.required_smart_code_prefix,
                location="transaction_data.smart_code",
            )
            if smart_code.is_err():
                return smart_code

        if data.transaction_status is not None and data.transaction_status not in {
            s.value for s in TransactionStatus
        }:
            return Return.err(
                Error(INVALID_STATUS, f"Unknown transaction status '{data.transaction_status}'")
            )

        async with self.uow:
            actor_check = await enforce_actor_requirement(
                self.uow, context.actor_id, context.organization_id, "transactions.update"
            )
            if actor_check.is_err():
                return actor_check

            transaction = await self.uow.transactions.get_in_organization(
                data.transaction_id, context.organization_id
            )
            if transaction is None:
                return Return.err(
                    Error(TRANSACTION_NOT_FOUND, f"Transaction {data.transaction_id} not found")
                )

            if (
                data.transaction_status == TransactionStatus.posted.value
                and transaction.transaction_status != TransactionStatus.posted.value
            ):
                return Return.err(
                    Error(
                        STATUS_TRANSITION_NOT_ALLOWED,
                        "Transactions are posted only by a posting rule on CREATE",
                        {
                            "from": transaction.transaction_status,
                            "to": data.transaction_status,
                        },
                    )
                )

            currency = data.transaction_currency_code or transaction.transaction_currency_code
            currency_changed = currency != transaction.transaction_currency_code

            # Lines the document will carry after this update
            if request.lines is not None:
                lines = request.lines
                balance = self._validate_lines(lines, currency)
                if balance.is_err():
                    return balance
            elif currency_changed or data.total_amount is not None:
                lines = await self.uow.transaction_lines.get_by_transaction_id(transaction.id)
                if currency_changed:
                    # stored lines without a currency follow the header
                    balance = self.guardrails.gl_balance.validate(lines, currency)
                    if balance.is_err():
                        return balance
            else:
                lines = None

            if data.total_amount is not None:
                total_check = self._check_total(data.total_amount, lines or [])
                if total_check.is_err():
                    return total_check

            for attribute in (
                "transaction_type",
                "transaction_code",
                "transaction_date",
                "smart_code",
                "total_amount",
                "transaction_currency_code",
                "transaction_status",
                "source_entity_id",
                "target_entity_id",
            ):
                value = getattr(data, attribute)
                if value is not None:
                    setattr(transaction, attribute, value)
            if data.metadata is not None:
                transaction.transaction_metadata = {
                    **(transaction.transaction_metadata or {}),
                    **data.metadata,
                }

            if request.lines is not None:
                if data.total_amount is None:
                    transaction.total_amount = default_total(request.lines)
                await self.uow.transaction_lines.delete_by_transaction_id(transaction.id)
                await self.uow.transaction_lines.create_many(
                    self._build_lines(context, transaction.id, request.lines)
                )

            transaction.updated_by = context.actor_id
            transaction.updated_at = datetime.utcnow()
            transaction = await self.uow.transactions.update(transaction)
            snapshot = await self._snapshot(transaction, include_lines=True)
            await self.uow.commit()

        logger.info(f"Transaction updated: {transaction.id}")
        return Return.ok(
            TransactionCrudResponse(
                operation="UPDATE", transaction_id=str(transaction.id), data=snapshot
            )
        )

    async def _delete(
        self, context: RequestContext, request: TransactionCrudRequest
    ) -> Result[TransactionCrudResponse]:
        return await self._transition(
            context, request, CrudOperation.DELETE, TransactionStatus.deleted
        )

    async def _archive(
        self, context: RequestContext, request: TransactionCrudRequest
    ) -> Result[TransactionCrudResponse]:
        return await self._transition(
            context, request, CrudOperation.ARCHIVE, TransactionStatus.archived
        )

    async def _transition(
        self,
        context: RequestContext,
        request: TransactionCrudRequest,
        operation: CrudOperation,
        status: TransactionStatus,
    ) -> Result[TransactionCrudResponse]:
        transaction_id = request.transaction_data.transaction_id
        if transaction_id is None:
            return Return.err(
                Error(TRANSACTION_ID_REQUIRED, "transaction_data.transaction_id is required")
            )

        async with self.uow:
            actor_check = await enforce_actor_requirement(
                self.uow,
                context.actor_id,
                context.organization_id,
                f"transactions.{operation.value.lower()}",
            )
            if actor_check.is_err():
                return actor_check

            transaction = await self.uow.transactions.get_in_organization(
                transaction_id, context.organization_id
            )
            if transaction is None:
                return Return.err(
                    Error(TRANSACTION_NOT_FOUND, f"Transaction {transaction_id} not found")
                )

            transaction.transaction_status = status.value
            transaction.updated_by = context.actor_id
            transaction.updated_at = datetime.utcnow()
            transaction = await self.uow.transactions.update(transaction)
            snapshot = serialize_transaction(transaction)
            await self.uow.commit()

        logger.info(f"Transaction {transaction.id} status -> {status.value}")
        return Return.ok(
            TransactionCrudResponse(
                operation=operation.value,
                transaction_id=str(transaction.id),
                data=snapshot,
            )
        )
