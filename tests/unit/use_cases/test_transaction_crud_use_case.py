from uuid import uuid4

import pytest

from hera_gateway.app.use_cases.transactions import (
    TransactionCrudRequest,
    TransactionCrudUseCase,
)
from hera_gateway.domain.entities import TransactionLine, UniversalTransaction

GL_DR = "HERA.FIN.GL.LINE.DR.v1"
GL_CR = "HERA.FIN.GL.LINE.CR.v1"
ITEM = "HERA.SALON.POS.LINE.SERVICE.v1"


def journal_lines(dr=1000, cr=(950, 50), currency="AED"):
    lines = [{"smart_code": GL_DR, "side": "DR", "line_amount": dr, "currency": currency}]
    lines += [
        {"smart_code": GL_CR, "side": "CR", "line_amount": amount, "currency": currency}
        for amount in cr
    ]
    return lines


def make_request(tenant, operation="CREATE", **overrides):
    body = {
        "operation": operation,
        "organization_id": str(tenant["organization_id"]),
        "transaction_data": {
            "transaction_type": "journal_entry",
            "smart_code": "HERA.FIN.GL.TXN.JE.v1",
            "transaction_currency_code": "AED",
        },
        "lines": journal_lines(),
    }
    body.update(overrides)
    return TransactionCrudRequest.model_validate(body)


def stored_transaction(tenant, **values):
    return UniversalTransaction(
        id=values.pop("id", uuid4()),
        organization_id=tenant["organization_id"],
        transaction_type=values.pop("transaction_type", "JOURNAL_ENTRY"),
        smart_code=values.pop("smart_code", "HERA.FIN.GL.TXN.JE.v1"),
        transaction_currency_code=values.pop("transaction_currency_code", "AED"),
        **values,
    )


@pytest.mark.asyncio
async def test_create_balanced_journal(member_uow, tenant, guardrails):
    result = await TransactionCrudUseCase(member_uow, guardrails).execute(
        tenant["context"], make_request(tenant)
    )

    assert result.is_ok()
    header = member_uow.transactions.create.call_args.args[0]
    assert header.transaction_type == "JOURNAL_ENTRY"
    assert header.total_amount == 1000.0
    assert header.transaction_status == "active"
    assert header.created_by == tenant["actor"].id

    lines = member_uow.transaction_lines.create_many.call_args.args[0]
    assert [line.line_number for line in lines] == [1, 2, 3]
    assert all(line.transaction_id == header.id for line in lines)
    assert lines[0].transaction_currency_code == "AED"

    assert result.value.data["gl_totals"] == {"AED": {"dr": 1000.0, "cr": 1000.0, "lines": 3}}
    member_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_unbalanced_journal_never_reaches_store(member_uow, tenant, guardrails):
    request = make_request(tenant, lines=journal_lines(cr=(950,)))

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "GL_NOT_BALANCED"
    member_uow.__aenter__.assert_not_called()


@pytest.mark.asyncio
async def test_line_smart_code_required(member_uow, tenant, guardrails):
    lines = journal_lines()
    lines[1]["smart_code"] = None
    request = make_request(tenant, lines=lines)

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "SMARTCODE_MISSING"
    assert result.error.details["location"] == "lines[1].smart_code"


@pytest.mark.asyncio
async def test_total_defaults_to_business_lines(member_uow, tenant, guardrails):
    lines = [
        {"smart_code": ITEM, "line_amount": 120.5},
        {"smart_code": ITEM, "line_amount": 79.5},
    ]
    request = make_request(
        tenant,
        transaction_data={"transaction_type": "sale", "smart_code": "HERA.SALON.POS.TXN.SALE.v1"},
        lines=lines,
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.is_ok()
    assert member_uow.transactions.create.call_args.args[0].total_amount == 200.0
    assert result.value.data["gl_totals"] == {}


@pytest.mark.asyncio
async def test_create_requires_type(member_uow, tenant, guardrails):
    request = make_request(tenant, transaction_data={"smart_code": "HERA.FIN.GL.TXN.JE.v1"})

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "TXN_TYPE_REQUIRED"


@pytest.mark.asyncio
async def test_dynamic_fields_refused(member_uow, tenant, guardrails):
    request = make_request(tenant, dynamic_fields={"note": "x"})

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "DYNAMIC_FIELDS_NOT_SUPPORTED"


@pytest.mark.asyncio
async def test_line_org_mismatch(member_uow, tenant, guardrails):
    lines = journal_lines()
    lines[2]["organization_id"] = str(uuid4())
    request = make_request(tenant, lines=lines)

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "ORG_FILTER_MISMATCH"
    assert result.error.details["location"] == "lines[2].organization_id"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "rule, confidence, status",
    [
        ({"auto_post_if": "ai_confidence >= 0.9"}, 0.95, "posted"),
        ({"auto_post_if": "ai_confidence >= 0.9"}, 0.5, "staged"),
        ({"approval_required_if": "total_amount > 500", "else": "reject"}, None, "staged"),
    ],
)
async def test_posting_rule_outcomes(member_uow, tenant, guardrails, rule, confidence, status):
    request = make_request(tenant, options={"posting_rule": rule, "ai_confidence": confidence})

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.is_ok()
    assert result.value.posting_outcome == status
    assert member_uow.transactions.create.call_args.args[0].transaction_status == status


@pytest.mark.asyncio
async def test_posting_rule_rejection(member_uow, tenant, guardrails):
    request = make_request(
        tenant,
        options={"posting_rule": {"auto_post_if": "line_count > 10", "else": "reject"}},
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "POSTING_RULE_REJECTED"
    member_uow.transactions.create.assert_not_called()


@pytest.mark.asyncio
async def test_invalid_posting_rule(member_uow, tenant, guardrails):
    request = make_request(
        tenant, options={"posting_rule": {"auto_post_if": "__import__('os').getcwd()"}}
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "INVALID_POSTING_RULE"


@pytest.mark.asyncio
async def test_read_reports_stored_totals(member_uow, tenant, guardrails):
    transaction = stored_transaction(tenant, total_amount=1000.0)
    member_uow.transactions.get_in_organization.return_value = transaction
    member_uow.transaction_lines.get_by_transaction_id.return_value = [
        TransactionLine(
            organization_id=tenant["organization_id"],
            transaction_id=transaction.id,
            line_number=index,
            smart_code=line["smart_code"],
            side=line["side"],
            line_amount=float(line["line_amount"]),
            transaction_currency_code="AED",
        )
        for index, line in enumerate(journal_lines(), start=1)
    ]
    request = make_request(
        tenant, operation="READ", transaction_data={"transaction_id": str(transaction.id)}
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.is_ok()
    assert len(result.value.data["lines"]) == 3
    assert result.value.data["gl_totals"] == {"AED": {"dr": 1000.0, "cr": 1000.0, "lines": 3}}
    member_uow.transactions.get_in_organization.assert_called_once_with(
        transaction.id, tenant["organization_id"]
    )


@pytest.mark.asyncio
async def test_read_missing_transaction(member_uow, tenant, guardrails):
    request = make_request(tenant, operation="READ", transaction_data={"id": str(uuid4())})

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "TRANSACTION_NOT_FOUND"


@pytest.mark.asyncio
async def test_update_replaces_lines(member_uow, tenant, guardrails):
    transaction = stored_transaction(tenant, total_amount=1000.0)
    member_uow.transactions.get_in_organization.return_value = transaction
    request = make_request(
        tenant,
        operation="UPDATE",
        transaction_data={"transaction_id": str(transaction.id), "transaction_code": "JE-7"},
        lines=journal_lines(dr=400, cr=(400,)),
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.is_ok()
    assert transaction.transaction_code == "JE-7"
    assert transaction.total_amount == 400.0
    member_uow.transaction_lines.delete_by_transaction_id.assert_called_once_with(transaction.id)
    member_uow.transaction_lines.create_many.assert_called_once()
    member_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_update_with_unbalanced_lines_does_not_commit(member_uow, tenant, guardrails):
    member_uow.transactions.get_in_organization.return_value = stored_transaction(tenant)
    request = make_request(
        tenant,
        operation="UPDATE",
        transaction_data={"transaction_id": str(uuid4())},
        lines=journal_lines(dr=400, cr=(300,)),
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "GL_NOT_BALANCED"
    member_uow.transaction_lines.delete_by_transaction_id.assert_not_called()
    member_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_update_without_lines_keeps_them(member_uow, tenant, guardrails):
    transaction = stored_transaction(tenant)
    member_uow.transactions.get_in_organization.return_value = transaction
    request = TransactionCrudRequest.model_validate(
        {
            "operation": "UPDATE",
            "organization_id": str(tenant["organization_id"]),
            "transaction_data": {"transaction_id": str(transaction.id), "status": "staged"},
        }
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.is_ok()
    assert transaction.transaction_status == "staged"
    member_uow.transaction_lines.delete_by_transaction_id.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("operation, status", [("DELETE", "deleted"), ("ARCHIVE", "archived")])
async def test_status_transitions(member_uow, tenant, guardrails, operation, status):
    transaction = stored_transaction(tenant)
    member_uow.transactions.get_in_organization.return_value = transaction
    request = make_request(
        tenant, operation=operation, transaction_data={"transaction_id": str(transaction.id)}
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.is_ok()
    assert transaction.transaction_status == status
    member_uow.transaction_lines.create_many.assert_not_called()


@pytest.mark.asyncio
async def test_non_member_cannot_read(member_uow, tenant, guardrails):
    member_uow.relationships.get_active_membership.return_value = None
    request = make_request(tenant, operation="READ", transaction_data={})

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "ACTOR_NOT_MEMBER_OF_ORGANIZATION"
    member_uow.transactions.list_by_organization.assert_not_called()


def stored_line(tenant, transaction, number, smart_code, side, amount, currency=None):
    return TransactionLine(
        organization_id=tenant["organization_id"],
        transaction_id=transaction.id,
        line_number=number,
        smart_code=smart_code,
        side=side,
        line_amount=amount,
        transaction_currency_code=currency,
    )


@pytest.mark.asyncio
async def test_create_rejects_negative_total(member_uow, tenant, guardrails):
    request = make_request(
        tenant,
        transaction_data={
            "transaction_type": "journal_entry",
            "smart_code": "HERA.FIN.GL.TXN.JE.v1",
            "total_amount": -500,
        },
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "NEGATIVE_TOTAL_AMOUNT"
    member_uow.transactions.create.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("total, ok", [(9999, False), (200.0, True), (200.01, True), (200.02, False)])
async def test_create_total_must_match_business_lines(member_uow, tenant, guardrails, total, ok):
    request = make_request(
        tenant,
        transaction_data={
            "transaction_type": "sale",
            "smart_code": "HERA.SALON.POS.TXN.SALE.v1",
            "total_amount": total,
        },
        lines=[
            {"smart_code": ITEM, "line_amount": 120.5},
            {"smart_code": ITEM, "line_amount": 79.5},
        ],
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.is_ok() is ok
    if not ok:
        assert result.error.code == "TOTAL_AMOUNT_MISMATCH"
        assert result.error.details["line_total"] == 200.0


@pytest.mark.asyncio
async def test_journal_total_is_free_without_business_lines(member_uow, tenant, guardrails):
    request = make_request(
        tenant,
        transaction_data={
            "transaction_type": "journal_entry",
            "smart_code": "HERA.FIN.GL.TXN.JE.v1",
            "total_amount": 1000,
        },
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.is_ok()


@pytest.mark.asyncio
async def test_lowercase_side_is_not_a_gl_side(member_uow, tenant, guardrails):
    lines = journal_lines()
    lines[0]["side"] = "dr"

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(
        tenant["context"], make_request(tenant, lines=lines)
    )

    assert result.error.code == "GL_SIDE_REQUIRED"
    assert result.error.details["side"] == "dr"


@pytest.mark.asyncio
async def test_currency_change_rechecks_stored_lines(member_uow, tenant, guardrails):
    transaction = stored_transaction(tenant, transaction_currency_code="USD")
    member_uow.transactions.get_in_organization.return_value = transaction
    member_uow.transaction_lines.get_by_transaction_id.return_value = [
        stored_line(tenant, transaction, 1, GL_DR, "DR", 100.0),
        stored_line(tenant, transaction, 2, GL_CR, "CR", 100.0, "USD"),
        stored_line(tenant, transaction, 3, GL_DR, "DR", 50.0, "EUR"),
        stored_line(tenant, transaction, 4, GL_CR, "CR", 50.0, "EUR"),
    ]
    request = make_request(
        tenant,
        operation="UPDATE",
        transaction_data={"transaction_id": str(transaction.id), "currency": "EUR"},
        lines=None,
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "GL_NOT_BALANCED"
    assert set(result.error.details["currencies"]) == {"EUR", "USD"}
    assert transaction.transaction_currency_code == "USD"
    member_uow.transactions.update.assert_not_called()
    member_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_currency_change_allowed_when_lines_stay_balanced(member_uow, tenant, guardrails):
    transaction = stored_transaction(tenant, transaction_currency_code="USD")
    member_uow.transactions.get_in_organization.return_value = transaction
    member_uow.transaction_lines.get_by_transaction_id.return_value = [
        stored_line(tenant, transaction, 1, GL_DR, "DR", 100.0),
        stored_line(tenant, transaction, 2, GL_CR, "CR", 100.0),
    ]
    request = make_request(
        tenant,
        operation="UPDATE",
        transaction_data={"transaction_id": str(transaction.id), "currency": "EUR"},
        lines=None,
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.is_ok()
    assert transaction.transaction_currency_code == "EUR"
    assert result.value.data["gl_totals"] == {"EUR": {"dr": 100.0, "cr": 100.0, "lines": 2}}


@pytest.mark.asyncio
async def test_update_total_checked_against_stored_lines(member_uow, tenant, guardrails):
    transaction = stored_transaction(tenant, transaction_type="SALE", total_amount=70.0)
    member_uow.transactions.get_in_organization.return_value = transaction
    member_uow.transaction_lines.get_by_transaction_id.return_value = [
        stored_line(tenant, transaction, 1, ITEM, None, 45.0),
        stored_line(tenant, transaction, 2, ITEM, None, 25.0),
    ]
    request = make_request(
        tenant,
        operation="UPDATE",
        transaction_data={"transaction_id": str(transaction.id), "total_amount": 9999},
        lines=None,
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "TOTAL_AMOUNT_MISMATCH"
    assert transaction.total_amount == 70.0
    member_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_update_cannot_post(member_uow, tenant, guardrails):
    transaction = stored_transaction(tenant, transaction_status="staged")
    member_uow.transactions.get_in_organization.return_value = transaction
    request = make_request(
        tenant,
        operation="UPDATE",
        transaction_data={"transaction_id": str(transaction.id), "status": "posted"},
        lines=None,
    )

    result = await TransactionCrudUseCase(member_uow, guardrails).execute(tenant["context"], request)

    assert result.error.code == "STATUS_TRANSITION_NOT_ALLOWED"
    assert result.error.details == {"from": "staged", "to": "posted"}
    assert transaction.transaction_status == "staged"
    member_uow.commit.assert_not_called()
