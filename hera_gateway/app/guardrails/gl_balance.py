"""
GL Balance Validator

Double-entry check for financial postings: per currency, debits equal
credits within the policy tolerance. Only lines whose smart code carries a
GL segment are considered; every other line is ignored.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Sequence

from hera_gateway.domain.entities import LineSide
from hera_gateway.libs.result import Error, Result, Return

from .policy import GuardrailPolicy

GL_SIDE_REQUIRED = "GL_SIDE_REQUIRED"
NEGATIVE_GL_AMOUNT = "NEGATIVE_GL_AMOUNT"
GL_AMOUNT_INVALID = "GL_AMOUNT_INVALID"
GL_NOT_BALANCED = "GL_NOT_BALANCED"

GL_SEGMENT = "GL"
_SIDES = {side.value for side in LineSide}


def _get(line: Any, key: str) -> Any:
    if isinstance(line, Mapping):
        return line.get(key)
    return getattr(line, key, None)


def is_gl_line(line: Any) -> bool:
    smart_code = _get(line, "smart_code")
    return isinstance(smart_code, str) and GL_SEGMENT in smart_code.split(".")


def line_side(line: Any) -> Optional[str]:
    side = _get(line, "side")
    if side is None:
        line_data = _get(line, "line_data") or {}
        side = line_data.get("side") if isinstance(line_data, Mapping) else None
    if isinstance(side, LineSide):
        return side.value
    return side


@dataclass
class CurrencyTotals:
    dr: Decimal = Decimal("0")
    cr: Decimal = Decimal("0")
    lines: int = 0

    @property
    def difference(self) -> Decimal:
        return abs(self.dr - self.cr)

    def to_dict(self) -> Dict[str, Any]:
        return {"dr": float(self.dr), "cr": float(self.cr), "lines": self.lines}


@dataclass
class GLBalanceReport:
    """Per-currency DR/CR totals of the GL lines of one document"""

    totals: Dict[str, CurrencyTotals] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {currency: t.to_dict() for currency, t in sorted(self.totals.items())}


class GLBalanceValidator:
    """Verifies debits equal credits per currency for GL lines"""

    def __init__(self, policy: GuardrailPolicy):
        self.policy = policy

    def _currency(self, line: Any, document_currency: Optional[str]) -> str:
        return (
            _get(line, "transaction_currency_code")
            or _get(line, "currency")
            or document_currency
            or self.policy.default_currency
        )

    def validate(
        self,
        lines: Sequence[Any],
        document_currency: Optional[str] = None,
    ) -> Result[GLBalanceReport]:
        """
        Validate the GL lines of a document.

        Args:
            lines: Ordered transaction lines (dicts or rows)
            document_currency: Header currency used when a line has none

        Returns:
            Result with GLBalanceReport, or GL_* Error for the first violation
        """
        report = GLBalanceReport()

        for index, line in enumerate(lines or [], start=1):
            if not is_gl_line(line):
                continue

            line_number = _get(line, "line_number") or index
            side = line_side(line)
            if side not in _SIDES:
                return Return.err(
                    Error(
                        GL_SIDE_REQUIRED,
                        f"GL line {line_number} requires side DR or CR, got {side!r}",
                        {"line_number": line_number, "side": side},
                    )
                )

            raw_amount = _get(line, "line_amount")
            try:
                amount = Decimal(str(raw_amount if raw_amount is not None else 0))
            except InvalidOperation:
                amount = None
            if amount is None or not amount.is_finite():
                return Return.err(
                    Error(
                        GL_AMOUNT_INVALID,
                        f"GL line {line_number} has a non-numeric amount {raw_amount!r}",
                        {"line_number": line_number},
                    )
                )
            if amount < 0:
                return Return.err(
                    Error(
                        NEGATIVE_GL_AMOUNT,
                        f"GL line {line_number} amount cannot be negative: {amount}",
                        {"line_number": line_number, "line_amount": float(amount)},
                    )
                )

            currency = self._currency(line, document_currency)
            totals = report.totals.setdefault(currency, CurrencyTotals())
            if side == LineSide.DR.value:
                totals.dr += amount
            else:
                totals.cr += amount
            totals.lines += 1

        unbalanced = {
            currency: totals
            for currency, totals in report.totals.items()
            if totals.difference > self.policy.gl_tolerance
        }
        if unbalanced:
            summary = ", ".join(
                f"{currency}: DR={t.dr} CR={t.cr} diff={t.difference}"
                for currency, t in sorted(unbalanced.items())
            )
            return Return.err(
                Error(
                    GL_NOT_BALANCED,
                    f"GL not balanced ({summary})",
                    {
                        "currencies": {
                            currency: t.to_dict() for currency, t in unbalanced.items()
                        },
                        "tolerance": float(self.policy.gl_tolerance),
                    },
                )
            )

        return Return.ok(report)

    def summarize(
        self, lines: Sequence[Any], document_currency: Optional[str] = None
    ) -> GLBalanceReport:
        """Totals of stored lines, computed exactly as at write time"""
        report = GLBalanceReport()
        for line in lines or []:
            if not is_gl_line(line):
                continue
            side = line_side(line)
            if side not in _SIDES:
                continue
            amount = Decimal(str(_get(line, "line_amount") or 0))
            totals = report.totals.setdefault(
                self._currency(line, document_currency), CurrencyTotals()
            )
            if side == LineSide.DR.value:
                totals.dr += amount
            else:
                totals.cr += amount
            totals.lines += 1
        return report
