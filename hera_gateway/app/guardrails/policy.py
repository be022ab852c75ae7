"""
Guardrail Policy

Immutable configuration shared read-only by every validator. Built once at
startup from ApplicationConfig and injected at construction time.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Pattern

DEFAULT_NAMESPACE = "HERA"
DEFAULT_CURRENCY_SENTINEL = "DOC"
DEFAULT_GL_TOLERANCE = Decimal("0.01")

# segments after the namespace token, version suffix excluded
MIN_SEGMENTS = 3
MAX_SEGMENTS = 10


def compile_smart_code_pattern(namespace: str) -> Pattern[str]:
    return re.compile(
        rf"^{re.escape(namespace)}"
        rf"(?:\.[A-Z0-9][A-Z0-9_]*){{{MIN_SEGMENTS},{MAX_SEGMENTS}}}"
        r"\.v[0-9]+\Z"
    )


@dataclass(frozen=True)
class GuardrailPolicy:
    """
    Validator configuration.

    Attributes:
        namespace: Literal first token of every smart code
        smart_code_pattern: Compiled smart-code regex for namespace
        gl_tolerance: Max allowed |DR - CR| per currency
        default_currency: Currency used for GL lines with none of their own
    """

    namespace: str
    smart_code_pattern: Pattern[str]
    gl_tolerance: Decimal
    default_currency: str

    @classmethod
    def build(
        cls,
        namespace: str = DEFAULT_NAMESPACE,
        gl_tolerance: str = str(DEFAULT_GL_TOLERANCE),
        default_currency: str = DEFAULT_CURRENCY_SENTINEL,
    ) -> "GuardrailPolicy":
        return cls(
            namespace=namespace,
            smart_code_pattern=compile_smart_code_pattern(namespace),
            gl_tolerance=Decimal(str(gl_tolerance)),
            default_currency=default_currency,
        )

    @classmethod
    def from_config(cls, config) -> "GuardrailPolicy":
        return cls.build(
            namespace=config.SMART_CODE_NAMESPACE,
            gl_tolerance=config.GL_BALANCE_TOLERANCE,
            default_currency=config.DEFAULT_CURRENCY,
        )
