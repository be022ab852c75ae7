"""
Guardrails

Pure validators: no I/O, no shared mutable state. Each one is constructed
with the immutable GuardrailPolicy and returns a Result.
"""

from dataclasses import dataclass

from .gl_balance import GLBalanceReport, GLBalanceValidator
from .org_scope import OrganizationScopeEnforcer
from .policy import GuardrailPolicy
from .smart_code import SmartCodeValidator


@dataclass(frozen=True)
class Guardrails:
    """Validator bundle handed to the dispatch use cases"""

    smart_codes: SmartCodeValidator
    gl_balance: GLBalanceValidator
    org_scope: OrganizationScopeEnforcer

    @classmethod
    def from_policy(cls, policy: GuardrailPolicy) -> "Guardrails":
        return cls(
            smart_codes=SmartCodeValidator(policy),
            gl_balance=GLBalanceValidator(policy),
            org_scope=OrganizationScopeEnforcer(),
        )


__all__ = [
    "GLBalanceReport",
    "GLBalanceValidator",
    "Guardrails",
    "GuardrailPolicy",
    "OrganizationScopeEnforcer",
    "SmartCodeValidator",
]
