"""
Smart-Code Validator

Purely syntactic check of the dotted, versioned taxonomy string. Whether a
segment combination is registered is the store's concern, not ours.
"""

from typing import Any, Optional

from hera_gateway.libs.result import Error, Result, Return

from .policy import GuardrailPolicy

SMARTCODE_MISSING = "SMARTCODE_MISSING"
SMARTCODE_REGEX_FAIL = "SMARTCODE_REGEX_FAIL"
SMARTCODE_FAMILY_MISMATCH = "SMARTCODE_FAMILY_MISMATCH"


class SmartCodeValidator:
    """Validates HERA.<SEG>...<SEG>.v<N> smart codes against a policy"""

    def __init__(self, policy: GuardrailPolicy):
        self.policy = policy

    def is_valid(self, smart_code: Any) -> bool:
        return isinstance(smart_code, str) and bool(
            self.policy.smart_code_pattern.fullmatch(smart_code)
        )

    def validate(
        self,
        smart_code: Any,
        required_prefix: Optional[str] = None,
        location: str = "smart_code",
    ) -> Result[str]:
        """
        Validate a smart code.

        Args:
            smart_code: Candidate value from a payload
            required_prefix: Optional family, e.g. "HERA.FIN."
            location: Payload path reported back in error details

        Returns:
            Result with the smart code, or SMARTCODE_* Error
        """
        if smart_code is None or smart_code == "":
            return Return.err(
                Error(
                    SMARTCODE_MISSING,
                    f"{location} is required",
                    {"location": location},
                )
            )

        if not self.is_valid(smart_code):
            return Return.err(
                Error(
                    SMARTCODE_REGEX_FAIL,
                    f"{location} '{smart_code}' does not match "
                    f"{self.policy.smart_code_pattern.pattern}",
                    {"location": location, "smart_code": str(smart_code)},
                )
            )

        if required_prefix and not smart_code.startswith(required_prefix):
            return Return.err(
                Error(
                    SMARTCODE_FAMILY_MISMATCH,
                    f"{location} '{smart_code}' is not in family {required_prefix}",
                    {
                        "location": location,
                        "smart_code": smart_code,
                        "required_prefix": required_prefix,
                    },
                )
            )

        return Return.ok(smart_code)

    def validate_optional(self, smart_code: Any, location: str) -> Result[Optional[str]]:
        """Same as validate, but an absent code is accepted"""
        if smart_code is None or smart_code == "":
            return Return.ok(None)
        return self.validate(smart_code, location=location)
