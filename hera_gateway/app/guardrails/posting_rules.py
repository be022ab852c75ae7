"""
Posting Rules

Decide whether a transaction is posted, staged for review, or rejected,
from the conditions carried in options.posting_rule.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .conditions import ConditionError, Node, parse_condition

POSTED = "posted"
STAGED = "staged"
REJECTED = "rejected"

_ELSE_OUTCOMES = {"stage_for_review": STAGED, "reject": REJECTED}


@dataclass(frozen=True)
class PostingRule:
    auto_post_if: Optional[Node] = None
    approval_required_if: Optional[Node] = None
    staging_criteria: Optional[Node] = None
    otherwise: str = "stage_for_review"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PostingRule":
        if not isinstance(payload, Mapping):
            raise ConditionError("posting_rule must be an object")

        def _parse(key: str) -> Optional[Node]:
            expression = payload.get(key)
            return parse_condition(expression) if expression else None

        otherwise = payload.get("else", "stage_for_review")
        if otherwise not in _ELSE_OUTCOMES:
            raise ConditionError(
                f"else must be one of {sorted(_ELSE_OUTCOMES)}, got {otherwise!r}"
            )
        return cls(
            auto_post_if=_parse("auto_post_if"),
            approval_required_if=_parse("approval_required_if"),
            staging_criteria=_parse("staging_criteria"),
            otherwise=otherwise,
        )

    def evaluate(self, variables: Mapping[str, Any]) -> str:
        if self.auto_post_if is not None and self.auto_post_if.evaluate(variables):
            return POSTED
        if self.approval_required_if is not None and self.approval_required_if.evaluate(variables):
            return STAGED
        if self.staging_criteria is not None and self.staging_criteria.evaluate(variables):
            return STAGED
        return _ELSE_OUTCOMES[self.otherwise]
