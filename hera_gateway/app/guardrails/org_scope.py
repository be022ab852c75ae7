"""
Organization-Scope Enforcer

The single mechanism that stops one tenant's caller from touching another
tenant's rows. Runs on every mutating and every filtered-read request.
"""

from typing import Any, Iterator, Mapping, Optional, Tuple
from uuid import UUID

from hera_gateway.libs.result import Error, Result, Return

ORG_FILTER_MISSING = "ORG_FILTER_MISSING"
ORG_FILTER_MISMATCH = "ORG_FILTER_MISMATCH"

_HEADER_KEYS = ("entity_data", "transaction_data")
_CHILD_KEYS = ("relationships", "dynamic_fields", "lines")


def _as_uuid(value: Any) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (TypeError, ValueError, AttributeError):
        return None


def _children(items: Any) -> Iterator[Tuple[int, Any]]:
    if isinstance(items, Mapping):
        items = list(items.values())
    if isinstance(items, list):
        yield from enumerate(items)


class OrganizationScopeEnforcer:
    """Compares every organization_id in a payload with the resolved tenant"""

    def enforce(self, context_organization_id: UUID, payload: Mapping[str, Any]) -> Result[UUID]:
        """
        Enforce the tenant filter on a request payload.

        Args:
            context_organization_id: Tenant resolved for the caller
            payload: Raw request body

        Returns:
            Result with the organization id, or ORG_FILTER_* Error
        """
        declared = []
        if payload.get("organization_id") is not None:
            declared.append(("organization_id", payload["organization_id"]))
        for key in _HEADER_KEYS:
            header = payload.get(key)
            if isinstance(header, Mapping) and header.get("organization_id") is not None:
                declared.append((f"{key}.organization_id", header["organization_id"]))

        if not declared:
            return Return.err(
                Error(
                    ORG_FILTER_MISSING,
                    "organization_id is required for multi-tenant isolation",
                    {"context_organization_id": str(context_organization_id)},
                )
            )

        for key in _CHILD_KEYS:
            for index, child in _children(payload.get(key)):
                if isinstance(child, Mapping) and child.get("organization_id") is not None:
                    declared.append(
                        (f"{key}[{index}].organization_id", child["organization_id"])
                    )

        for location, value in declared:
            if _as_uuid(value) != context_organization_id:
                return Return.err(
                    Error(
                        ORG_FILTER_MISMATCH,
                        f"{location} ({value}) does not match the caller's "
                        f"organization ({context_organization_id})",
                        {
                            "location": location,
                            "payload_organization_id": str(value),
                            "context_organization_id": str(context_organization_id),
                        },
                    )
                )

        return Return.ok(context_organization_id)
