"""
Resolve Context Use Case

Turns a bearer credential plus an optional tenant hint into a
RequestContext, or rejects the caller.
"""

from typing import Any, Optional, Tuple
from uuid import UUID

from hera_gateway.api.utils.jwt import verify_jwt
from hera_gateway.app.services.unit_of_work import UnitOfWork
from hera_gateway.domain.constants import (
    MEMBERSHIP_RELATIONSHIP_TYPES,
    PLATFORM_ORGANIZATION_ID,
)
from hera_gateway.libs.result import Error, Result, Return

from .dtos import RequestContext

INVALID_TOKEN = "invalid_token"
IDENTITY_NOT_RESOLVED = "identity_not_resolved"
NO_ORGANIZATION_CONTEXT = "no_organization_context"
ACTOR_NOT_MEMBER = "actor_not_member"


def _parse_uuid(value: Any) -> Optional[UUID]:
    try:
        return UUID(str(value).strip())
    except ValueError:
        return None


class ResolveContextUseCase:
    """
    Use case for resolving the caller's actor and tenant.

    Business Rules:
    - Token must verify and carry a subject ("sub", or legacy "user_id")
    - Subject must map to a platform USER entity (external_user_id field)
    - Tenant priority: X-Organization-Id header > token claim > first
      active membership on record
    - Actor must hold an active membership to the chosen tenant
    - Never falls back to another tenant when the chosen one fails
    - Read-only
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, token: Optional[str], organization_hint: Optional[str] = None
    ) -> Result[RequestContext]:
        """
        Execute resolve context use case.

        Args:
            token: Bearer credential, None when the header is absent
            organization_hint: Raw X-Organization-Id header value

        Returns:
            Result with RequestContext, or Error
        """
        claims = verify_jwt(token) if token else None
        if claims is None:
            return Return.err(Error(INVALID_TOKEN, "Invalid or expired token"))

        external_user_id = claims.get("sub") or claims.get("user_id")
        if not external_user_id:
            return Return.err(Error(INVALID_TOKEN, "Token has no subject"))
        external_user_id = str(external_user_id)

        async with self.uow:
            actor = await self.uow.entities.get_user_by_external_id(external_user_id)
            if actor is None:
                return Return.err(
                    Error(
                        IDENTITY_NOT_RESOLVED,
                        "No actor is linked to this identity",
                        {"external_user_id": external_user_id},
                    )
                )

            organization = await self._select_organization(
                actor.id, organization_hint, claims.get("organization_id")
            )
            if organization is None:
                return Return.err(
                    Error(
                        NO_ORGANIZATION_CONTEXT,
                        "Could not determine an organization for this request",
                        {"actor_id": str(actor.id)},
                    )
                )
            organization_id, source = organization

            membership = await self.uow.relationships.get_active_membership(
                actor.id,
                organization_id,
                MEMBERSHIP_RELATIONSHIP_TYPES,
                [PLATFORM_ORGANIZATION_ID, organization_id],
            )
            if membership is None:
                return Return.err(
                    Error(
                        ACTOR_NOT_MEMBER,
                        "Actor is not an active member of the organization",
                        {
                            "actor_id": str(actor.id),
                            "organization_id": str(organization_id),
                        },
                    )
                )

            return Return.ok(
                RequestContext(
                    actor_id=actor.id,
                    organization_id=organization_id,
                    external_user_id=external_user_id,
                    organization_source=source,
                )
            )

    async def _select_organization(
        self, actor_id: UUID, header_value: Optional[str], claim_value: Any
    ) -> Optional[Tuple[UUID, str]]:
        # An unusable explicit hint is an error, not a reason to fall through
        if header_value:
            parsed = _parse_uuid(header_value)
            return (parsed, "header") if parsed else None

        if claim_value:
            parsed = _parse_uuid(claim_value)
            return (parsed, "token") if parsed else None

        memberships = await self.uow.relationships.get_active_memberships_for_actor(
            actor_id, MEMBERSHIP_RELATIONSHIP_TYPES
        )
        for membership in memberships:
            target = membership.target_entity_id
            if target == PLATFORM_ORGANIZATION_ID:
                continue
            if membership.organization_id in (PLATFORM_ORGANIZATION_ID, target):
                return target, "membership"
        return None
