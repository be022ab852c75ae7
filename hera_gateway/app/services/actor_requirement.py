"""
Actor Requirement

Checked by every mutation inside its own unit of work, so a write cannot
reach the store without a real, member USER behind it even when the HTTP
resolver was bypassed.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from hera_gateway.app.services.unit_of_work import UnitOfWork
from hera_gateway.domain.constants import (
    MEMBERSHIP_RELATIONSHIP_TYPES,
    NULL_UUID,
    ORGANIZATION_ENTITY_TYPE,
    PLATFORM_ORGANIZATION_ID,
    USER_ENTITY_TYPE,
)
from hera_gateway.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

ACTOR_USER_ID_REQUIRED = "ACTOR_USER_ID_REQUIRED"
ORGANIZATION_ID_REQUIRED = "ORGANIZATION_ID_REQUIRED"
INVALID_ACTOR_NULL_UUID = "INVALID_ACTOR_NULL_UUID"
INVALID_ORGANIZATION_PLATFORM_UUID = "INVALID_ORGANIZATION_PLATFORM_UUID"
ACTOR_ENTITY_NOT_FOUND = "ACTOR_ENTITY_NOT_FOUND"
INVALID_ACTOR_ENTITY_TYPE = "INVALID_ACTOR_ENTITY_TYPE"
ORGANIZATION_ENTITY_NOT_FOUND = "ORGANIZATION_ENTITY_NOT_FOUND"
ACTOR_NOT_MEMBER_OF_ORGANIZATION = "ACTOR_NOT_MEMBER_OF_ORGANIZATION"


def _as_uuid(value: Any) -> Optional[UUID]:
    if value is None or value == "":
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _reject(
    code: str,
    message: str,
    hint: str,
    function_name: str,
    actor_user_id: Any,
    organization_id: Any,
    **extra: Any,
) -> Result[None]:
    details = {
        "function": function_name,
        "actor_user_id": str(actor_user_id) if actor_user_id is not None else None,
        "organization_id": str(organization_id) if organization_id is not None else None,
        "hint": hint,
        **extra,
    }
    logger.warning(f"Actor requirement failed: {code} {details}")
    return Return.err(Error(code, message, details))


async def enforce_actor_requirement(
    uow: UnitOfWork,
    actor_user_id: Any,
    organization_id: Any,
    function_name: str,
) -> Result[None]:
    """
    Require a real USER actor with an active membership in a tenant.

    Must be awaited inside an open unit of work, before the first write.

    Args:
        uow: Open unit of work of the mutation being guarded
        actor_user_id: Acting USER entity id
        organization_id: Target tenant id
        function_name: Mutation being guarded, recorded in error details

    Returns:
        Result with None, or the first failed check as Error
    """
    def reject(code: str, message: str, hint: str, **extra: Any) -> Result[None]:
        return _reject(
            code, message, hint, function_name, actor_user_id, organization_id, **extra
        )

    actor_id = _as_uuid(actor_user_id)
    if actor_id is None:
        return reject(
            ACTOR_USER_ID_REQUIRED,
            "Actor user id is required",
            "Pass the USER entity id resolved for the caller",
        )

    org_id = _as_uuid(organization_id)
    if org_id is None:
        return reject(
            ORGANIZATION_ID_REQUIRED,
            "Organization id is required",
            "Pass the tenant organization id resolved for the caller",
        )

    if actor_id == NULL_UUID:
        return reject(
            INVALID_ACTOR_NULL_UUID,
            "Actor user id cannot be the null UUID",
            "The all-zero id is a sentinel, not an actor",
        )

    if org_id == PLATFORM_ORGANIZATION_ID:
        return reject(
            INVALID_ORGANIZATION_PLATFORM_UUID,
            "Business mutations are not allowed in the platform organization",
            "Target a tenant organization instead of the platform namespace",
        )

    scope = [PLATFORM_ORGANIZATION_ID, org_id]

    actor = await uow.entities.get_in_organizations(actor_id, scope)
    if actor is None:
        return reject(
            ACTOR_ENTITY_NOT_FOUND,
            f"Actor entity {actor_id} not found",
            "The actor must be a USER entity in the platform or target organization",
        )
    if actor.entity_type != USER_ENTITY_TYPE:
        return reject(
            INVALID_ACTOR_ENTITY_TYPE,
            f"Actor entity {actor_id} has type {actor.entity_type}, expected {USER_ENTITY_TYPE}",
            "Only USER entities can perform mutations",
            entity_type=actor.entity_type,
        )

    organization = await uow.entities.get_in_organizations(org_id, scope)
    if organization is None or organization.entity_type != ORGANIZATION_ENTITY_TYPE:
        return reject(
            ORGANIZATION_ENTITY_NOT_FOUND,
            f"Organization entity {org_id} not found",
            "Create the ORGANIZATION entity whose id equals the organization id",
        )

    membership = await uow.relationships.get_active_membership(
        actor_id, org_id, MEMBERSHIP_RELATIONSHIP_TYPES, scope
    )
    if membership is None:
        return reject(
            ACTOR_NOT_MEMBER_OF_ORGANIZATION,
            f"Actor {actor_id} is not an active member of organization {org_id}",
            "Add an active MEMBER_OF or USER_MEMBER_OF_ORG relationship",
        )

    return Return.ok(None)
