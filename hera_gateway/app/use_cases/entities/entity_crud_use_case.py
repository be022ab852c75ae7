"""
Entity CRUD Use Case

Dispatches CREATE / READ / UPDATE / DELETE / ARCHIVE over CoreEntity rows
together with their dynamic fields and outgoing relationships.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from hera_gateway.app.guardrails import Guardrails
from hera_gateway.app.services.actor_requirement import enforce_actor_requirement
from hera_gateway.app.services.unit_of_work import UnitOfWork
from hera_gateway.app.use_cases.common import (
    serialize_entity,
    store_error,
)
from hera_gateway.app.use_cases.identity import RequestContext
from hera_gateway.domain.constants import PLATFORM_ORGANIZATION_ID
from hera_gateway.domain.entities import (
    CoreEntity,
    CrudOperation,
    DynamicField,
    EntityRelationship,
    EntityStatus,
)
from hera_gateway.domain.field_value import FieldValue, field_value_from_raw, to_slots
from hera_gateway.libs.result import Error, Result, Return

from .dtos import DynamicFieldInput, EntityCrudRequest, EntityCrudResponse, RelationshipInput

logger = logging.getLogger(__name__)

ENTITY_TYPE_REQUIRED = "ENTITY_TYPE_REQUIRED"
ENTITY_NAME_REQUIRED = "ENTITY_NAME_REQUIRED"
ENTITY_ID_REQUIRED = "ENTITY_ID_REQUIRED"
ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"
INVALID_FIELD_VALUE = "INVALID_FIELD_VALUE"
INVALID_STATUS = "INVALID_STATUS"
RELATIONSHIP_TARGET_NOT_FOUND = "RELATIONSHIP_TARGET_NOT_FOUND"

PreparedField = Tuple[DynamicFieldInput, FieldValue]


class EntityCrudUseCase:
    """
    Use case for entity dispatch.

    Business Rules:
    - Payload organization_id must equal the caller's tenant
    - Smart codes are validated before the store is touched
    - Every dispatch re-checks the actor inside its own unit of work
    - Dynamic fields are upserted by name, relationships by (target, type)
    - DELETE and ARCHIVE are status transitions, rows are never removed
    - One commit per call; a store failure rolls everything back
    """

    def __init__(self, uow: UnitOfWork, guardrails: Guardrails):
        self.uow = uow
        self.guardrails = guardrails

    async def execute(
        self, context: RequestContext, request: EntityCrudRequest
    ) -> Result[EntityCrudResponse]:
        """
        Execute entity dispatch.

        Args:
            context: Resolved actor and tenant
            request: Parsed POST /entities body

        Returns:
            Result with EntityCrudResponse DTO, or Error
        """
        scope = self.guardrails.org_scope.enforce(
            context.organization_id, request.model_dump()
        )
        if scope.is_err():
            return scope

        operation = request.operation
        logger.info(
            f"Entity dispatch {operation.value} org={context.organization_id} "
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
            return Return.err(store_error(exc, f"entities.{operation.value.lower()}"))

    # ------------------------------------------------------------------
    # Validation shared by CREATE and UPDATE
    # ------------------------------------------------------------------

    def _prepare_fields(self, request: EntityCrudRequest) -> Result[List[PreparedField]]:
        prepared = []
        for index, field in enumerate(request.dynamic_fields):
            location = f"dynamic_fields[{index}].smart_code"
            checked = self.guardrails.smart_codes.validate_optional(field.smart_code, location)
            if checked.is_err():
                return checked
            try:
                value = field_value_from_raw(field.field_value, field.field_type)
            except ValueError as exc:
                return Return.err(
                    Error(
                        INVALID_FIELD_VALUE,
                        f"Dynamic field '{field.field_name}': {exc}",
                        {"field_name": field.field_name},
                    )
                )
            prepared.append((field, value))
        return Return.ok(prepared)

    def _check_relationships(self, request: EntityCrudRequest) -> Result[None]:
        for index, relationship in enumerate(request.relationships):
            checked = self.guardrails.smart_codes.validate_optional(
                relationship.smart_code, f"relationships[{index}].smart_code"
            )
            if checked.is_err():
                return checked
        return Return.ok(None)

    # ------------------------------------------------------------------
    # Writes of children, inside an open unit of work
    # ------------------------------------------------------------------

    async def _write_fields(
        self, context: RequestContext, entity: CoreEntity, prepared: List[PreparedField]
    ) -> None:
        for field, value in prepared:
            await self.uow.dynamic_fields.upsert(
                DynamicField(
                    organization_id=context.organization_id,
                    entity_id=entity.id,
                    field_name=field.field_name,
                    smart_code=field.smart_code,
                    **to_slots(value),
                )
            )

    async def _write_relationships(
        self,
        context: RequestContext,
        entity: CoreEntity,
        relationships: List[RelationshipInput],
    ) -> Optional[Error]:
        scope = [context.organization_id, PLATFORM_ORGANIZATION_ID]
        for relationship in relationships:
            target = await self.uow.entities.get_in_organizations(
                relationship.target_entity_id, scope
            )
            if target is None:
                return Error(
                    RELATIONSHIP_TARGET_NOT_FOUND,
                    f"Relationship target {relationship.target_entity_id} not found",
                    {"target_entity_id": str(relationship.target_entity_id)},
                )

            existing = await self.uow.relationships.find(
                entity.id, relationship.target_entity_id, relationship.relationship_type
            )
            if existing is not None:
                existing.is_active = relationship.is_active
                if relationship.smart_code is not None:
                    existing.smart_code = relationship.smart_code
                if relationship.relationship_data is not None:
                    existing.relationship_data = relationship.relationship_data
                await self.uow.relationships.update(existing)
                continue

            await self.uow.relationships.create(
                EntityRelationship(
                    organization_id=context.organization_id,
                    source_entity_id=entity.id,
                    target_entity_id=relationship.target_entity_id,
                    relationship_type=relationship.relationship_type,
                    is_active=relationship.is_active,
                    smart_code=relationship.smart_code,
                    relationship_data=relationship.relationship_data,
                )
            )
        return None

    async def _snapshot(self, entity: CoreEntity, request: EntityCrudRequest) -> dict:
        options = request.options
        fields = (
            await self.uow.dynamic_fields.get_by_entity_id(entity.id)
            if options.include_dynamic
            else None
        )
        relationships = (
            await self.uow.relationships.get_by_source_id(entity.id)
            if options.include_relationships
            else None
        )
        return serialize_entity(entity, fields, relationships)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def _create(
        self, context: RequestContext, request: EntityCrudRequest
    ) -> Result[EntityCrudResponse]:
        data = request.entity_data
        if not data.entity_type:
            return Return.err(Error(ENTITY_TYPE_REQUIRED, "entity_data.entity_type is required"))
        if not data.entity_name:
            return Return.err(Error(ENTITY_NAME_REQUIRED, "entity_data.entity_name is required"))

        smart_code = self.guardrails.smart_codes.validate(
            data.smart_code,
            required_prefix=request.options.required_smart_code_prefix,
            location="entity_data.smart_code",
        )
        if smart_code.is_err():
            return smart_code

        prepared = self._prepare_fields(request)
        if prepared.is_err():
            return prepared
        relationships_ok = self._check_relationships(request)
        if relationships_ok.is_err():
            return relationships_ok

        async with self.uow:
            actor_check = await enforce_actor_requirement(
                self.uow, context.actor_id, context.organization_id, "entities.create"
            )
            if actor_check.is_err():
                return actor_check

            entity = await self.uow.entities.create(
                CoreEntity(
                    organization_id=context.organization_id,
                    entity_type=data.entity_type,
                    entity_name=data.entity_name,
                    entity_code=data.entity_code,
                    smart_code=smart_code.value,
                    entity_metadata=data.metadata,
                    created_by=context.actor_id,
                    updated_by=context.actor_id,
                )
            )
            await self._write_fields(context, entity, prepared.value)
            error = await self._write_relationships(context, entity, request.relationships)
            if error is not None:
                return Return.err(error)

            snapshot = await self._snapshot(entity, request)
            await self.uow.commit()

        logger.info(f"Entity created: {entity.id} ({entity.entity_type})")
        return Return.ok(
            EntityCrudResponse(operation="CREATE", entity_id=str(entity.id), data=snapshot)
        )

    async def _read(
        self, context: RequestContext, request: EntityCrudRequest
    ) -> Result[EntityCrudResponse]:
        data = request.entity_data
        options = request.options

        async with self.uow:
            actor_check = await enforce_actor_requirement(
                self.uow, context.actor_id, context.organization_id, "entities.read"
            )
            if actor_check.is_err():
                return actor_check

            if data.entity_id is not None:
                entity = await self.uow.entities.get_in_organizations(
                    data.entity_id, [context.organization_id]
                )
                if entity is None:
                    return Return.err(
                        Error(ENTITY_NOT_FOUND, f"Entity {data.entity_id} not found")
                    )
                snapshot = await self._snapshot(entity, request)
                return Return.ok(
                    EntityCrudResponse(
                        operation="READ", entity_id=str(entity.id), data=snapshot
                    )
                )

            entities = await self.uow.entities.list_by_organization(
                context.organization_id,
                entity_type=data.entity_type,
                status=data.status,
                smart_code=data.smart_code,
                limit=options.limit,
                offset=options.offset,
            )
            items = [await self._snapshot(entity, request) for entity in entities]

        return Return.ok(EntityCrudResponse(operation="READ", items=items, count=len(items)))

    async def _update(
        self, context: RequestContext, request: EntityCrudRequest
    ) -> Result[EntityCrudResponse]:
        data = request.entity_data
        if data.entity_id is None:
            return Return.err(Error(ENTITY_ID_REQUIRED, "entity_data.entity_id is required"))

        if data.smart_code is not None:
            smart_code = self.guardrails.smart_codes.validate(
                data.smart_code,
                required_prefix=request.options.required_smart_code_prefix,
                location="entity_data.smart_code",
            )
            if smart_code.is_err():
                return smart_code

        if data.status is not None and data.status not in {s.value for s in EntityStatus}:
            return Return.err(
                Error(INVALID_STATUS, f"Unknown entity status '{data.status}'")
            )

        prepared = self._prepare_fields(request)
        if prepared.is_err():
            return prepared
        relationships_ok = self._check_relationships(request)
        if relationships_ok.is_err():
            return relationships_ok

        async with self.uow:
            actor_check = await enforce_actor_requirement(
                self.uow, context.actor_id, context.organization_id, "entities.update"
            )
            if actor_check.is_err():
                return actor_check

            entity = await self.uow.entities.get_in_organizations(
                data.entity_id, [context.organization_id]
            )
            if entity is None:
                return Return.err(Error(ENTITY_NOT_FOUND, f"Entity {data.entity_id} not found"))

            for attribute in ("entity_type", "entity_name", "entity_code", "smart_code", "status"):
                value = getattr(data, attribute)
                if value is not None:
                    setattr(entity, attribute, value)
            if data.metadata is not None:
                entity.entity_metadata = {**(entity.entity_metadata or {}), **data.metadata}
            entity.updated_by = context.actor_id
            entity.updated_at = datetime.utcnow()
            entity = await self.uow.entities.update(entity)

            if request.options.remove_dynamic_fields:
                await self.uow.dynamic_fields.delete_by_names(
                    entity.id, request.options.remove_dynamic_fields
                )
            await self._write_fields(context, entity, prepared.value)
            error = await self._write_relationships(context, entity, request.relationships)
            if error is not None:
                return Return.err(error)

            snapshot = await self._snapshot(entity, request)
            await self.uow.commit()

        logger.info(f"Entity updated: {entity.id}")
        return Return.ok(
            EntityCrudResponse(operation="UPDATE", entity_id=str(entity.id), data=snapshot)
        )

    async def _delete(
        self, context: RequestContext, request: EntityCrudRequest
    ) -> Result[EntityCrudResponse]:
        return await self._transition(context, request, CrudOperation.DELETE, EntityStatus.deleted)

    async def _archive(
        self, context: RequestContext, request: EntityCrudRequest
    ) -> Result[EntityCrudResponse]:
        return await self._transition(
            context, request, CrudOperation.ARCHIVE, EntityStatus.archived
        )

    async def _transition(
        self,
        context: RequestContext,
        request: EntityCrudRequest,
        operation: CrudOperation,
        status: EntityStatus,
    ) -> Result[EntityCrudResponse]:
        entity_id = request.entity_data.entity_id
        if entity_id is None:
            return Return.err(Error(ENTITY_ID_REQUIRED, "entity_data.entity_id is required"))

        async with self.uow:
            actor_check = await enforce_actor_requirement(
                self.uow,
                context.actor_id,
                context.organization_id,
                f"entities.{operation.value.lower()}",
            )
            if actor_check.is_err():
                return actor_check

            entity = await self.uow.entities.get_in_organizations(
                entity_id, [context.organization_id]
            )
            if entity is None:
                return Return.err(Error(ENTITY_NOT_FOUND, f"Entity {entity_id} not found"))

            entity.status = status.value
            entity.updated_by = context.actor_id
            entity.updated_at = datetime.utcnow()
            entity = await self.uow.entities.update(entity)
            snapshot = serialize_entity(entity)
            await self.uow.commit()

        logger.info(f"Entity {entity.id} status -> {status.value}")
        return Return.ok(
            EntityCrudResponse(
                operation=operation.value, entity_id=str(entity.id), data=snapshot
            )
        )
