"""
Entity Use Case DTOs (Data Transfer Objects)

Request and response contracts for the entity dispatch family.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from hera_gateway.app.use_cases.common import DispatchOptions
from hera_gateway.domain.entities import CrudOperation


# ============================================================================
# Request DTOs
# ============================================================================


class EntityData(BaseModel):
    """Entity header; for a list READ the set keys act as filters"""

    model_config = ConfigDict(populate_by_name=True)

    entity_id: Optional[UUID] = Field(
        default=None, validation_alias=AliasChoices("entity_id", "id")
    )
    organization_id: Optional[str] = None
    entity_type: Optional[str] = None
    entity_name: Optional[str] = None
    entity_code: Optional[str] = None
    smart_code: Optional[str] = None
    status: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("entity_type")
    @classmethod
    def _uppercase_type(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value else value


class DynamicFieldInput(BaseModel):
    """One named value; field_type is inferred from the value when omitted"""

    model_config = ConfigDict(populate_by_name=True)

    field_name: str = Field(..., min_length=1)
    field_value: Any = Field(
        default=None, validation_alias=AliasChoices("field_value", "value")
    )
    field_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("field_type", "type")
    )
    smart_code: Optional[str] = None
    organization_id: Optional[str] = None


class RelationshipInput(BaseModel):
    """Edge from the entity being written to an existing entity"""

    model_config = ConfigDict(populate_by_name=True)

    target_entity_id: UUID = Field(
        validation_alias=AliasChoices("target_entity_id", "to_entity_id")
    )
    relationship_type: str = Field(..., min_length=1)
    smart_code: Optional[str] = None
    is_active: bool = True
    relationship_data: Optional[Dict[str, Any]] = None
    organization_id: Optional[str] = None


class EntityCrudRequest(BaseModel):
    """Body of POST /entities"""

    operation: CrudOperation
    organization_id: Optional[str] = None
    entity_data: EntityData = Field(default_factory=EntityData)
    dynamic_fields: List[DynamicFieldInput] = Field(default_factory=list)
    relationships: List[RelationshipInput] = Field(default_factory=list)
    options: DispatchOptions = Field(default_factory=DispatchOptions)

    @field_validator("operation", mode="before")
    @classmethod
    def _uppercase_operation(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("dynamic_fields", mode="before")
    @classmethod
    def _fields_from_mapping(cls, value: Any) -> Any:
        # {"email": "a@b.c"} or {"email": {"value": "a@b.c", "type": "text"}}
        if isinstance(value, dict):
            normalized = []
            for name, entry in value.items():
                if isinstance(entry, dict) and ("value" in entry or "field_value" in entry):
                    normalized.append({"field_name": name, **entry})
                else:
                    normalized.append({"field_name": name, "field_value": entry})
            return normalized
        return value


# ============================================================================
# Response DTOs
# ============================================================================


class EntityCrudResponse(BaseModel):
    """Dispatch result: one entity, or a page of entities for a list READ"""

    operation: str
    entity_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    items: Optional[List[Dict[str, Any]]] = None
    count: Optional[int] = None
