"""
Dispatch Common

Options shared by both dispatch families, row serializers and the
store-error translation used by every CRUD use case.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError

from hera_gateway.domain.entities import (
    CoreEntity,
    DynamicField,
    EntityRelationship,
    TransactionLine,
    UniversalTransaction,
)
from hera_gateway.domain.field_value import from_slots, to_wire
from hera_gateway.libs.result import Error

logger = logging.getLogger(__name__)

STORE_ERROR = "STORE_ERROR"


class DispatchOptions(BaseModel):
    """Per-request knobs; unknown keys are ignored"""

    model_config = ConfigDict(extra="ignore")

    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)
    include_dynamic: bool = True
    include_relationships: bool = False
    include_lines: bool = True
    remove_dynamic_fields: List[str] = Field(default_factory=list)
    required_smart_code_prefix: Optional[str] = None
    posting_rule: Optional[Dict[str, Any]] = None
    ai_confidence: Optional[float] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    @field_validator("remove_dynamic_fields", mode="before")
    @classmethod
    def _single_name_as_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


def store_error(exc: SQLAlchemyError, operation: str) -> Error:
    """Translate a store failure, keeping the driver's own message"""
    native = getattr(exc, "orig", None) or exc
    logger.error(f"Store error during {operation}: {native}")
    return Error(STORE_ERROR, str(native), {"operation": operation})


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def serialize_dynamic_field(row: DynamicField) -> Dict[str, Any]:
    return {
        "id": str(row.id),
        "field_name": row.field_name,
        "field_type": row.field_type,
        "field_value": to_wire(from_slots(row.field_type, row)),
        "smart_code": row.smart_code,
    }


def serialize_relationship(row: EntityRelationship) -> Dict[str, Any]:
    return {
        "id": str(row.id),
        "source_entity_id": str(row.source_entity_id),
        "target_entity_id": str(row.target_entity_id),
        "relationship_type": row.relationship_type,
        "is_active": row.is_active,
        "smart_code": row.smart_code,
        "relationship_data": row.relationship_data,
    }


def serialize_entity(
    entity: CoreEntity,
    dynamic_fields: Optional[List[DynamicField]] = None,
    relationships: Optional[List[EntityRelationship]] = None,
) -> Dict[str, Any]:
    data = {
        "id": str(entity.id),
        "organization_id": str(entity.organization_id),
        "entity_type": entity.entity_type,
        "entity_name": entity.entity_name,
        "entity_code": entity.entity_code,
        "smart_code": entity.smart_code,
        "status": entity.status,
        "metadata": entity.entity_metadata,
        "created_by": str(entity.created_by) if entity.created_by else None,
        "updated_by": str(entity.updated_by) if entity.updated_by else None,
        "created_at": _iso(entity.created_at),
        "updated_at": _iso(entity.updated_at),
    }
    if dynamic_fields is not None:
        data["dynamic_fields"] = {
            row.field_name: serialize_dynamic_field(row) for row in dynamic_fields
        }
    if relationships is not None:
        data["relationships"] = [serialize_relationship(row) for row in relationships]
    return data


def serialize_line(line: TransactionLine) -> Dict[str, Any]:
    return {
        "id": str(line.id),
        "line_number": line.line_number,
        "line_type": line.line_type,
        "description": line.description,
        "smart_code": line.smart_code,
        "entity_id": str(line.entity_id) if line.entity_id else None,
        "quantity": line.quantity,
        "unit_amount": line.unit_amount,
        "line_amount": line.line_amount,
        "side": line.side,
        "transaction_currency_code": line.transaction_currency_code,
        "line_data": line.line_data,
    }


def serialize_transaction(
    transaction: UniversalTransaction,
    lines: Optional[List[TransactionLine]] = None,
    gl_totals: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    data = {
        "id": str(transaction.id),
        "organization_id": str(transaction.organization_id),
        "transaction_type": transaction.transaction_type,
        "transaction_code": transaction.transaction_code,
        "transaction_date": _iso(transaction.transaction_date),
        "smart_code": transaction.smart_code,
        "total_amount": transaction.total_amount,
        "transaction_currency_code": transaction.transaction_currency_code,
        "transaction_status": transaction.transaction_status,
        "source_entity_id": (
            str(transaction.source_entity_id) if transaction.source_entity_id else None
        ),
        "target_entity_id": (
            str(transaction.target_entity_id) if transaction.target_entity_id else None
        ),
        "metadata": transaction.transaction_metadata,
        "created_by": str(transaction.created_by) if transaction.created_by else None,
        "updated_by": str(transaction.updated_by) if transaction.updated_by else None,
        "created_at": _iso(transaction.created_at),
        "updated_at": _iso(transaction.updated_at),
    }
    if lines is not None:
        data["lines"] = [serialize_line(line) for line in lines]
    if gl_totals is not None:
        data["gl_totals"] = gl_totals
    return data
