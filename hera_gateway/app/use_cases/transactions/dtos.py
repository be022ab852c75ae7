"""
Transaction Use Case DTOs (Data Transfer Objects)

Request and response contracts for the transaction dispatch family.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from hera_gateway.app.use_cases.common import DispatchOptions
from hera_gateway.domain.entities import CrudOperation


# ============================================================================
# Request DTOs
# ============================================================================


class TransactionData(BaseModel):
    """Transaction header; for a list READ the set keys act as filters"""

    model_config = ConfigDict(populate_by_name=True)

    transaction_id: Optional[UUID] = Field(
        default=None, validation_alias=AliasChoices("transaction_id", "id")
    )
    organization_id: Optional[str] = None
    transaction_type: Optional[str] = None
    transaction_code: Optional[str] = None
    transaction_date: Optional[datetime] = None
    smart_code: Optional[str] = None
    total_amount: Optional[float] = None
    transaction_currency_code: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("transaction_currency_code", "currency")
    )
    transaction_status: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("transaction_status", "status")
    )
    source_entity_id: Optional[UUID] = None
    target_entity_id: Optional[UUID] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("transaction_type")
    @classmethod
    def _uppercase_type(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value else value


class LineInput(BaseModel):
    """One transaction line; GL lines need side DR/CR"""

    model_config = ConfigDict(populate_by_name=True)

    line_number: Optional[int] = None
    line_type: Optional[str] = None
    description: Optional[str] = None
    smart_code: Optional[str] = None
    entity_id: Optional[UUID] = None
    quantity: Optional[float] = None
    unit_amount: Optional[float] = None
    line_amount: float = 0.0
    side: Optional[str] = None
    transaction_currency_code: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("transaction_currency_code", "currency")
    )
    line_data: Optional[Dict[str, Any]] = None
    organization_id: Optional[str] = None


class TransactionCrudRequest(BaseModel):
    """Body of POST /transactions"""

    operation: CrudOperation
    organization_id: Optional[str] = None
    transaction_data: TransactionData = Field(default_factory=TransactionData)
    lines: Optional[List[LineInput]] = None
    # Accepted only to be refused with a clear error code
    dynamic_fields: Optional[Any] = None
    options: DispatchOptions = Field(default_factory=DispatchOptions)

    @field_validator("operation", mode="before")
    @classmethod
    def _uppercase_operation(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value


# ============================================================================
# Response DTOs
# ============================================================================


class TransactionCrudResponse(BaseModel):
    """Dispatch result: one transaction, or a page of them for a list READ"""

    operation: str
    transaction_id: Optional[str] = None
    posting_outcome: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    items: Optional[List[Dict[str, Any]]] = None
    count: Optional[int] = None
