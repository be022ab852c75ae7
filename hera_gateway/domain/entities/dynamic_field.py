"""
DynamicField Entity

Typed attribute stored out-of-line so entities can carry arbitrary schemas.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel


class DynamicField(SQLModel, table=True):
    """
    DynamicField - one named value owned by a CoreEntity.

    Business Rules:
    - Exactly one field_value_* slot is populated, matching field_type
    - Built from a FieldValue variant, never assembled slot by slot
    - Lives and dies with its owner
    """

    __tablename__ = "core_dynamic_data"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    organization_id: UUID = Field(nullable=False, index=True)
    entity_id: UUID = Field(nullable=False, index=True)

    field_name: str = Field(max_length=100)
    field_type: str = Field(max_length=20)

    field_value_text: Optional[str] = Field(default=None)
    field_value_number: Optional[float] = Field(default=None)
    field_value_boolean: Optional[bool] = Field(default=None)
    field_value_date: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    field_value_json: Optional[Any] = Field(default=None, sa_column=Column(JSON))

    smart_code: Optional[str] = Field(default=None, max_length=255)

    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )

    __table_args__ = (
        Index("idx_dynamic_entity_field", "entity_id", "field_name", unique=True),
        Index("idx_dynamic_text_lookup", "field_name", "field_value_text"),
    )
