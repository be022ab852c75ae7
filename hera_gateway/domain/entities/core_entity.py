"""
CoreEntity

Any business noun: customer, product, employee, GL account, user, ...
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from .enums import EntityStatus


class CoreEntity(SQLModel, table=True):
    """
    CoreEntity - generic row distinguished by entity_type and smart_code.

    Business Rules:
    - organization_id is mandatory and equals the caller's tenant on writes
    - entity_type is stored uppercase
    - "delete" is a status transition, never a physical delete
    - created_by / updated_by stamp the acting USER entity
    """

    __tablename__ = "core_entities"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    organization_id: UUID = Field(nullable=False, index=True)

    entity_type: str = Field(max_length=100)
    entity_name: str = Field(max_length=255)
    entity_code: Optional[str] = Field(default=None, max_length=100)
    smart_code: str = Field(max_length=255)
    status: str = Field(default=EntityStatus.active.value, max_length=50)

    entity_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_by: Optional[UUID] = Field(default=None)
    updated_by: Optional[UUID] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )

    __table_args__ = (
        Index("idx_entity_org_type", "organization_id", "entity_type"),
        Index("idx_entity_org_status", "organization_id", "status"),
    )
