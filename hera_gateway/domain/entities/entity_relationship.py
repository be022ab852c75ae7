"""
EntityRelationship

Typed, directed edge between two CoreEntity rows.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel


class EntityRelationship(SQLModel, table=True):
    """
    EntityRelationship - edge such as belongs_to, MEMBER_OF, has_period.

    Business Rules:
    - MEMBER_OF / USER_MEMBER_OF_ORG edges from a USER to an ORGANIZATION
      entity are the sole basis of tenant authorization
    - Membership edges may live in the platform or in the target organization
    - Inactive edges grant nothing
    """

    __tablename__ = "core_relationships"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    organization_id: UUID = Field(nullable=False, index=True)

    source_entity_id: UUID = Field(nullable=False, index=True)
    target_entity_id: UUID = Field(nullable=False, index=True)
    relationship_type: str = Field(max_length=100)
    is_active: bool = Field(default=True)
    smart_code: Optional[str] = Field(default=None, max_length=255)

    relationship_data: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )

    __table_args__ = (
        Index("idx_rel_source_type", "source_entity_id", "relationship_type"),
        Index("idx_rel_target", "target_entity_id"),
    )
