"""
Organization Entity

Tenant registry row. The only table that is not itself tenant-scoped.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from .enums import OrganizationStatus


class Organization(SQLModel, table=True):
    """
    Organization entity - the tenant isolation boundary.

    Business Rules:
    - Every business row carries an organization_id pointing here
    - The all-zero id is the platform namespace, never a business target
    - settings is an opaque configuration blob
    """

    __tablename__ = "core_organizations"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    organization_name: str = Field(max_length=255)
    organization_code: Optional[str] = Field(default=None, max_length=100)

    settings: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    status: OrganizationStatus = Field(default=OrganizationStatus.active)

    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )

    __table_args__ = (Index("idx_org_code", "organization_code"),)
