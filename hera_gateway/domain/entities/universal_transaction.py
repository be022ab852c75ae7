"""
UniversalTransaction Entity

Business event header: sale, journal entry, adjustment, ...
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from .enums import TransactionStatus


class UniversalTransaction(SQLModel, table=True):
    """
    UniversalTransaction - header of a header+lines write.

    Business Rules:
    - Header and lines are committed together or not at all
    - GL lines must balance per currency before the header is written
    - transaction_type is stored uppercase
    """

    __tablename__ = "universal_transactions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    organization_id: UUID = Field(nullable=False, index=True)

    transaction_type: str = Field(max_length=100)
    transaction_code: Optional[str] = Field(default=None, max_length=100)
    transaction_date: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    smart_code: str = Field(max_length=255)

    total_amount: float = Field(default=0.0)
    transaction_currency_code: Optional[str] = Field(default=None, max_length=3)
    transaction_status: str = Field(default=TransactionStatus.active.value, max_length=50)

    source_entity_id: Optional[UUID] = Field(default=None)
    target_entity_id: Optional[UUID] = Field(default=None)

    transaction_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_by: Optional[UUID] = Field(default=None)
    updated_by: Optional[UUID] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )

    __table_args__ = (
        Index("idx_txn_org_type", "organization_id", "transaction_type"),
        Index("idx_txn_org_date", "organization_id", "transaction_date"),
    )
