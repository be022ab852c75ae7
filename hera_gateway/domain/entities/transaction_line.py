"""
TransactionLine Entity

Component of a UniversalTransaction.
"""

from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, Field, Index, SQLModel


class TransactionLine(SQLModel, table=True):
    """
    TransactionLine - one line of a header+lines write.

    Business Rules:
    - Lines whose smart_code has a GL segment carry side DR/CR and a currency
    - Replaced as a set when the parent transaction is updated
    """

    __tablename__ = "universal_transaction_lines"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    organization_id: UUID = Field(nullable=False, index=True)
    transaction_id: UUID = Field(nullable=False, index=True)

    line_number: int = Field(default=1)
    line_type: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None)
    smart_code: str = Field(max_length=255)
    entity_id: Optional[UUID] = Field(default=None)

    quantity: Optional[float] = Field(default=None)
    unit_amount: Optional[float] = Field(default=None)
    line_amount: float = Field(default=0.0)

    side: Optional[str] = Field(default=None, max_length=2)
    transaction_currency_code: Optional[str] = Field(default=None, max_length=3)

    line_data: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    __table_args__ = (
        Index("idx_line_txn_number", "transaction_id", "line_number", unique=True),
    )
