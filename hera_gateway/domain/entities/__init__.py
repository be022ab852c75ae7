"""
HERA Gateway Domain Entities

The six universal tables, one file per table.
"""

from .enums import (
    CrudOperation,
    EntityFamily,
    EntityStatus,
    FieldType,
    LineSide,
    OrganizationStatus,
    TransactionStatus,
)

from .organization import Organization
from .core_entity import CoreEntity
from .dynamic_field import DynamicField
from .entity_relationship import EntityRelationship
from .universal_transaction import UniversalTransaction
from .transaction_line import TransactionLine

__all__ = [
    # Enums
    "CrudOperation",
    "EntityFamily",
    "EntityStatus",
    "FieldType",
    "LineSide",
    "OrganizationStatus",
    "TransactionStatus",
    # Tables
    "Organization",
    "CoreEntity",
    "DynamicField",
    "EntityRelationship",
    "UniversalTransaction",
    "TransactionLine",
]
