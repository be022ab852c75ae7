"""
HERA Gateway Domain Enums

Enumeration types shared by the six universal tables.
"""

from enum import Enum


class OrganizationStatus(str, Enum):
    """Tenant status"""

    active = "active"
    suspended = "suspended"


class EntityStatus(str, Enum):
    """Lifecycle status of entities; rows are never physically deleted"""

    active = "active"
    archived = "archived"
    deleted = "deleted"


class TransactionStatus(str, Enum):
    """Lifecycle status of transaction headers"""

    active = "active"
    posted = "posted"
    staged = "staged"
    archived = "archived"
    deleted = "deleted"


class FieldType(str, Enum):
    """Value slot used by a dynamic field"""

    text = "text"
    number = "number"
    boolean = "boolean"
    date = "date"
    json = "json"


class LineSide(str, Enum):
    """Debit/credit discriminator on GL lines"""

    DR = "DR"
    CR = "CR"


class CrudOperation(str, Enum):
    """Operations accepted by the generic CRUD dispatcher"""

    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ARCHIVE = "ARCHIVE"


class EntityFamily(str, Enum):
    """Generic table family a request is routed to"""

    entities = "entities"
    transactions = "transactions"
