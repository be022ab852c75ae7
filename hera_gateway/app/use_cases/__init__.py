"""
Use Cases

Organized into domain folders:
- identity/: Caller identity and tenant resolution
- entities/: Entity dispatch
- transactions/: Transaction dispatch

Import from subdirectories for better organization.
"""

from .entities import EntityCrudRequest, EntityCrudResponse, EntityCrudUseCase
from .identity import RequestContext, ResolveContextUseCase
from .transactions import (
    TransactionCrudRequest,
    TransactionCrudResponse,
    TransactionCrudUseCase,
)

__all__ = [
    "EntityCrudRequest",
    "EntityCrudResponse",
    "EntityCrudUseCase",
    "RequestContext",
    "ResolveContextUseCase",
    "TransactionCrudRequest",
    "TransactionCrudResponse",
    "TransactionCrudUseCase",
]
