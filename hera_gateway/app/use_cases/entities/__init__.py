"""
Entity Use Cases

Dispatch over CoreEntity rows, their dynamic fields and relationships.
"""

from .dtos import (
    DynamicFieldInput,
    EntityCrudRequest,
    EntityCrudResponse,
    EntityData,
    RelationshipInput,
)
from .entity_crud_use_case import EntityCrudUseCase

__all__ = [
    "DynamicFieldInput",
    "EntityCrudRequest",
    "EntityCrudResponse",
    "EntityCrudUseCase",
    "EntityData",
    "RelationshipInput",
]
