"""
Identity Use Cases

Caller identity and tenant resolution.
"""

from .dtos import RequestContext
from .resolve_context_use_case import ResolveContextUseCase

__all__ = [
    "RequestContext",
    "ResolveContextUseCase",
]
