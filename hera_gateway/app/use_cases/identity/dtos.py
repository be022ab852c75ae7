"""
Identity Use Case DTOs

Resolved caller context handed to every downstream stage.
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class RequestContext(BaseModel):
    """Who is calling, and on behalf of which tenant"""

    model_config = ConfigDict(frozen=True)

    actor_id: UUID
    organization_id: UUID
    external_user_id: str
    organization_source: str  # header | token | membership
