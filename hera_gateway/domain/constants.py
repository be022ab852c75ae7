from uuid import UUID

# Reserved non-tenant namespace. Holds identity/registry rows only.
PLATFORM_ORGANIZATION_ID = UUID("00000000-0000-0000-0000-000000000000")
NULL_UUID = UUID("00000000-0000-0000-0000-000000000000")

USER_ENTITY_TYPE = "USER"
ORGANIZATION_ENTITY_TYPE = "ORGANIZATION"

MEMBERSHIP_RELATIONSHIP_TYPES = ("MEMBER_OF", "USER_MEMBER_OF_ORG")

# Dynamic field on a platform USER entity linking it to the token subject
EXTERNAL_USER_ID_FIELD = "external_user_id"
