from fastapi import status

from hera_gateway.libs.result import Error

UNAUTHORIZED_CODES = {"invalid_token", "identity_not_resolved"}

FORBIDDEN_CODES = {
    "no_organization_context",
    "actor_not_member",
    "ACTOR_USER_ID_REQUIRED",
    "ORGANIZATION_ID_REQUIRED",
    "INVALID_ACTOR_NULL_UUID",
    "INVALID_ORGANIZATION_PLATFORM_UUID",
    "ACTOR_ENTITY_NOT_FOUND",
    "INVALID_ACTOR_ENTITY_TYPE",
    "ORGANIZATION_ENTITY_NOT_FOUND",
    "ACTOR_NOT_MEMBER_OF_ORGANIZATION",
}

NOT_FOUND_CODES = {"route_not_found", "ENTITY_NOT_FOUND", "TRANSACTION_NOT_FOUND"}

SERVER_CODES = {"STORE_ERROR"}


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


def raise_for_error(error: Error):
    """Raise the API exception matching a use-case error code"""
    if error.code in SERVER_CODES:
        raise ServerError(error)
    if error.code in UNAUTHORIZED_CODES:
        raise ClientError(error, status_code=status.HTTP_401_UNAUTHORIZED)
    if error.code in FORBIDDEN_CODES:
        raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
    if error.code in NOT_FOUND_CODES:
        raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
    # Everything else is a guardrail or payload rejection
    raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
