from datetime import UTC, datetime, timedelta
from typing import Any, Dict, Optional
from uuid import UUID

from jose import JWTError, jwt

from config import ApplicationConfig


def create_access_token(
    subject: Optional[str],
    organization_id: Optional[UUID] = None,
    expires_delta: timedelta = timedelta(minutes=15),
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Create JWT access token

    Args:
        subject: External user id, becomes the "sub" claim
        organization_id: Optional tenant claim used when no header hint is sent
        expires_delta: Token expiration duration
        extra_claims: Additional claims merged into the payload

    Returns:
        JWT token string
    """
    now = datetime.now(UTC)
    payload: Dict[str, Any] = {"exp": now + expires_delta, "iat": now}
    if subject is not None:
        payload["sub"] = subject
    if organization_id is not None:
        payload["organization_id"] = str(organization_id)
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(
        payload, ApplicationConfig.JWT_SECRET, algorithm=ApplicationConfig.JWT_ALGORITHM
    )


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify and decode JWT token

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        payload = jwt.decode(
            token, ApplicationConfig.JWT_SECRET, algorithms=[ApplicationConfig.JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        return None
