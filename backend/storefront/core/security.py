"""
Bearer token utilities.

Tokens are issued by the identity provider; this module only needs to verify
them and extract the subject. ``create_access_token`` exists for development
tooling and tests, and signs with the same settings the verifier uses.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt

from storefront.core.config import get_settings
from storefront.core.logging import get_logger

logger = get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"


class SecurityError(Exception):
    """Base exception for security-related errors."""

    def __init__(self, message: str, code: str, **context):
        super().__init__(message)
        self.code = code
        self.context = context


class TokenError(SecurityError):
    """Exception raised for token-related errors."""

    pass


def create_access_token(
    user_id: UUID,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT access token for a user.

    Args:
        user_id: Subject of the token
        role: Role claim copied into the token
        expires_delta: Optional custom lifetime

    Returns:
        Encoded JWT token string

    Raises:
        TokenError: If token creation fails
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta
        or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )

    claims = {
        "sub": str(user_id),
        "role": role,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": expire,
    }

    try:
        token = jwt.encode(
            claims,
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )
    except JWTError as e:
        logger.error(
            "Failed to create access token",
            user_id=str(user_id),
            error=str(e),
        )
        raise TokenError(
            "Failed to create access token",
            code="TOKEN_CREATE_FAILED",
            original_error=str(e),
        ) from e

    logger.debug(
        "Access token created",
        user_id=str(user_id),
        expires_at=expire.isoformat(),
    )
    return token


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string to decode

    Returns:
        Dictionary of decoded token claims

    Raises:
        TokenError: If token is empty, expired, malformed or not an access token
    """
    if not token:
        raise TokenError("Token cannot be empty", code="EMPTY_TOKEN")

    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError as e:
        logger.warning("Token has expired")
        raise TokenError("Token has expired", code="TOKEN_EXPIRED") from e
    except JWTError as e:
        logger.warning(
            "Invalid token",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise TokenError(
            "Invalid token",
            code="TOKEN_INVALID",
            original_error=str(e),
        ) from e

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        logger.warning("Token type mismatch", token_type=payload.get("type"))
        raise TokenError("Invalid token type", code="TOKEN_TYPE_INVALID")

    return payload


def get_token_user_id(payload: Dict[str, Any]) -> UUID:
    """
    Extract the user ID from a decoded token payload.

    Args:
        payload: Claims returned by ``decode_token``

    Returns:
        User identifier from the ``sub`` claim

    Raises:
        TokenError: If the subject is missing or not a UUID
    """
    subject = payload.get("sub")
    if not subject:
        raise TokenError("Token missing subject", code="TOKEN_SUBJECT_MISSING")

    try:
        return UUID(subject)
    except ValueError as e:
        raise TokenError(
            "Token subject is not a valid user ID",
            code="TOKEN_SUBJECT_INVALID",
            subject=subject,
        ) from e
