"""
FastAPI dependencies for authentication and authorization.

This module turns a bearer token into the authenticated ``User`` and the
``Actor`` passed to the order workflow, and provides role gates for routes.
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.logging import get_logger, set_actor
from storefront.core.security import TokenError, decode_token, get_token_user_id
from storefront.database.connection import get_db
from storefront.database.models.user import User, UserRole
from storefront.services.orders.policy import Actor
from storefront.services.users.repository import UserRepository, UserRepositoryError

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Validate the bearer token and load the active user it names.

    Args:
        credentials: HTTP Bearer token from Authorization header
        db: Database session

    Returns:
        User: Authenticated active user

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired or the
            user does not exist; 403 if the account is suspended or banned
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        logger.warning("Authentication failed: No credentials provided")
        raise credentials_exception

    try:
        payload = decode_token(credentials.credentials)
        user_id = get_token_user_id(payload)
    except TokenError as e:
        logger.warning(
            "Authentication failed: token rejected",
            code=e.code,
            error=str(e),
        )
        raise credentials_exception from e

    try:
        user = await UserRepository(db).get_user_by_id(user_id)
    except UserRepositoryError as e:
        logger.error(
            "Database error during user retrieval",
            user_id=str(user_id),
            error=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from e

    if user is None:
        logger.warning("Authentication failed: User not found", user_id=str(user_id))
        raise credentials_exception

    if not user.is_active:
        logger.warning(
            "Authentication failed: User account is not active",
            user_id=str(user.id),
            status=user.status.value,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=user.status.denial_message,
        )

    set_actor(str(user.id), user.role.value)
    logger.debug(
        "User authenticated",
        user_id=str(user.id),
        role=user.role.value,
    )

    return user


def require_role(*allowed_roles: UserRole):
    """
    Create a dependency that requires specific user roles.

    Args:
        *allowed_roles: Roles that may use the route

    Example:
        @router.get("/admin/statistics")
        async def statistics(user: Annotated[User, Depends(require_role(UserRole.ADMIN))]):
            ...
    """

    async def role_checker(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in allowed_roles:
            logger.warning(
                "Access denied: Insufficient permissions",
                user_id=str(current_user.id),
                user_role=current_user.role.value,
                required_roles=[role.value for role in allowed_roles],
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return role_checker


def actor_from_user(user: User) -> Actor:
    return Actor(user_id=user.id, role=user.role)


async def get_current_actor(
    current_user: Annotated[User, Depends(get_current_user)],
) -> Actor:
    """Actor for any authenticated active user."""
    return actor_from_user(current_user)


async def get_vendor_actor(
    current_user: Annotated[User, Depends(require_role(UserRole.VENDOR, UserRole.ADMIN))],
) -> Actor:
    """Actor for vendors and admins."""
    return actor_from_user(current_user)


async def get_admin_user(
    current_user: Annotated[User, Depends(require_role(UserRole.ADMIN))],
) -> User:
    return current_user


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
VendorActor = Annotated[Actor, Depends(get_vendor_actor)]
CurrentAdmin = Annotated[User, Depends(get_admin_user)]
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
