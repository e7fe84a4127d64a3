# ============================================================================
# FILE: app/api/dependencies.py
# Authentication dependencies for JWT bearer tokens
# ============================================================================
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from jose import JWTError, jwt
from uuid import UUID

from app.config.database import get_db
from app.config.settings import get_settings
from app.models.user import User, UserRole
from app.services.user.user_service import UserService

# ============================================================================
# Security Schemes
# ============================================================================

# Tokens are issued by the auth service; this API only verifies them
jwt_security = HTTPBearer(
    scheme_name="JWT Bearer Token",
    description="Enter your JWT access token"
)


# ============================================================================
# JWT Token Functions
# ============================================================================

def verify_access_token(token: str) -> dict:
    """
    Verify and decode a JWT access token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Could not validate credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Verify token type
    token_type = payload.get("type")
    if token_type != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


# ============================================================================
# JWT Authentication Dependencies
# ============================================================================

def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(jwt_security),
        db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user from JWT access token.
    The role is taken from storage, not from the token.

    Raises:
        HTTPException 401: If token is invalid or user not found
        HTTPException 403: If the account is disabled
    """
    payload = verify_access_token(credentials.credentials)

    # Extract user ID from token
    user_id_str: Optional[str] = payload.get("sub")
    if user_id_str is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID in token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = UserService.get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    return user


# ============================================================================
# Role Dependencies
# ============================================================================

def require_role(*roles: UserRole):
    """Dependency factory that only lets the given roles through."""

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Only {allowed} users can perform this action"
            )
        return current_user

    return role_checker


require_business = require_role(UserRole.BUSINESS)
require_client = require_role(UserRole.CLIENT)
