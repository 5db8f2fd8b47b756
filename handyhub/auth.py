import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, SECRET_KEY
from .database import get_db
from .exceptions import AuthenticationError, ForbiddenError
from .models import User

logger = logging.getLogger(__name__)

# auto_error=False so guest-capable routes can run without a header
security = HTTPBearer(auto_error=False)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"❌ Password verification error: {e}")
        return False


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token for a user

    Args:
        user: Token subject
        expires_delta: Token lifetime (default ACCESS_TOKEN_EXPIRE_MINUTES)
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(user.id), "role": user.role, "exp": expire}
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode an access token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"⚠️ JWT verification failed: {e}")
        return None


def _resolve_user(token: str, db: Session) -> User:
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        raise AuthenticationError("Invalid or expired token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise AuthenticationError("Invalid token claims") from e

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"⚠️ Token subject {user_id} no longer exists")
        raise AuthenticationError("User not found")
    if not user.is_active:
        logger.warning(f"⚠️ Deactivated user {user_id} attempted to authenticate")
        raise AuthenticationError("Account has been deactivated")

    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the bearer token"""
    if not credentials:
        raise AuthenticationError(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )
    return _resolve_user(credentials.credentials, db)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Current user when a token is supplied, None for guests"""
    if not credentials:
        return None
    return _resolve_user(credentials.credentials, db)


def require_roles(*roles: str):
    """
    Dependency factory restricting a route to the given roles.
    Use as ``Depends(require_roles("admin"))``.
    """

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning(f"⚠️ User {user.id} with role {user.role} denied access (needs {roles})")
            raise ForbiddenError(f"User role {user.role} is not authorized to access this route")
        return user

    return dependency
