"""Session tokens and authentication dependencies.

The verifier never raises: a missing, malformed, expired or wrongly
signed credential means "not logged in". Endpoints that need a user
depend on get_current_user_required, which is the only place a 401 is
produced.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from api.config import Settings, get_settings
from api.cookies import SESSION_COOKIE
from api.dependencies import get_optional_user_repo
from api.models import UserResponse
from domain.model.user import User
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"

security = HTTPBearer(auto_error=False)


def to_response(user: User) -> UserResponse:
    """Convert domain User to API UserResponse."""
    return UserResponse(
        id=user.id,
        email=user.email,
        displayName=user.display_name,
    )


def create_access_token(user_id: str, settings: Settings) -> str:
    """Create a signed session token for user."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "exp": now + timedelta(days=settings.JWT_EXPIRATION_DAYS),
        "iat": now,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_token(token: str, settings: Settings) -> Optional[str]:
    """Verify session token and extract user_id."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.debug(f"JWT verification failed: {e}")
        return None
    except Exception as e:
        # Garbage input can surface as non-JWTError from the decoder
        logger.debug(f"JWT decode error: {type(e).__name__}")
        return None

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        return None
    return user_id


def read_credential(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials] = None,
) -> Optional[str]:
    """Session cookie first, then Authorization: Bearer."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    if credentials and credentials.credentials:
        return credentials.credentials
    return None


def resolve_user_id(
    request: Request,
    settings: Settings,
    credentials: Optional[HTTPAuthorizationCredentials] = None,
) -> Optional[str]:
    token = read_credential(request, credentials)
    if not token:
        return None
    return verify_token(token, settings)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
    user_repo: Optional[UserRepository] = Depends(get_optional_user_repo),
) -> Optional[UserResponse]:
    """Get current authenticated user (optional). Returns None if not logged in."""
    user_id = resolve_user_id(request, settings, credentials)
    if not user_id or user_repo is None:
        return None

    user = user_repo.get_by_id(user_id)
    if not user:
        return None

    return to_response(user)


def get_current_user_required(
    current_user: Optional[UserResponse] = Depends(get_current_user),
) -> UserResponse:
    """Get current authenticated user (required). Raises 401 if not authenticated."""
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user
