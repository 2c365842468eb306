from fastapi import Depends, HTTPException, Request

from adapter.external.google_oauth import GoogleOAuthAdapter
from adapter.mongodb.user_repository import MongoUserRepository
from api.config import Settings, get_settings
from port.identity_provider import IdentityProvider
from port.user_repository import UserRepository
from services.oauth_service import OAuthService


def get_optional_user_repo(
    request: Request, settings: Settings = Depends(get_settings),
) -> UserRepository | None:
    """User repository on the app-scoped MongoDB client, or None if unavailable.

    Used where a request must degrade instead of failing (session checks,
    OAuth redirects).
    """
    client = getattr(request.app.state, "mongo_client", None)
    if client is None:
        return None
    return MongoUserRepository(client[settings.MONGODB_DATABASE])


def get_user_repo(repo: UserRepository | None = Depends(get_optional_user_repo)) -> UserRepository:
    """User repository, raising 503 if the database is unavailable."""
    if repo is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return repo


def get_identity_provider(settings: Settings = Depends(get_settings)) -> IdentityProvider | None:
    if not settings.google_configured:
        return None
    return GoogleOAuthAdapter(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        timeout=settings.GOOGLE_HTTP_TIMEOUT_SECONDS,
    )


def get_oauth_service(
    settings: Settings = Depends(get_settings),
    provider: IdentityProvider | None = Depends(get_identity_provider),
) -> OAuthService:
    return OAuthService(
        provider=provider,
        redirect_url=settings.GOOGLE_REDIRECT_URL,
        web_origin=settings.WEB_ORIGIN,
        production=settings.is_production,
        # Development keeps accepting LAN origins such as a phone on the same network
        allowed_origins=settings.cors_origins if settings.is_production else None,
    )
