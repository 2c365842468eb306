"""Authentication routes.

Endpoints:
- POST /auth/signup: Create a password account and start a session
- POST /auth/login: Password login
- GET /auth/me: Current user or null, never 401
- POST /auth/logout: End the session
- GET /auth/google/start: Begin Google sign-in
- GET /auth/google/callback: Finish Google sign-in

The two Google endpoints are browser navigations, so every outcome is a
302. Failures land on {origin}/login?error=<code>.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse

from api.config import Settings, get_settings
from api.cookies import (
    SESSION_COOKIE,
    clear_oauth_cookies,
    clear_session_cookie,
    read_oauth_cookies,
    set_oauth_cookies,
    set_session_cookie,
)
from api.dependencies import get_oauth_service, get_optional_user_repo, get_user_repo
from api.models import AuthResponse, LoginRequest, MeResponse, SignupRequest, UserResponse
from api.security import (
    create_access_token,
    get_current_user,
    to_response,
    verify_token,
)
from domain.model.errors import DomainError, DuplicateError, ValidationError
from port.user_repository import UserRepository
from services import auth_service
from services.oauth_service import OAuthService
from utils.redirects import request_origin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

NO_STORE_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _issue_session(response: Response, settings: Settings, user_id: str) -> str:
    token = create_access_token(user_id, settings)
    set_session_cookie(response, settings, token)
    return token


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    response: Response,
    repo: UserRepository = Depends(get_user_repo),
    settings: Settings = Depends(get_settings),
):
    """Register a new password user.

    Raises:
        HTTPException: 409 if email already exists, 400 if validation fails
    """
    try:
        user = auth_service.register(repo, request.email, request.password)
    except DuplicateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DomainError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    token = _issue_session(response, settings, user.id)
    logger.info("User registered", extra={"userId": user.id, "email": user.email})
    return AuthResponse(token=token, user=to_response(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    response: Response,
    repo: UserRepository = Depends(get_user_repo),
    settings: Settings = Depends(get_settings),
):
    """Login with email and password.

    Raises:
        HTTPException: 401 if credentials are invalid, 400 if the account
            only signs in through Google
    """
    try:
        user = auth_service.authenticate(repo, request.email, request.password)
    except auth_service.ExternalAccountError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    token = _issue_session(response, settings, user.id)
    logger.info("User logged in", extra={"userId": user.id})
    return AuthResponse(token=token, user=to_response(user))


@router.get("/me", response_model=MeResponse)
async def get_me(
    request: Request,
    response: Response,
    current_user: Optional[UserResponse] = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    """Current user, or {"user": null} when not logged in."""
    response.headers.update(NO_STORE_HEADERS)

    # Diagnostics for proxied deployments where the cookie may not be forwarded
    cookie_token = request.cookies.get(SESSION_COOKIE)
    response.headers["x-qrafty-auth-cookie-present"] = "1" if cookie_token else "0"
    if cookie_token:
        valid = verify_token(cookie_token, settings) is not None
        response.headers["x-qrafty-auth-cookie-valid"] = "1" if valid else "0"

    return MeResponse(user=current_user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(settings: Settings = Depends(get_settings)):
    """Clear the session cookie."""
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    clear_session_cookie(response, settings)
    return response


# ── Google OAuth ─────────────────────────────────────────────


@router.get("/google/start")
async def google_start(
    request: Request,
    next: Optional[str] = None,
    oauth: OAuthService = Depends(get_oauth_service),
    settings: Settings = Depends(get_settings),
):
    """Open a sign-in transaction and send the browser to Google."""
    started = oauth.begin(
        referer=request.headers.get("referer"),
        origin=request.headers.get("origin"),
        request_origin=request_origin(request.headers, request.url.scheme),
        next_param=next,
    )

    response = RedirectResponse(started.redirect_to, status_code=status.HTTP_302_FOUND)
    if started.transaction is not None:
        set_oauth_cookies(response, settings, started.transaction)
    return response


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    oauth: OAuthService = Depends(get_oauth_service),
    repo: Optional[UserRepository] = Depends(get_optional_user_repo),
    settings: Settings = Depends(get_settings),
):
    """Finish the sign-in transaction started by /auth/google/start.

    The transaction cookies are cleared on every response, so a callback
    URL works at most once even if the code exchange fails midway.
    """
    outcome = await oauth.complete(
        repo,
        code=code,
        state=state,
        request_origin=request_origin(request.headers, request.url.scheme),
        **read_oauth_cookies(request, settings),
    )

    response = RedirectResponse(outcome.redirect_to, status_code=status.HTTP_302_FOUND)
    clear_oauth_cookies(response, settings)
    if outcome.succeeded:
        _issue_session(response, settings, outcome.user_id)
    return response
