"""Cookie names and lifecycles for the session and OAuth transaction.

Transaction cookie values are HS256-signed with python-jose. Each token
names its cookie and carries the transaction's state, so a value cannot be
forged, moved to another cookie, or combined with cookies from a different
sign-in attempt.
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import Request, Response
from jose import JWTError, jwt

from api.config import Settings
from domain.model.oauth import OAuthTransaction

logger = logging.getLogger(__name__)

SESSION_COOKIE = "qrafty_auth"

OAUTH_STATE_COOKIE = "qrafty_oauth_state"
OAUTH_ORIGIN_COOKIE = "qrafty_oauth_origin"
OAUTH_REDIRECT_URL_COOKIE = "qrafty_oauth_redirect_url"
OAUTH_NEXT_COOKIE = "qrafty_oauth_next"
OAUTH_COOKIES = (
    OAUTH_STATE_COOKIE,
    OAUTH_ORIGIN_COOKIE,
    OAUTH_REDIRECT_URL_COOKIE,
    OAUTH_NEXT_COOKIE,
)
OAUTH_COOKIE_MAX_AGE = 60 * 10

TRANSACTION_TOKEN_TYPE = "oauth_tx"
TRANSACTION_ALGORITHM = "HS256"

# Keyword names OAuthService.complete takes for each transaction cookie
_COMPLETE_KWARGS = {
    OAUTH_STATE_COOKIE: "expected_state",
    OAUTH_ORIGIN_COOKIE: "stored_origin",
    OAUTH_REDIRECT_URL_COOKIE: "stored_redirect_url",
    OAUTH_NEXT_COOKIE: "stored_next",
}


def _set(response: Response, settings: Settings, name: str, value: str, max_age: int) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def _clear(response: Response, settings: Settings, name: str) -> None:
    response.delete_cookie(
        name,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def set_session_cookie(response: Response, settings: Settings, token: str) -> None:
    _set(response, settings, SESSION_COOKIE, token, settings.JWT_EXPIRATION_DAYS * 24 * 60 * 60)


def clear_session_cookie(response: Response, settings: Settings) -> None:
    _clear(response, settings, SESSION_COOKIE)


def sign_transaction_value(settings: Settings, name: str, value: str, state: str) -> str:
    payload = {
        "typ": TRANSACTION_TOKEN_TYPE,
        "cookie": name,
        "value": value,
        "state": state,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=OAUTH_COOKIE_MAX_AGE),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=TRANSACTION_ALGORITHM)


def verify_transaction_value(settings: Settings, name: str, token: str | None) -> dict | None:
    """Claims of a signed transaction cookie, or None if absent or invalid."""
    if not token:
        return None
    try:
        claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[TRANSACTION_ALGORITHM])
    except JWTError:
        return None
    if claims.get("typ") != TRANSACTION_TOKEN_TYPE or claims.get("cookie") != name:
        return None
    if not isinstance(claims.get("value"), str) or not isinstance(claims.get("state"), str):
        return None
    return claims


def set_oauth_cookies(response: Response, settings: Settings, transaction: OAuthTransaction) -> None:
    values = {
        OAUTH_STATE_COOKIE: transaction.state,
        OAUTH_ORIGIN_COOKIE: transaction.origin,
        OAUTH_REDIRECT_URL_COOKIE: transaction.redirect_url,
        OAUTH_NEXT_COOKIE: transaction.next_path,
    }
    for name, value in values.items():
        token = sign_transaction_value(settings, name, value, transaction.state)
        _set(response, settings, name, token, OAUTH_COOKIE_MAX_AGE)


def clear_oauth_cookies(response: Response, settings: Settings) -> None:
    for name in OAUTH_COOKIES:
        _clear(response, settings, name)


def read_oauth_cookies(request: Request, settings: Settings) -> dict:
    """Transaction cookies as keyword arguments for OAuthService.complete.

    A cookie that is present but fails verification, or that belongs to a
    different transaction, voids the whole transaction: every value comes
    back as None and the callback is rejected as a state mismatch.
    """
    values = dict.fromkeys(_COMPLETE_KWARGS.values())

    state_claims = verify_transaction_value(
        settings, OAUTH_STATE_COOKIE, request.cookies.get(OAUTH_STATE_COOKIE),
    )
    if state_claims is None:
        if request.cookies.get(OAUTH_STATE_COOKIE):
            logger.warning("OAuth transaction cookie failed verification", extra={"cookie": OAUTH_STATE_COOKIE})
        return values
    state = state_claims["value"]

    for name, kwarg in _COMPLETE_KWARGS.items():
        raw = request.cookies.get(name)
        if raw is None:
            continue
        claims = verify_transaction_value(settings, name, raw)
        if claims is None or claims["state"] != state:
            logger.warning("OAuth transaction cookie failed verification", extra={"cookie": name})
            return dict.fromkeys(_COMPLETE_KWARGS.values())
        values[kwarg] = claims["value"]

    return values
