"""Google OAuth 2.0 / OpenID Connect adapter.

Implements IdentityProvider against Google's authorization, token and
userinfo endpoints.

Docs: https://developers.google.com/identity/protocols/oauth2/web-server
"""

import logging
from urllib.parse import urlencode

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from domain.model.errors import MissingAccessTokenError, TokenExchangeError, UserinfoError
from domain.model.user import ExternalIdentity

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPES = "openid email profile"
DEFAULT_TIMEOUT_SECONDS = 10.0


class GoogleOAuthAdapter:
    """Adapter that drives the authorization-code flow against Google."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def authorization_url(self, state: str, redirect_uri: str) -> str:
        params = urlencode({
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": GOOGLE_SCOPES,
            "state": state,
            "prompt": "select_account",
        })
        return f"{GOOGLE_AUTHORIZATION_URL}?{params}"

    async def exchange_code(self, code: str, redirect_uri: str) -> str:
        """Exchange an authorization code for an access token.

        Not retried: Google rejects a code after its first use, so a retry
        after an ambiguous failure can only turn it into a hard failure.
        """
        form = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        }
        try:
            async with self._client() as client:
                response = await client.post(GOOGLE_TOKEN_URL, data=form)
                response.raise_for_status()
                tokens = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Google token exchange HTTP error",
                extra={"status_code": e.response.status_code},
            )
            raise TokenExchangeError(f"token endpoint returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.warning(
                "Google token exchange request error",
                extra={"error_type": type(e).__name__},
            )
            raise TokenExchangeError(type(e).__name__) from e
        except ValueError as e:
            logger.warning("Google token exchange returned invalid JSON")
            raise TokenExchangeError("invalid JSON") from e

        access_token = tokens.get("access_token") if isinstance(tokens, dict) else None
        if not access_token:
            logger.warning("Google token response had no access_token")
            raise MissingAccessTokenError("no access_token in token response")
        return access_token

    async def fetch_identity(self, access_token: str) -> ExternalIdentity:
        try:
            async with self._client() as client:
                response = await _get_with_retry(
                    client, GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Google userinfo HTTP error",
                extra={"status_code": e.response.status_code},
            )
            raise UserinfoError(f"userinfo endpoint returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.warning(
                "Google userinfo request error",
                extra={"error_type": type(e).__name__},
            )
            raise UserinfoError(type(e).__name__) from e
        except ValueError as e:
            logger.warning("Google userinfo returned invalid JSON")
            raise UserinfoError("invalid JSON") from e

        if not isinstance(payload, dict):
            raise UserinfoError(f"unexpected userinfo type {type(payload).__name__}")

        return ExternalIdentity.from_userinfo(payload)


# ── HTTP helpers ─────────────────────────────────────────────


@retry(
    retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
    stop=stop_after_attempt(2),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
    reraise=True,
)
async def _get_with_retry(client: httpx.AsyncClient, url: str, headers: dict) -> httpx.Response:
    """GET with one retry on transient failures."""
    return await client.get(url, headers=headers)
