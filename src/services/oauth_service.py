"""OAuth orchestrator: start and callback legs of Google sign-in.

Pure business logic: the route layer reads headers and cookies, hands
them in, and turns the returned OAuthStart / OAuthOutcome into cookies
and a 302. Every callback failure becomes a REJECTED outcome carrying
one of the fixed OAuthErrorCode values; nothing here raises to the route.
"""

import asyncio
import logging
import secrets

from domain.model.errors import DomainError, ProfileIncompleteError, ProviderError
from domain.model.oauth import (
    DEFAULT_NEXT_PATH,
    OAuthErrorCode,
    OAuthFlowState,
    OAuthOutcome,
    OAuthStart,
    OAuthTransaction,
)
from port.identity_provider import IdentityProvider
from port.user_repository import UserRepository
from services.identity_linker import link_external_identity
from utils.redirects import (
    is_allowed_origin,
    resolve_redirect_url,
    safe_next_path,
    safe_origin,
    web_origin_from_headers,
)

logger = logging.getLogger(__name__)

STATE_TOKEN_BYTES = 32


def login_error_url(origin: str, error: OAuthErrorCode) -> str:
    return f"{origin}/login?error={error.value}"


def _states_match(state: str | None, expected: str | None) -> bool:
    if not state or not expected:
        return False
    return secrets.compare_digest(state.encode('utf-8'), expected.encode('utf-8'))


class OAuthService:
    """Drives one provider's authorization-code flow.

    Args:
        provider: configured identity provider, or None when credentials
            are missing (the feature is then disabled, not broken)
        redirect_url: configured provider redirect URL
        web_origin: fallback browser origin for final redirects
        production: disables the loopback redirect rewrite
        allowed_origins: browser origins a sign-in may return to; None
            accepts any well-formed origin from the request headers
    """

    def __init__(
        self,
        provider: IdentityProvider | None,
        redirect_url: str | None,
        web_origin: str,
        production: bool = False,
        allowed_origins: list[str] | None = None,
    ):
        self.provider = provider if redirect_url else None
        self.redirect_url = redirect_url
        self.web_origin = web_origin
        self.production = production
        self.allowed_origins = allowed_origins

    @property
    def configured(self) -> bool:
        return self.provider is not None

    def begin(
        self,
        *,
        referer: str | None = None,
        origin: str | None = None,
        request_origin: str | None = None,
        next_param: str | None = None,
    ) -> OAuthStart:
        """IDLE -> AWAITING_CALLBACK."""
        if not self.configured:
            return OAuthStart(redirect_to=login_error_url(self.web_origin, OAuthErrorCode.NOT_CONFIGURED))

        transaction = OAuthTransaction(
            state=secrets.token_urlsafe(STATE_TOKEN_BYTES),
            origin=web_origin_from_headers(referer, origin, self.web_origin, self.allowed_origins),
            redirect_url=resolve_redirect_url(self.redirect_url, request_origin, self.production),
            next_path=safe_next_path(next_param) or DEFAULT_NEXT_PATH,
        )

        logger.info("OAuth sign-in started", extra={
            "webOrigin": transaction.origin,
            "redirectUri": transaction.redirect_url,
            "nextPath": transaction.next_path,
        })

        return OAuthStart(
            redirect_to=self.provider.authorization_url(transaction.state, transaction.redirect_url),
            transaction=transaction,
        )

    async def complete(
        self,
        repo: UserRepository | None,
        *,
        code: str | None,
        state: str | None,
        expected_state: str | None,
        stored_origin: str | None = None,
        stored_redirect_url: str | None = None,
        stored_next: str | None = None,
        request_origin: str | None = None,
    ) -> OAuthOutcome:
        """AWAITING_CALLBACK -> SUCCESS | REJECTED."""
        if not self.configured:
            return self._reject(self.web_origin, OAuthErrorCode.NOT_CONFIGURED)

        web_origin = safe_origin(stored_origin)
        if not is_allowed_origin(web_origin, self.allowed_origins):
            web_origin = self.web_origin
        next_path = safe_next_path(stored_next) or DEFAULT_NEXT_PATH
        redirect_url = resolve_redirect_url(
            stored_redirect_url or self.redirect_url, request_origin, self.production,
        )

        # Missing cookie, missing param and wrong value all look the same
        if not code or not _states_match(state, expected_state):
            logger.warning("OAuth state mismatch")
            return self._reject(web_origin, OAuthErrorCode.STATE_MISMATCH)

        try:
            if repo is None:
                raise DomainError("User store unavailable")
            access_token = await self.provider.exchange_code(code, redirect_url)
            identity = await self.provider.fetch_identity(access_token)
            if not identity.subject_id or not identity.normalized_email:
                raise ProfileIncompleteError("Provider profile missing sub or email")
            user = await asyncio.to_thread(link_external_identity, repo, identity)
        except ProviderError as e:
            logger.warning("OAuth provider call failed", extra={
                "error_code": e.error_code,
                "error_type": type(e).__name__,
            })
            return self._reject(web_origin, OAuthErrorCode.from_value(e.error_code))
        except ProfileIncompleteError:
            logger.warning("OAuth profile incomplete")
            return self._reject(web_origin, OAuthErrorCode.PROFILE_INCOMPLETE)
        except Exception as e:
            logger.error("OAuth callback failed", extra={"error_type": type(e).__name__}, exc_info=True)
            return self._reject(web_origin, OAuthErrorCode.UNKNOWN)

        logger.info("OAuth sign-in completed", extra={"userId": user.id})
        return OAuthOutcome(
            state=OAuthFlowState.SUCCESS,
            redirect_to=f"{web_origin}{next_path}",
            user_id=user.id,
        )

    @staticmethod
    def _reject(origin: str, error: OAuthErrorCode) -> OAuthOutcome:
        return OAuthOutcome(
            state=OAuthFlowState.REJECTED,
            redirect_to=login_error_url(origin, error),
            error=error,
        )
