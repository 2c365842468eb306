from typing import Protocol

from domain.model.user import ExternalIdentity


class IdentityProvider(Protocol):
    """Protocol for an OAuth 2.0 / OpenID Connect identity provider."""

    def authorization_url(self, state: str, redirect_uri: str) -> str:
        """Build the provider URL the browser is sent to on start."""
        ...

    async def exchange_code(self, code: str, redirect_uri: str) -> str:
        """Trade an authorization code for an access token.

        Raises:
            TokenExchangeError: non-2xx response, timeout or network failure
            MissingAccessTokenError: response carried no access_token
        """
        ...

    async def fetch_identity(self, access_token: str) -> ExternalIdentity:
        """Fetch the caller's profile from the userinfo endpoint.

        Raises:
            UserinfoError: non-2xx response, timeout or network failure
        """
        ...
