"""In-memory IdentityProvider for testing."""

from urllib.parse import urlencode

from domain.model.errors import ProviderError
from domain.model.user import ExternalIdentity

FAKE_AUTHORIZATION_URL = "https://idp.test/authorize"


class FakeIdentityProvider:
    def __init__(
        self,
        identity: ExternalIdentity | None = None,
        access_token: str = "fake-access-token",
    ):
        self.identity = identity or ExternalIdentity(
            subject_id="google-sub-1",
            email="Person@Example.com",
            display_name="Test Person",
            email_verified=True,
        )
        self.access_token = access_token
        self.exchange_error: ProviderError | None = None
        self.identity_error: Exception | None = None
        self.exchanged: list[tuple[str, str]] = []
        self.fetched: list[str] = []

    def authorization_url(self, state: str, redirect_uri: str) -> str:
        return f"{FAKE_AUTHORIZATION_URL}?{urlencode({'state': state, 'redirect_uri': redirect_uri})}"

    async def exchange_code(self, code: str, redirect_uri: str) -> str:
        self.exchanged.append((code, redirect_uri))
        if self.exchange_error:
            raise self.exchange_error
        return self.access_token

    async def fetch_identity(self, access_token: str) -> ExternalIdentity:
        self.fetched.append(access_token)
        if self.identity_error:
            raise self.identity_error
        return self.identity
