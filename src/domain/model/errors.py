"""Domain-level exceptions.

Services raise these errors to express business rule violations.
Route handlers catch them and map to HTTP status codes or, for the
browser legs of the OAuth flow, to login error redirects.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class NotFoundError(DomainError):
    """Requested entity does not exist."""


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""


class ValidationError(DomainError):
    """Input violates a business validation rule."""


class ProfileIncompleteError(ValidationError):
    """External profile lacks the subject id or email needed for linkage."""


class LinkConflictError(DuplicateError):
    """Email is already linked to a different external identity."""


class ProviderError(DomainError):
    """Identity provider call failed.

    Each subclass carries the login error code shown to the browser.
    The message is for logs only and never leaves the server.
    """
    error_code = 'google_unknown'


class TokenExchangeError(ProviderError):
    error_code = 'google_token_exchange_failed'


class MissingAccessTokenError(ProviderError):
    error_code = 'google_missing_access_token'


class UserinfoError(ProviderError):
    error_code = 'google_userinfo_failed'
