"""OAuth transaction domain model.

A sign-in attempt moves IDLE -> AWAITING_CALLBACK on start and ends
in SUCCESS or REJECTED on callback. Between the two legs the transaction
lives only in the browser's cookies, so every field here must survive
a round trip through a cookie value.
"""

from dataclasses import dataclass
from enum import Enum

DEFAULT_NEXT_PATH = '/app'


class OAuthFlowState(str, Enum):
    IDLE = 'idle'
    AWAITING_CALLBACK = 'awaiting_callback'
    SUCCESS = 'success'
    REJECTED = 'rejected'


class OAuthErrorCode(str, Enum):
    """Reason codes appended to the login page as ?error=<code>."""
    NOT_CONFIGURED = 'google_not_configured'
    STATE_MISMATCH = 'google_state_mismatch'
    TOKEN_EXCHANGE_FAILED = 'google_token_exchange_failed'
    MISSING_ACCESS_TOKEN = 'google_missing_access_token'
    USERINFO_FAILED = 'google_userinfo_failed'
    PROFILE_INCOMPLETE = 'google_profile_incomplete'
    UNKNOWN = 'google_unknown'

    @classmethod
    def from_value(cls, value: str) -> 'OAuthErrorCode':
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class OAuthTransaction:
    """In-flight sign-in attempt carried between start and callback."""
    state: str
    origin: str
    redirect_url: str
    next_path: str = DEFAULT_NEXT_PATH


@dataclass(frozen=True)
class OAuthStart:
    """Result of the start leg.

    ``transaction`` is None when no attempt was opened (provider not
    configured); the browser is sent straight to ``redirect_to``.
    """
    redirect_to: str
    transaction: OAuthTransaction | None = None

    @property
    def state(self) -> OAuthFlowState:
        if self.transaction is None:
            return OAuthFlowState.IDLE
        return OAuthFlowState.AWAITING_CALLBACK


@dataclass(frozen=True)
class OAuthOutcome:
    """Result of the callback leg."""
    state: OAuthFlowState
    redirect_to: str
    user_id: str | None = None
    error: OAuthErrorCode | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is OAuthFlowState.SUCCESS
