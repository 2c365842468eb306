from dataclasses import dataclass
from datetime import datetime


def normalize_email(value: str | None) -> str | None:
    """Canonical form used as the account key: trimmed and lowercased."""
    if not isinstance(value, str):
        return None
    return value.strip().lower() or None


@dataclass
class User:
    """Domain model representing a user account."""
    id: str
    email: str
    created_at: datetime
    updated_at: datetime
    display_name: str | None = None
    password_hash: str | None = None
    google_id: str | None = None
    email_verified: bool = False
    last_login: datetime | None = None
    # Public profile fields, edited elsewhere in the platform
    title: str | None = None
    company: str | None = None
    phone: str | None = None
    location: str | None = None
    website: str | None = None
    bio: str | None = None

    @property
    def provider(self) -> str:
        """Sign-in method the account was set up with."""
        if self.google_id and not self.password_hash:
            return 'google'
        return 'email'


@dataclass(frozen=True)
class ExternalIdentity:
    """Identity asserted by a third-party provider after a successful login."""
    subject_id: str | None
    email: str | None
    display_name: str | None = None
    email_verified: bool = False

    @classmethod
    def from_userinfo(cls, payload: dict) -> 'ExternalIdentity':
        """Build from an OpenID Connect userinfo response."""
        name = payload.get('name')
        if not isinstance(name, str) or not name.strip():
            name = None
        return cls(
            subject_id=payload.get('sub') or None,
            email=payload.get('email') or None,
            display_name=name.strip() if name else None,
            email_verified=bool(payload.get('email_verified')),
        )

    @property
    def normalized_email(self) -> str | None:
        return normalize_email(self.email)
