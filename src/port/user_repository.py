from typing import Protocol
from domain.model.user import User


class UserRepository(Protocol):
    """Protocol defining the interface for user data access."""
    def create(self, email: str, password_hash: str, display_name: str | None = None) -> User | None:
        """Create a new password user. Return User or None if creation failed."""
        ...

    def get_by_email(self, email: str) -> User | None:
        """Find a user by email. Return User or None if not found."""
        ...

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        ...

    def update_last_login(self, user_id: str) -> bool:
        """Update the last login timestamp for a user. Return True if successful."""
        ...

    def touch_google_login(
        self, google_id: str, display_name: str | None, email_verified: bool,
    ) -> User | None:
        """Record a login for the user already linked to ``google_id``.

        Marks the email verified when the provider asserts it (never clears
        the flag) and sets the display name only if it was unset. Return
        the updated User, or None if no user is linked.
        """
        ...

    def claim_or_create_by_email(
        self, email: str, google_id: str, display_name: str | None, email_verified: bool,
    ) -> User:
        """Atomically link ``google_id`` to the unlinked account with ``email``,
        or create one if none exists. ``email_verified`` follows the same
        never-cleared rule as touch_google_login.

        Raises:
            DuplicateError: a unique key was violated (the email belongs to an
                account linked to another subject, or ``google_id`` was linked
                concurrently)
        """
        ...
