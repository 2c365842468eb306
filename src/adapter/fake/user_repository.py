"""In-memory implementation of UserRepository for testing.

Mirrors the unique email and google_id indexes of the MongoDB adapter,
and holds a lock around each write so concurrent callers see the same
atomicity a single find_one_and_update gives.
"""

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from domain.model.errors import DuplicateError
from domain.model.user import User


class FakeUserRepository:
    def __init__(self):
        self.store: dict[str, User] = {}
        self._lock = threading.Lock()

    # ── write operations ─────────────────────────────────────

    def create(self, email: str, password_hash: str, display_name: str | None = None) -> User | None:
        with self._lock:
            if self._find(email=email):
                return None

            user_id = uuid.uuid4().hex
            now = datetime.now(timezone.utc)

            user = User(
                id=user_id,
                email=email,
                created_at=now,
                updated_at=now,
                display_name=display_name,
                password_hash=password_hash,
            )
            self.store[user_id] = user
            return replace(user)

    def update_last_login(self, user_id: str) -> bool:
        with self._lock:
            user = self.store.get(user_id)
            if not user:
                return False

            now = datetime.now(timezone.utc)
            user.last_login = now
            user.updated_at = now
            return True

    def touch_google_login(
        self, google_id: str, display_name: str | None, email_verified: bool,
    ) -> User | None:
        with self._lock:
            user = self._find(google_id=google_id)
            if not user:
                return None

            now = datetime.now(timezone.utc)
            user.email_verified = user.email_verified or bool(email_verified)
            user.last_login = now
            user.updated_at = now
            if display_name and not user.display_name:
                user.display_name = display_name
            return replace(user)

    def claim_or_create_by_email(
        self, email: str, google_id: str, display_name: str | None, email_verified: bool,
    ) -> User:
        with self._lock:
            if self._find(google_id=google_id):
                raise DuplicateError("User with this email or Google account already exists")

            now = datetime.now(timezone.utc)
            user = self._find(email=email)
            if user and user.google_id is not None:
                raise DuplicateError("User with this email or Google account already exists")

            if user is None:
                user = User(
                    id=uuid.uuid4().hex,
                    email=email,
                    created_at=now,
                    updated_at=now,
                    display_name=display_name,
                )
                self.store[user.id] = user

            user.google_id = google_id
            user.email_verified = user.email_verified or bool(email_verified)
            user.last_login = now
            user.updated_at = now
            if display_name and not user.display_name:
                user.display_name = display_name
            return replace(user)

    # ── read operations ──────────────────────────────────────

    def get_by_email(self, email: str) -> User | None:
        user = self._find(email=email)
        return replace(user) if user else None

    def get_by_id(self, user_id: str) -> User | None:
        user = self.store.get(user_id)
        return replace(user) if user else None

    def _find(self, email: str | None = None, google_id: str | None = None) -> User | None:
        for user in self.store.values():
            if email is not None and user.email == email:
                return user
            if google_id is not None and user.google_id == google_id:
                return user
        return None
