"""Auth service: email/password sign-up and authentication.

Pure business logic with no HTTP dependencies.
Raises domain errors that route handlers map to HTTP status codes.
"""

import bcrypt

from domain.model.errors import DomainError, DuplicateError, ValidationError
from domain.model.user import User, normalize_email
from port.user_repository import UserRepository

BCRYPT_ROUNDS = 12
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128


class InvalidCredentialsError(ValidationError):
    """Email or password is wrong. Deliberately does not say which."""


class ExternalAccountError(ValidationError):
    """Account has no password; it signs in through Google."""


def _hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def _validate_password(password: str) -> None:
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_LENGTH} characters")


def register(repo: UserRepository, email: str, password: str) -> User:
    """Register a new password user.

    Raises:
        DuplicateError: email already registered
        ValidationError: email missing or password length out of range
    """
    email = normalize_email(email)
    if not email:
        raise ValidationError("Email is required")
    _validate_password(password)

    if repo.get_by_email(email):
        raise DuplicateError("An account with that email already exists")

    user = repo.create(email=email, password_hash=_hash_password(password))
    if not user:
        # Lost a race with a concurrent sign-up, or the write failed
        if repo.get_by_email(email):
            raise DuplicateError("An account with that email already exists")
        raise DomainError("Failed to create user")
    return user


def authenticate(repo: UserRepository, email: str, password: str) -> User:
    """Authenticate a user by email and password.

    Raises:
        InvalidCredentialsError: unknown email or wrong password
        ExternalAccountError: account was created through Google sign-in
    """
    user = repo.get_by_email(normalize_email(email) or "")
    if not user:
        raise InvalidCredentialsError("Invalid email or password")

    if not user.password_hash:
        raise ExternalAccountError("This account uses Google sign-in. Use Continue with Google.")

    if not _verify_password(password, user.password_hash):
        raise InvalidCredentialsError("Invalid email or password")

    repo.update_last_login(user.id)
    return user
