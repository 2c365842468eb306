"""Identity linker: maps a provider-verified identity to a local user.

Pure business logic with no HTTP dependencies.

Resolution order:
1. A user already linked to the subject id wins, whatever email the
   provider now reports. Their stored email is left alone.
2. Otherwise the unlinked account holding the email is claimed, or a new
   account is created. First external login wins an unlinked
   account with a matching email.

The email_verified flag follows the provider's assertion and is never
cleared once set.

Both steps are single atomic writes against unique indexes, so replaying
the same identity (or racing two callbacks for it) yields one user.
"""

import logging

from domain.model.errors import DuplicateError, LinkConflictError, ProfileIncompleteError
from domain.model.user import ExternalIdentity, User
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)


def link_external_identity(repo: UserRepository, identity: ExternalIdentity) -> User:
    """Find or create the local user for an external identity.

    Raises:
        ProfileIncompleteError: identity has no subject id or no email
        LinkConflictError: email belongs to an account linked to another subject
    """
    email = identity.normalized_email
    if not identity.subject_id or not email:
        raise ProfileIncompleteError("External profile is missing subject id or email")
    verified = identity.email_verified

    user = repo.touch_google_login(identity.subject_id, identity.display_name, verified)
    if user:
        logger.info("Returning Google user", extra={"userId": user.id})
        return user

    try:
        user = repo.claim_or_create_by_email(
            email, identity.subject_id, identity.display_name, verified,
        )
    except DuplicateError as e:
        # Lost a race against another callback for the same subject
        user = repo.touch_google_login(identity.subject_id, identity.display_name, verified)
        if user:
            logger.info("Google link resolved after concurrent write", extra={"userId": user.id})
            return user
        logger.warning("Google link conflicts with an account linked elsewhere", extra={"email": email})
        raise LinkConflictError("Email is linked to a different Google account") from e

    logger.info("Google identity linked", extra={"userId": user.id, "email": email})
    return user
