"""MongoDB implementation of UserRepository."""

import uuid
from datetime import datetime, timezone
from logging import getLogger
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError
from adapter.mongodb.connection import USERS_COLLECTION_NAME
from adapter.mongodb.indexes import IndexSpec, sync_indexes
from domain.model.errors import DuplicateError
from domain.model.user import User

logger = getLogger(__name__)

PROFILE_FIELDS = ('title', 'company', 'phone', 'location', 'website', 'bio')

# google_id is partial so the many unlinked users (google_id null) don't collide
USER_INDEXES = (
    IndexSpec('idx_users_email', (('email', 1),), unique=True),
    IndexSpec(
        'idx_users_google_id', (('google_id', 1),),
        unique=True,
        partial_filter={'google_id': {'$type': 'string'}},
    ),
    IndexSpec('idx_users_created_at', (('created_at', -1),)),
)


class MongoUserRepository:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Sync USER_INDEXES onto the users collection.

        Email and google_id uniqueness are enforced here rather than in
        application code.
        """
        try:
            sync_indexes(self.collection, USER_INDEXES)
            return True
        except PyMongoError as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        return User(
            id=doc['_id'],
            email=doc['email'],
            created_at=doc['created_at'],
            updated_at=doc['updated_at'],
            display_name=doc.get('display_name'),
            password_hash=doc.get('password_hash'),
            google_id=doc.get('google_id'),
            email_verified=bool(doc.get('email_verified', False)),
            last_login=doc.get('last_login'),
            **{field: doc.get(field) for field in PROFILE_FIELDS},
        )

    def create(self, email: str, password_hash: str, display_name: str | None = None) -> User | None:
        """Create a new password user and return the User object."""
        try:
            user_id = uuid.uuid4().hex
            now = datetime.now(timezone.utc)
            user_doc = {
                '_id': user_id,
                'email': email,
                'password_hash': password_hash,
                'display_name': display_name,
                'google_id': None,
                'email_verified': False,
                'created_at': now,
                'updated_at': now,
            }
            self.collection.insert_one(user_doc)

            user = self._to_domain(user_doc)
            logger.info("User created", extra={"userId": user_id, "email": email})
            return user
        except DuplicateKeyError:
            logger.warning("User creation failed: email already exists", extra={"email": email})
            return None
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"email": email, "error": str(e)})
            return None

    def get_by_email(self, email: str) -> User | None:
        """Find a user by email. Return User or None if not found."""
        try:
            doc = self.collection.find_one({'email': email})
            return self._to_domain(doc) if doc else None
        except PyMongoError as e:
            logger.error("Failed to get user by email", extra={"email": email, "error": str(e)})
            return None

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        try:
            doc = self.collection.find_one({'_id': user_id})
            return self._to_domain(doc) if doc else None
        except PyMongoError as e:
            logger.error("Failed to get user by ID", extra={"userId": user_id, "error": str(e)})
            return None

    def update_last_login(self, user_id: str) -> bool:
        """Update the last login timestamp for a user. Return True if successful."""
        try:
            now = datetime.now(timezone.utc)
            result = self.collection.update_one(
                {'_id': user_id},
                {'$set': {'last_login': now, 'updated_at': now}}
            )
            if result.modified_count > 0:
                logger.debug("Updated last_login", extra={"userId": user_id})
                return True
            return False
        except PyMongoError as e:
            logger.error("Failed to update last_login", extra={"userId": user_id, "error": str(e)})
            return False

    # ── Google linkage ───────────────────────────────────────
    # These propagate PyMongoError: the OAuth callback must not report
    # success when the write did not happen.

    def touch_google_login(
        self, google_id: str, display_name: str | None, email_verified: bool,
    ) -> User | None:
        now = datetime.now(timezone.utc)
        doc = self.collection.find_one_and_update(
            {'google_id': google_id},
            {
                '$set': {'last_login': now, 'updated_at': now},
                # false < true in BSON order, so $max never clears the flag
                '$max': {'email_verified': bool(email_verified)},
            },
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            return None
        if display_name and not doc.get('display_name'):
            doc = self._fill_display_name(doc, display_name)
        return self._to_domain(doc)

    def claim_or_create_by_email(
        self, email: str, google_id: str, display_name: str | None, email_verified: bool,
    ) -> User:
        now = datetime.now(timezone.utc)
        try:
            # The google_id: None filter restricts claiming to unlinked accounts.
            # An email held by an account linked elsewhere misses the filter,
            # falls through to insert and trips the unique email index.
            doc = self.collection.find_one_and_update(
                {'email': email, 'google_id': None},
                {
                    '$set': {
                        'google_id': google_id,
                        'last_login': now,
                        'updated_at': now,
                    },
                    '$max': {'email_verified': bool(email_verified)},
                    '$setOnInsert': {
                        '_id': uuid.uuid4().hex,
                        'password_hash': None,
                        'display_name': display_name,
                        'created_at': now,
                    },
                },
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            logger.warning("Google link hit a unique index", extra={"email": email, "error": str(e)})
            raise DuplicateError("User with this email or Google account already exists") from e

        if display_name and not doc.get('display_name'):
            doc = self._fill_display_name(doc, display_name)
        return self._to_domain(doc)

    def _fill_display_name(self, doc: dict, display_name: str) -> dict:
        updated = self.collection.find_one_and_update(
            {'_id': doc['_id'], 'display_name': None},
            {'$set': {'display_name': display_name}},
            return_document=ReturnDocument.AFTER,
        )
        # A concurrent writer may have set it first
        return updated or self.collection.find_one({'_id': doc['_id']}) or doc
