import logging
from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, PyMongoError

logger = logging.getLogger(__name__)

# Suppress verbose PyMongo logs
logging.getLogger('pymongo').setLevel(logging.WARNING)

USERS_COLLECTION_NAME = 'users'


def create_mongodb_client(mongo_url: str | None) -> MongoClient | None:
    """Create the pooled MongoDB client used for the lifetime of the app.

    Called once at startup; the client is closed at shutdown. Requests
    share the pool through the dependency layer and never open their own.

    Returns:
        MongoDB client or None if not configured or unreachable
    """
    if not mongo_url:
        logger.error("[MONGODB] MONGO_URL not configured.")
        return None

    try:
        client = MongoClient(
            mongo_url,
            serverSelectionTimeoutMS=5000,  # 5s timeout for server selection
            connectTimeoutMS=5000,  # 5s timeout for initial connection
            socketTimeoutMS=30000,  # 30s timeout for operations
            maxPoolSize=10,
            minPoolSize=0,   # Don't maintain idle connections
            maxIdleTimeMS=30000,
            waitQueueTimeoutMS=10000,  # Wait up to 10s for available connection
            retryWrites=True,
            retryReads=True,
            uuidRepresentation='standard',
        )
        client.admin.command('ping')
        logger.info("[MONGODB] Connected successfully")
        return client
    except (ConnectionFailure, PyMongoError) as e:
        logger.error(f"[MONGODB] Initial connection failed: {str(e)[:200]}")
        return None


def ping(client: MongoClient | None) -> bool:
    """Return True if the client can reach the server."""
    if client is None:
        return False
    try:
        client.admin.command('ping')
        return True
    except PyMongoError:
        return False
