import logging
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import IndexModel
from pymongo.errors import PyMongoError
from config import settings

logger = logging.getLogger(__name__)

client: AsyncIOMotorClient = None
_db_instance = None

# Collections de l'application et leurs index
INDEXES: dict[str, list[IndexModel]] = {
    "users": [
        IndexModel([("user_id", 1)], unique=True),
        IndexModel([("email", 1)], unique=True),
        IndexModel([("role", 1), ("is_active", 1)]),
    ],
    "vehicles": [
        IndexModel([("vehicle_id", 1)], unique=True),
        IndexModel([("status", 1)]),
    ],
    "service_packages": [
        IndexModel([("package_id", 1)], unique=True),
        IndexModel([("is_active", 1)]),
    ],
    "bookings": [
        IndexModel([("booking_id", 1)], unique=True),
        IndexModel([("customer_id", 1), ("pickup_time", -1)]),
        IndexModel([("customer_email", 1), ("pickup_time", -1)]),
        IndexModel([("driver_id", 1), ("pickup_time", -1)]),
        IndexModel([("status", 1)]),
        IndexModel([("created_at", 1)]),
    ],
    "booking_status_history": [
        IndexModel([("booking_id", 1), ("created_at", 1)]),
    ],
    # Un seul document réglages : {type: "settings", key: "admin_settings"}
    "admin_settings": [
        IndexModel([("type", 1), ("key", 1)], unique=True),
    ],
}


class _DbProxy:
    """
    `from database import db` est importable avant connect_db() :
    l'accès à db.bookings est résolu à l'appel, sur la base courante
    (remplacée par une base en mémoire dans les tests).
    """
    def _current(self):
        if _db_instance is None:
            raise RuntimeError("Database not connected. Call connect_db() first.")
        return _db_instance

    def __getattr__(self, name):
        return getattr(self._current(), name)

    def __getitem__(self, name):
        return self._current()[name]


db = _DbProxy()


def get_db():
    return _db_instance


async def connect_db():
    global client, _db_instance
    client = AsyncIOMotorClient(
        settings.MONGO_URL,
        serverSelectionTimeoutMS=5000,
        connectTimeoutMS=10000,
        tz_aware=True,
    )
    _db_instance = client[settings.DB_NAME]
    logger.info(f"MongoDB : base '{settings.DB_NAME}'")
    await create_indexes()


async def close_db():
    if client:
        client.close()
        logger.info("MongoDB connection closed")


async def create_indexes():
    """Non bloquant : un index en échec est journalisé, l'API démarre quand même."""
    for collection_name, index_models in INDEXES.items():
        try:
            await _db_instance[collection_name].create_indexes(index_models)
        except PyMongoError as e:
            logger.error(f"Index non créés pour {collection_name} : {e}")
    logger.info(f"Index MongoDB vérifiés ({len(INDEXES)} collections)")
