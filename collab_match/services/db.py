import motor.motor_asyncio
from pymongo import ASCENDING

from collab_match.utils.config import get_settings
from collab_match.utils.logging_config import get_logger

logger = get_logger(__name__)

settings = get_settings()

logger.info(f"Initializing MongoDB connection to database: {settings.db_name}")

try:
    client = motor.motor_asyncio.AsyncIOMotorClient(settings.mongo_details)
    db = client[settings.db_name]
    logger.info("MongoDB client initialized successfully")
except Exception as e:
    logger.error(f"Failed to initialize MongoDB client: {e}")
    raise

# Collections
opportunities_coll = db["opportunities"]
users_coll = db["users"]
applications_coll = db["collaboration_applications"]
matches_coll = db["matches"]
notifications_coll = db["notifications"]


async def _create_index(coll, keys, unique: bool = False):
    name = f"{coll.name}.({', '.join(k for k, _ in keys)})"
    try:
        await coll.create_index(keys, unique=unique)
        logger.debug(f"Created {'unique ' if unique else ''}index on {name}")
    except Exception as e:
        if "already exists" in str(e).lower():
            logger.debug(f"Index on {name} already exists")
        else:
            logger.warning(f"Could not create index on {name}: {e}")


async def init_indexes():
    """Index initialization for collections."""
    logger.info("Starting database index initialization")

    await _create_index(opportunities_coll, [("id", ASCENDING)], unique=True)
    await _create_index(opportunities_coll, [("status", ASCENDING)])
    await _create_index(users_coll, [("id", ASCENDING)], unique=True)
    await _create_index(users_coll, [("role", ASCENDING)])
    await _create_index(applications_coll, [("applicantId", ASCENDING)])
    await _create_index(matches_coll, [("id", ASCENDING)], unique=True)
    await _create_index(matches_coll, [("opportunityId", ASCENDING), ("providerId", ASCENDING)])
    await _create_index(notifications_coll, [("userId", ASCENDING)])

    logger.info("Database index initialization completed")


def to_dict(doc):
    if not doc:
        return None
    doc = dict(doc)
    doc.pop("_id", None)
    return doc
