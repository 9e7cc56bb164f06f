from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from timed_quiz.core.config import settings
import logging

logger = logging.getLogger(__name__)


class MongoDB:
    client: AsyncIOMotorClient = None


mongodb = MongoDB()


async def connect_to_mongo(url: str = None):
    """Connect to MongoDB and test the connection"""
    url = url or settings.mongodb_url
    try:
        mongodb.client = AsyncIOMotorClient(url)
        # Test connection
        await mongodb.client.admin.command('ping')
        logger.info(f"✓ Connected to MongoDB at {url}")
    except Exception as e:
        logger.error(f"✗ Failed to connect to MongoDB: {e}")
        raise


async def close_mongo_connection():
    """Close MongoDB connection"""
    if mongodb.client:
        mongodb.client.close()
        mongodb.client = None
        logger.info("✓ Closed MongoDB connection")


async def ping_mongo() -> bool:
    """True when the server answers a ping"""
    if not mongodb.client:
        return False
    try:
        await mongodb.client.admin.command('ping')
        return True
    except Exception as e:
        logger.error(f"❌ MongoDB ping failed: {e}")
        return False


def get_database() -> AsyncIOMotorDatabase:
    """Get the database instance"""
    return mongodb.client[settings.database_name]
