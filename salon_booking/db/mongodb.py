from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from salon_booking.core.config import settings
import logging

logger = logging.getLogger(__name__)

class Database:
    client: AsyncIOMotorClient = None
    db = None

db = Database()

async def connect_to_mongo():
    """Connect to MongoDB."""
    try:
        logger.info("Connecting to MongoDB...")
        db.client = AsyncIOMotorClient(settings.MONGO_URI)
        db.db = db.client[settings.DB_NAME]
        logger.info("Connected to MongoDB.")
        
        # Create indexes for collections
        await create_indexes()
        
    except Exception as e:
        logger.error(f"Could not connect to MongoDB: {e}")
        raise e

async def close_mongo_connection():
    """Close MongoDB connection."""
    if db.client:
        logger.info("Closing MongoDB connection...")
        db.client.close()
        logger.info("MongoDB connection closed.")

async def create_indexes():
    """Create indexes for collections."""
    try:
        # Slots: one slot per specialist, date and time
        await db.db.slots.create_index(
            [("specialistId", ASCENDING), ("date", ASCENDING), ("time", ASCENDING)],
            unique=True
        )
        await db.db.slots.create_index([("specialistId", ASCENDING), ("booked", ASCENDING)])
        
        # Appointments collection indexes
        await db.db.appointments.create_index("userId")
        await db.db.appointments.create_index("specialistId")
        await db.db.appointments.create_index("slotId")
        await db.db.appointments.create_index([("date", ASCENDING), ("time", ASCENDING)])
        
        logger.info("MongoDB indexes created successfully.")
    except Exception as e:
        logger.error(f"Failed to create MongoDB indexes: {e}")
