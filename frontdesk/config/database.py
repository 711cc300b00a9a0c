"""
Database configuration and connection management for MongoDB
"""
from motor.motor_asyncio import AsyncIOMotorClient
from typing import Optional
import os
from dotenv import load_dotenv

load_dotenv()

class DatabaseConfig:
    """MongoDB database configuration"""

    def __init__(self):
        self.MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
        self.DATABASE_NAME = os.getenv("DATABASE_NAME", "frontdesk_db")
        # Multi-document transactions need a replica set; standalone dev servers can switch them off
        self.USE_TRANSACTIONS = os.getenv("MONGO_USE_TRANSACTIONS", "True") == "True"
        self.client: Optional[AsyncIOMotorClient] = None
        self.database = None

    async def connect_db(self):
        """Connect to MongoDB"""
        try:
            self.client = AsyncIOMotorClient(self.MONGO_URI, tz_aware=True)
            self.database = self.client[self.DATABASE_NAME]
            # Test connection
            await self.client.admin.command('ping')
            print(f"✅ Connected to MongoDB: {self.DATABASE_NAME}")
        except Exception as e:
            print(f"❌ Error connecting to MongoDB: {e}")
            raise

    async def close_db(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            print("✅ MongoDB connection closed")

# Global database instance
db_config = DatabaseConfig()

# Collection names
class Collections:
    ROOMS = "rooms"
    CHECKINS = "checkins"
    HOUSE_BOOKINGS = "house_bookings"
    LEDGER_ENTRIES = "ledger_entries"
    SHOP_PURCHASES = "shop_purchases"
    ADVANCE_BOOKINGS = "advance_bookings"
    PAYMENTS = "payments"
    COLLECTION_LOGS = "collection_logs"
