"""
Application settings and configuration
"""
import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    # Application
    APP_NAME = "Front Desk"
    VERSION = "1.0.0"
    DEBUG = os.getenv("DEBUG", "True") == "True"

    # CORS
    ALLOWED_ORIGINS = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # Locale
    TIMEZONE = os.getenv("TIMEZONE", "Asia/Kolkata")
    CURRENCY = "INR"

    # Stay expiry
    STAY_WINDOW_HOURS = int(os.getenv("STAY_WINDOW_HOURS", "24"))
    EXPIRY_WARNING_HOURS = int(os.getenv("EXPIRY_WARNING_HOURS", "6"))
    EXPIRY_CHECK_INTERVAL_SECONDS = int(os.getenv("EXPIRY_CHECK_INTERVAL_SECONDS", "60"))
    EXPIRY_SCHEDULER_ENABLED = os.getenv("EXPIRY_SCHEDULER_ENABLED", "True") == "True"

    # Pagination
    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100

    # Houses are fixed units of the property, not rows in the rooms collection
    HOUSES = [
        {"id": "white-house-ground", "name": "White House - Ground Floor"},
        {"id": "white-house-first", "name": "White House - First Floor"},
        {"id": "white-house-second", "name": "White House - Second Floor"},
        {"id": "guest-house", "name": "Guest House"},
    ]

    def get_house(self, house_id: str):
        for house in self.HOUSES:
            if house["id"] == house_id:
                return house
        return None

settings = Settings()
