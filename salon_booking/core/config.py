from pydantic_settings import BaseSettings
from typing import List
import os
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    # App Settings
    APP_NAME: str = os.getenv("APP_NAME", "SalonBooking")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    
    # MongoDB Settings
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME: str = os.getenv("DB_NAME", "salon_booking_db")
    
    # JWT issued by the identity provider
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your_secret_key_here")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
    
    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",  # Vite web client
        "http://localhost:3000",
    ]
    
    # Scheduling
    VACATION_UPCOMING_HORIZON_DAYS: int = int(os.getenv("VACATION_UPCOMING_HORIZON_DAYS", "14"))
    MIN_SLOT_STEP_MINUTES: int = int(os.getenv("MIN_SLOT_STEP_MINUTES", "5"))
    DEFAULT_SLOT_STEP_MINUTES: int = int(os.getenv("DEFAULT_SLOT_STEP_MINUTES", "30"))
    
    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
