from pydantic_settings import BaseSettings
from typing import List, Optional
import os

class Settings(BaseSettings):
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.5-flash"
    DATABASE_URL: str = "sqlite:///activities.db"
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Structured sources
    TICKETMASTER_API_KEY: str = ""
    OPENWEATHER_API_KEY: str = ""
    CITY_NAME: str = "Des Moines, Iowa"
    CITY_LAT: float = 41.5868
    CITY_LNG: float = -93.6250
    CITY_TIMEZONE: str = "America/Chicago"
    SEARCH_RADIUS_MILES: int = 50
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Generation + extraction
    GENERATION_TIMEOUT_SECONDS: float = 45.0
    MAX_GENERATION_RETRIES: int = 2
    MIN_VALID_EVENTS: int = 3
    MIN_REQUIRED_FIELDS: int = 3
    UNCLASSIFIED_SECTION_LABEL: Optional[str] = None

    LIVE_DATA_PATH: str = os.path.join(
        os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))),
        "live-activities-data.json",
    )
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), ".env")

settings = Settings()
