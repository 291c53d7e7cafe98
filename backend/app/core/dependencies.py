from functools import lru_cache
from fastapi import Depends
from sqlmodel import Session
from .config import Settings
from backend.app.db.session import get_session
from backend.app.services.weekly_update import WeeklyUpdateService

@lru_cache()
def get_settings():
    return Settings()

def get_weekly_update_service(
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
) -> WeeklyUpdateService:
    return WeeklyUpdateService.from_settings(settings, session)
