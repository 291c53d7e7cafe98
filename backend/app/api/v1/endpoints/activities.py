from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from typing import Optional
from datetime import datetime
import json
import logging
import os

from backend.app.core.config import Settings
from backend.app.core.dependencies import get_settings, get_weekly_update_service
from backend.app.db.session import get_session
from backend.app.db.models import ActivitiesSnapshot
from backend.app.schemas.activities import DateRangeResponse
from backend.app.services.date_range import DateRange
from backend.app.services.errors import GenerationError, InsufficientDataError
from backend.app.services.weekly_update import MODES, WeeklyUpdateService, snapshot_to_payload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["activities"])


def load_live_data(path: str) -> Optional[dict]:
    """The static live-data JSON file, or None when it does not exist."""
    if not path or not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _live_data_or_none(path: str) -> Optional[dict]:
    try:
        return load_live_data(path)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read live activities data from {path}: {e}")
        return None


@router.get("/activities")
def get_activities(
    use_live_data: bool = Query(False, alias="useLiveData"),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    if use_live_data:
        live_data = _live_data_or_none(settings.LIVE_DATA_PATH)
        if live_data:
            return {"success": True, "data": live_data, "source": "live-data"}
        logger.warning("Live data file not found, falling back to database")

    try:
        snapshot = ActivitiesSnapshot.latest_for(session, datetime.now())
    except SQLAlchemyError as e:
        logger.error(f"Database error, falling back to live data: {e}")
        live_data = _live_data_or_none(settings.LIVE_DATA_PATH)
        if live_data:
            return {"success": True, "data": live_data, "source": "live-data-fallback"}
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")

    if snapshot:
        return {
            "success": True,
            "data": snapshot_to_payload(snapshot).to_json_dict(),
            "source": "database",
        }

    live_data = _live_data_or_none(settings.LIVE_DATA_PATH)
    if live_data:
        logger.info("No activities in database, using live data as fallback")
        return {"success": True, "data": live_data, "source": "live-data-fallback"}

    raise HTTPException(status_code=404, detail="No activities found for the current week")


@router.get("/activities/live")
def get_live_activities(settings: Settings = Depends(get_settings)):
    try:
        live_data = load_live_data(settings.LIVE_DATA_PATH)
    except (OSError, ValueError) as e:
        logger.error(f"Error fetching live activities: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")

    if live_data is None:
        raise HTTPException(status_code=404, detail="Live activities data not found")
    return {"success": True, "data": live_data}


@router.post("/activities/refresh", status_code=status.HTTP_201_CREATED)
async def refresh_activities(
    mode: str = Query("generation"),
    service: WeeklyUpdateService = Depends(get_weekly_update_service),
):
    if mode not in MODES:
        raise HTTPException(status_code=400, detail=f"Mode must be one of: {', '.join(MODES)}")

    try:
        snapshot = await service.run(mode)
    except InsufficientDataError as e:
        logger.error(f"Refresh produced too few events after {e.attempts} attempts: {e}")
        raise HTTPException(status_code=502, detail="No activities available for this week right now")
    except GenerationError as e:
        logger.error(f"Refresh failed: {e}")
        raise HTTPException(status_code=502, detail="No activities available for this week right now")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "data": snapshot_to_payload(snapshot).to_json_dict(),
        "source": snapshot.source,
    }


@router.get("/date-range")
def get_date_range():
    week = DateRange.current_week()
    response = DateRangeResponse(
        start_date=week.start,
        end_date=week.end,
        formatted_range=week.formatted(),
    )
    return {"success": True, "data": response.to_json_dict()}
