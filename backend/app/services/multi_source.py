"""
Multi-source merger: Ticketmaster events, weather forecast and generated
local activities, fetched concurrently and merged into one validated result.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from backend.app.schemas.activities import Category, Event, ExtractionResult, WeatherDay
from .activity_parser import FESTIVALS_AND_EVENTS, LIVE_MUSIC, LOCAL_ACTIVITIES
from .activity_validator import ActivityValidator
from .date_range import DateRange
from .errors import SourceError
from .event_sources import GenAIActivitiesClient, OpenWeatherClient, TicketmasterClient
from .extraction_config import ExtractionConfig
from .planning_tips import DEFAULT_TIPS, weather_planning_tips

logger = logging.getLogger(__name__)

CATEGORY_ORDER = [LIVE_MUSIC, FESTIVALS_AND_EVENTS, LOCAL_ACTIVITIES]


@dataclass
class MultiSourceResult:
    result: ExtractionResult
    weather_forecast: List[WeatherDay] = field(default_factory=list)
    rejected: List[Event] = field(default_factory=list)

    @property
    def total_events(self) -> int:
        return self.result.total_events


async def _fetch(name: str, func, *args) -> List[Any]:
    """Run a blocking source call in a worker thread; failures yield []."""
    try:
        return await asyncio.to_thread(func, *args)
    except SourceError as e:
        logger.warning(f"{name} unavailable: {e}")
    except Exception:
        logger.exception(f"{name} failed unexpectedly")
    return []


def group_by_category(pairs: List[Tuple[str, Event]]) -> List[Category]:
    """Known categories first in fixed order (Live Music and Festivals always present)."""
    grouped: Dict[str, List[Event]] = {LIVE_MUSIC: [], FESTIVALS_AND_EVENTS: []}
    for category, event in pairs:
        grouped.setdefault(category, []).append(event)

    ordered = [name for name in CATEGORY_ORDER if name in grouped]
    ordered += [name for name in grouped if name not in CATEGORY_ORDER]
    return [Category(name=name, events=grouped[name]) for name in ordered]


async def collect_multi_source(
    date_range: DateRange,
    ticketmaster: Optional[TicketmasterClient] = None,
    weather: Optional[OpenWeatherClient] = None,
    local_activities: Optional[GenAIActivitiesClient] = None,
    config: Optional[ExtractionConfig] = None,
) -> MultiSourceResult:
    """Gather every configured source at once and validate the merged events."""

    async def nothing():
        return []

    events, forecast, activities = await asyncio.gather(
        _fetch("Ticketmaster", ticketmaster.fetch_events, date_range) if ticketmaster else nothing(),
        _fetch("OpenWeather", weather.fetch_forecast) if weather else nothing(),
        _fetch("Local activities", local_activities.fetch_activities, date_range)
        if local_activities else nothing(),
    )

    categories = group_by_category(list(events) + list(activities))
    planning_tips = weather_planning_tips(forecast) + DEFAULT_TIPS
    merged = ExtractionResult(categories=categories, planning_tips=planning_tips)

    validation = ActivityValidator(config).validate(merged)
    logger.info(
        f"Multi-source merge kept {validation.total_events} events "
        f"({len(events)} ticketed, {len(activities)} local, {len(forecast)} forecast days)"
    )
    return MultiSourceResult(
        result=validation.result,
        weather_forecast=list(forecast),
        rejected=validation.rejected,
    )
