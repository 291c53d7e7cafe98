"""
Weekly refresh: build this week's activities and store them as a snapshot.

Two modes:
- "generation": one newsletter prompt through the retry controller
- "multi_source": Ticketmaster + OpenWeather + generated local activities
"""
import asyncio
import json
import logging
from datetime import datetime
from typing import List, Optional

from dateutil import tz
from sqlmodel import Session

from backend.app.db.models import ActivitiesSnapshot
from backend.app.schemas.activities import ActivitiesPayload, Category, WeatherDay
from .activity_generation import run_with_retry
from .date_range import DateRange
from .errors import SourceError
from .event_sources import GenAIActivitiesClient, OpenWeatherClient, TicketmasterClient
from .extraction_config import ExtractionConfig
from .genai_generator import GenAITextGenerator, TextGenerator
from .multi_source import collect_multi_source
from .planning_tips import weather_planning_tips

logger = logging.getLogger(__name__)

GENERATION = "generation"
MULTI_SOURCE = "multi_source"
MODES = (GENERATION, MULTI_SOURCE)


def snapshot_to_payload(snapshot: ActivitiesSnapshot) -> ActivitiesPayload:
    return ActivitiesPayload(
        week_start_date=snapshot.week_start_date,
        week_end_date=snapshot.week_end_date,
        fetched_at=snapshot.fetched_at,
        categories=[Category.model_validate(c) for c in snapshot.categories or []],
        planning_tips=list(snapshot.planning_tips or []),
        weather_forecast=(
            [WeatherDay.model_validate(d) for d in snapshot.weather_forecast]
            if snapshot.weather_forecast is not None else None
        ),
        source=snapshot.source,
    )


class WeeklyUpdateService:
    def __init__(
        self,
        session: Session,
        generator: Optional[TextGenerator] = None,
        city: str = "Des Moines, Iowa",
        ticketmaster: Optional[TicketmasterClient] = None,
        weather: Optional[OpenWeatherClient] = None,
        local_activities: Optional[GenAIActivitiesClient] = None,
        config: Optional[ExtractionConfig] = None,
        max_retries: int = 2,
        min_valid_events: int = 3,
        timeout_seconds: Optional[float] = 45.0,
    ):
        self.session = session
        self.generator = generator
        self.city = city
        self.ticketmaster = ticketmaster
        self.weather = weather
        self.local_activities = local_activities
        self.config = config or ExtractionConfig()
        self.max_retries = max_retries
        self.min_valid_events = min_valid_events
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings, session: Session) -> "WeeklyUpdateService":
        generator = None
        if settings.GEMINI_API_KEY:
            generator = GenAITextGenerator(
                api_key=settings.GEMINI_API_KEY,
                model_name=settings.GEMINI_MODEL,
                timeout_seconds=settings.GENERATION_TIMEOUT_SECONDS,
            )

        weather = None
        if settings.OPENWEATHER_API_KEY:
            weather = OpenWeatherClient(
                settings.OPENWEATHER_API_KEY,
                settings.CITY_LAT,
                settings.CITY_LNG,
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )

        ticketmaster = None
        if settings.TICKETMASTER_API_KEY:
            ticketmaster = TicketmasterClient(
                settings.TICKETMASTER_API_KEY,
                settings.CITY_LAT,
                settings.CITY_LNG,
                radius_miles=settings.SEARCH_RADIUS_MILES,
                timeout=settings.HTTP_TIMEOUT_SECONDS,
                timezone=tz.gettz(settings.CITY_TIMEZONE) or tz.tzlocal(),
            )

        local_activities = None
        if generator:
            local_activities = GenAIActivitiesClient(
                generator, settings.CITY_NAME, radius_miles=settings.SEARCH_RADIUS_MILES
            )

        return cls(
            session,
            generator=generator,
            city=settings.CITY_NAME,
            ticketmaster=ticketmaster,
            weather=weather,
            local_activities=local_activities,
            config=ExtractionConfig.from_settings(settings),
            max_retries=settings.MAX_GENERATION_RETRIES,
            min_valid_events=settings.MIN_VALID_EVENTS,
            timeout_seconds=settings.GENERATION_TIMEOUT_SECONDS,
        )

    async def _forecast(self) -> Optional[List[WeatherDay]]:
        if not self.weather:
            return None
        try:
            return await asyncio.to_thread(self.weather.fetch_forecast)
        except SourceError as e:
            logger.warning(f"Weather forecast unavailable: {e}")
            return None

    async def run(
        self,
        mode: str = GENERATION,
        max_retries: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> ActivitiesSnapshot:
        """
        Build and store this week's activities.

        Raises GenerationError / InsufficientDataError from the generation mode
        unchanged; nothing is stored in that case.
        """
        if mode not in MODES:
            raise ValueError(f"Unknown update mode: {mode}")

        date_range = DateRange.current_week(now)
        logger.info(f"Updating activities for {date_range.formatted()} ({mode})")

        raw_response = None
        attempts = 1
        if mode == GENERATION:
            if self.generator is None:
                raise ValueError("Generation mode needs a text generator (set GEMINI_API_KEY)")
            outcome = await run_with_retry(
                date_range,
                self.generator,
                self.city,
                max_retries=self.max_retries if max_retries is None else max_retries,
                config=self.config,
                min_valid_events=self.min_valid_events,
                timeout_seconds=self.timeout_seconds,
            )
            result = outcome.result
            raw_response = outcome.raw_response
            attempts = outcome.attempts
            forecast = await self._forecast()
            if forecast is not None:
                result.planning_tips.extend(weather_planning_tips(forecast))
        else:
            merged = await collect_multi_source(
                date_range,
                ticketmaster=self.ticketmaster,
                weather=self.weather,
                local_activities=self.local_activities,
                config=self.config,
            )
            result = merged.result
            forecast = merged.weather_forecast or None

        snapshot = ActivitiesSnapshot(
            week_start_date=date_range.start,
            week_end_date=date_range.end,
            source=mode,
            attempts=attempts,
            categories=[category.to_json_dict() for category in result.categories],
            planning_tips=list(result.planning_tips),
            weather_forecast=[day.model_dump(mode="json") for day in forecast] if forecast else None,
            raw_response=raw_response,
        )
        self.session.add(snapshot)
        self.session.commit()
        self.session.refresh(snapshot)

        logger.info(
            f"Stored {result.total_events} events in {len(result.categories)} categories "
            f"for week of {date_range.start_label}"
        )
        return snapshot


def write_live_data(snapshot: ActivitiesSnapshot, path: str) -> None:
    """Write the snapshot as the static live-data JSON file served by the API."""
    payload = snapshot_to_payload(snapshot).to_json_dict()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    logger.info(f"Wrote live activities data to {path}")
