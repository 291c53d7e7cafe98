"""
Structured sources: Ticketmaster events, OpenWeather forecast and
LLM-suggested local activities.

Their payloads are already structured, so each client only renames fields
into Event / WeatherDay. Every failure surfaces as SourceError.
"""
import json
import logging
import re
from datetime import datetime, tzinfo
from typing import List, Optional, Tuple

import requests
from dateutil import parser as date_parser, tz

from backend.app.schemas.activities import Event, Temperature, WeatherDay
from .activity_parser import FESTIVALS_AND_EVENTS, LIVE_MUSIC, LOCAL_ACTIVITIES
from .date_range import DateRange
from .errors import GenerationError, SourceError
from .genai_generator import TextGenerator
from .prompts import build_local_activities_prompt

logger = logging.getLogger(__name__)

TICKETMASTER_URL = "https://app.ticketmaster.com/discovery/v2/events.json"
ONECALL_URL = "https://api.openweathermap.org/data/3.0/onecall"
CURRENT_WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
ONECALL_SUBSCRIPTION_HINT = "One Call 3.0 requires a separate subscription"
FORECAST_DAYS = 7

JSON_ARRAY = re.compile(r"\[\s*\{.*\}\s*\]", re.DOTALL)


def format_day_label(value: datetime) -> str:
    """Monday, June 23"""
    return f"{value:%A}, {value:%B} {value.day}"


def format_clock(value: datetime) -> str:
    """7:30 PM"""
    return f"{value.hour % 12 or 12}:{value:%M} {'AM' if value.hour < 12 else 'PM'}"


def format_price_range(price_range: dict) -> str:
    low = price_range.get("min")
    high = price_range.get("max")
    if low is None and high is None:
        return "Price TBD"
    if low is None or high is None or low == high:
        return f"${(low if low is not None else high):.2f}"
    return f"${low:.2f} - ${high:.2f}"


def utc_timestamp(value: datetime, local_tz: Optional[tzinfo] = None) -> str:
    """
    Ticketmaster wants UTC bounds ending in Z. Naive values are wall-clock
    times in `local_tz` (the machine's zone when not given).
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=local_tz or tz.tzlocal())
    return value.astimezone(tz.UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class TicketmasterClient:
    """Ticketmaster Discovery API, mapped to (category, Event) pairs."""

    def __init__(
        self,
        api_key: str,
        lat: float,
        lng: float,
        radius_miles: int = 50,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        timezone: Optional[tzinfo] = None,
    ):
        self.api_key = api_key
        self.lat = lat
        self.lng = lng
        self.radius_miles = radius_miles
        self.timeout = timeout
        self.session = session or requests.Session()
        self.timezone = timezone or tz.tzlocal()

    def fetch_events(self, date_range: DateRange) -> List[Tuple[str, Event]]:
        if not self.api_key:
            raise SourceError("Ticketmaster API key not configured")

        params = {
            "apikey": self.api_key,
            "latlong": f"{self.lat},{self.lng}",
            "radius": self.radius_miles,
            "unit": "miles",
            "startDateTime": utc_timestamp(date_range.start, self.timezone),
            "endDateTime": utc_timestamp(date_range.end, self.timezone),
            "size": 100,
            "sort": "date,asc",
        }
        try:
            response = self.session.get(TICKETMASTER_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise SourceError(f"Ticketmaster request failed: {e}") from e

        raw_events = (data.get("_embedded") or {}).get("events") or []
        logger.info(f"Found {len(raw_events)} events from Ticketmaster API")
        return [self._to_event(raw) for raw in raw_events]

    def _to_event(self, raw: dict) -> Tuple[str, Event]:
        start = (raw.get("dates") or {}).get("start") or {}

        date_label = "Date TBD"
        date_source = start.get("localDate") or start.get("dateTime")
        if date_source:
            try:
                date_label = format_day_label(date_parser.isoparse(date_source))
            except ValueError:
                logger.debug(f"Unparseable Ticketmaster date: {date_source}")

        time_label = "Time TBD"
        if start.get("localTime"):
            try:
                time_label = format_clock(datetime.strptime(start["localTime"], "%H:%M:%S"))
            except ValueError:
                logger.debug(f"Unparseable Ticketmaster time: {start['localTime']}")

        venues = (raw.get("_embedded") or {}).get("venues") or []
        venue = venues[0].get("name") if venues and venues[0].get("name") else "Venue TBD"

        price_ranges = raw.get("priceRanges") or []
        ticket_price = format_price_range(price_ranges[0]) if price_ranges else "Price TBD"

        category = FESTIVALS_AND_EVENTS
        classifications = raw.get("classifications") or []
        if classifications and (classifications[0].get("segment") or {}).get("name") == "Music":
            category = LIVE_MUSIC

        name = raw.get("name") or ""
        return category, Event(
            name=name,
            date=date_label,
            time=time_label,
            venue=venue,
            ticket_price=ticket_price,
            ticket_link=raw.get("url") or "",
            description=raw.get("info") or name,
        )


class OpenWeatherClient:
    """Seven-day forecast, falling back to current conditions without a One Call plan."""

    def __init__(
        self,
        api_key: str,
        lat: float,
        lng: float,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.lat = lat
        self.lng = lng
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_forecast(self) -> List[WeatherDay]:
        if not self.api_key:
            raise SourceError("OpenWeather API key not configured")

        params = {
            "lat": self.lat,
            "lon": self.lng,
            "exclude": "current,minutely,hourly,alerts",
            "units": "imperial",
            "appid": self.api_key,
        }
        try:
            response = self.session.get(ONECALL_URL, params=params, timeout=self.timeout)
            if response.status_code == 401 and ONECALL_SUBSCRIPTION_HINT in response.text:
                logger.warning("OpenWeather One Call 3.0 needs a subscription, using current weather")
                return self._fetch_current()
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise SourceError(f"OpenWeather request failed: {e}") from e

        daily = data.get("daily") or []
        logger.info(f"Found {len(daily)} days of weather forecast")
        try:
            return [self._to_day(day) for day in daily[:FORECAST_DAYS]]
        except (KeyError, IndexError, TypeError) as e:
            raise SourceError(f"Unexpected OpenWeather forecast payload: {e}") from e

    def _to_day(self, day: dict) -> WeatherDay:
        weather = (day.get("weather") or [{}])[0]
        return WeatherDay(
            date=format_day_label(datetime.fromtimestamp(day["dt"])),
            temp=Temperature(min=round(day["temp"]["min"]), max=round(day["temp"]["max"])),
            weather=weather.get("main", ""),
            description=weather.get("description", ""),
            precipitation=round((day.get("pop") or 0) * 100),
        )

    def _fetch_current(self) -> List[WeatherDay]:
        params = {"lat": self.lat, "lon": self.lng, "units": "imperial", "appid": self.api_key}
        try:
            response = self.session.get(CURRENT_WEATHER_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            weather = (data.get("weather") or [{}])[0]
            return [WeatherDay(
                date=format_day_label(datetime.now()),
                temp=Temperature(
                    min=round(data["main"]["temp_min"]),
                    max=round(data["main"]["temp_max"]),
                ),
                weather=weather.get("main", ""),
                description=weather.get("description", ""),
                precipitation=0,
            )]
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            raise SourceError(f"OpenWeather current weather request failed: {e}") from e


class GenAIActivitiesClient:
    """Ask the text generator for a JSON list of local activities."""

    def __init__(self, generator: TextGenerator, city: str, radius_miles: int = 50):
        self.generator = generator
        self.city = city
        self.radius_miles = radius_miles

    def fetch_activities(self, date_range: DateRange) -> List[Tuple[str, Event]]:
        prompt = build_local_activities_prompt(date_range, self.city, self.radius_miles)
        try:
            text = self.generator.generate(prompt)
        except GenerationError as e:
            raise SourceError(f"Local activities generation failed: {e}") from e

        match = JSON_ARRAY.search(text or "")
        if not match:
            raise SourceError("Could not find JSON array in local activities response")
        try:
            items = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise SourceError(f"Local activities response is not valid JSON: {e}") from e

        logger.info(f"Found {len(items)} activities from the text generator")
        return [
            (LOCAL_ACTIVITIES, Event(
                name=str(item.get("name") or ""),
                date="Available all week",
                time="Various times",
                venue=str(item.get("location") or ""),
                ticket_price=str(item.get("cost") or ""),
                ticket_link="",
                description=str(item.get("description") or ""),
            ))
            for item in items
            if isinstance(item, dict)
        ]
