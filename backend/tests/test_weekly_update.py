import json
import pytest
from datetime import datetime
from unittest.mock import MagicMock
from sqlmodel import Session, select
from backend.app.db.models import ActivitiesSnapshot
from backend.app.schemas.activities import Event, Temperature, WeatherDay
from backend.app.services.activity_parser import LIVE_MUSIC
from backend.app.services.errors import InsufficientDataError, SourceError
from backend.app.services.weekly_update import WeeklyUpdateService, snapshot_to_payload, write_live_data

NOW = datetime(2025, 6, 25, 12, 0)
FORECAST = [WeatherDay(date="Monday, June 23", temp=Temperature(min=60, max=75), weather="Clear")]


class TestWeeklyUpdateService:

    @pytest.mark.asyncio
    async def test_generation_mode_stores_snapshot(self, session: Session, make_generator, newsletter_text):
        weather = MagicMock()
        weather.fetch_forecast.return_value = FORECAST
        service = WeeklyUpdateService(session, generator=make_generator(newsletter_text), weather=weather)

        snapshot = await service.run("generation", now=NOW)

        assert snapshot.id is not None
        assert snapshot.source == "generation"
        assert snapshot.week_start_date == datetime(2025, 6, 23)
        assert snapshot.week_end_date.date() == datetime(2025, 6, 29).date()
        assert snapshot.raw_response == newsletter_text
        assert snapshot.categories[0]["name"] == LIVE_MUSIC
        assert snapshot.categories[0]["events"][0]["ticketPrice"] == "$25 - $40"
        assert snapshot.planning_tips[-1].startswith("Weekly Weather:")
        assert snapshot.weather_forecast[0]["temp"]["max"] == 75

        assert ActivitiesSnapshot.latest_for(session, NOW).id == snapshot.id
        assert ActivitiesSnapshot.latest_for(session, datetime(2025, 7, 2)) is None

    @pytest.mark.asyncio
    async def test_generation_without_weather_has_no_forecast(self, session: Session, make_generator, newsletter_text):
        weather = MagicMock()
        weather.fetch_forecast.side_effect = SourceError("no key")
        service = WeeklyUpdateService(session, generator=make_generator(newsletter_text), weather=weather)

        snapshot = await service.run("generation", now=NOW)

        assert snapshot.weather_forecast is None
        assert len(snapshot.planning_tips) == 2

    @pytest.mark.asyncio
    async def test_failed_generation_stores_nothing(self, session: Session, make_generator, one_event_text):
        generator = make_generator(one_event_text)
        service = WeeklyUpdateService(session, generator=generator, max_retries=1)

        with pytest.raises(InsufficientDataError):
            await service.run("generation", now=NOW)

        assert generator.generate.call_count == 2
        assert session.exec(select(ActivitiesSnapshot)).all() == []

    @pytest.mark.asyncio
    async def test_max_retries_override(self, session: Session, make_generator, one_event_text):
        generator = make_generator(one_event_text)
        service = WeeklyUpdateService(session, generator=generator, max_retries=2)

        with pytest.raises(InsufficientDataError):
            await service.run("generation", max_retries=0, now=NOW)
        assert generator.generate.call_count == 1

    @pytest.mark.asyncio
    async def test_multi_source_mode(self, session: Session):
        ticketmaster = MagicMock()
        ticketmaster.fetch_events.return_value = [(LIVE_MUSIC, Event(
            name="Jazz Fest", date="Friday, June 27", time="7:30 PM", venue="Water Works Park",
        ))]
        weather = MagicMock()
        weather.fetch_forecast.return_value = FORECAST
        service = WeeklyUpdateService(session, ticketmaster=ticketmaster, weather=weather)

        snapshot = await service.run("multi_source", now=NOW)

        assert snapshot.source == "multi_source"
        assert snapshot.raw_response is None
        assert [c["name"] for c in snapshot.categories] == [LIVE_MUSIC]
        assert len(snapshot.weather_forecast) == 1

    @pytest.mark.asyncio
    async def test_unknown_mode(self, session: Session):
        with pytest.raises(ValueError):
            await WeeklyUpdateService(session).run("carrier-pigeon", now=NOW)

    @pytest.mark.asyncio
    async def test_generation_mode_needs_generator(self, session: Session):
        with pytest.raises(ValueError):
            await WeeklyUpdateService(session).run("generation", now=NOW)


@pytest.mark.asyncio
async def test_write_live_data(session: Session, make_generator, newsletter_text, tmp_path):
    snapshot = await WeeklyUpdateService(session, generator=make_generator(newsletter_text)).run(now=NOW)
    path = tmp_path / "live.json"

    write_live_data(snapshot, str(path))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data == snapshot_to_payload(snapshot).to_json_dict()
    assert data["weekStartDate"].startswith("2025-06-23")
    assert data["categories"][1]["name"] == "Festivals & Events"
