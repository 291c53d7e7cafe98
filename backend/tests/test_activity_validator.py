import itertools
import pytest
from backend.app.schemas.activities import Category, Event, ExtractionResult, Temperature, WeatherDay
from backend.app.services.activity_parser import extract_activities
from backend.app.services.activity_validator import ActivityValidator
from backend.app.services.extraction_config import ExtractionConfig


def make_event(name="Jazz Night", date="Friday, June 27", time="7 PM", venue="Wooly's", **kwargs):
    return Event(name=name, date=date, time=time, venue=venue, **kwargs)


@pytest.fixture
def validator():
    return ActivityValidator()


class TestActivityValidator:

    def test_event_with_two_fields_is_dropped_with_its_category(self, validator):
        extracted = ExtractionResult(categories=[
            Category(name="Live Music", events=[make_event(time="TBD", venue="TBD")]),
        ])
        validation = validator.validate(extracted)

        assert validation.result.categories == []
        assert [e.name for e in validation.rejected] == ["Jazz Night"]
        assert validation.total_events == 0

    def test_three_fields_kept_and_normalized(self, validator):
        extracted = ExtractionResult(categories=[
            Category(name="Live Music", events=[make_event(venue="", name="  Jazz Night ")]),
        ])
        event = validator.validate(extracted).result.categories[0].events[0]

        assert event.name == "Jazz Night"
        assert event.venue == "TBD"
        assert event.ticket_price == "TBD"
        assert event.ticket_link == ""
        assert event.description == "No description available."

    def test_mixed_category_keeps_only_valid_events(self, validator):
        extracted = ExtractionResult(categories=[
            Category(name="Live Music", events=[
                make_event(name="Good"),
                make_event(name="Bad", time="", venue=""),
            ]),
        ])
        validation = validator.validate(extracted)
        assert [e.name for e in validation.result.categories[0].events] == ["Good"]
        assert [e.name for e in validation.rejected] == ["Bad"]

    @pytest.mark.parametrize("venue", ["TBA", "n/a", "Venue not specified", "   "])
    def test_placeholders_do_not_count(self, validator, venue):
        event = make_event(venue=venue, time="TBD")
        assert validator.required_field_count(event) == 2

    def test_generic_names_do_not_count(self, validator):
        assert validator.required_field_count(make_event(name="Event 2")) == 3
        assert validator.required_field_count(make_event(name="")) == 3

    def test_threshold_is_configurable(self):
        strict = ActivityValidator(ExtractionConfig(min_required_fields=4))
        assert not strict.is_valid_event(make_event(venue="TBD"))
        assert strict.is_valid_event(make_event())

    def test_every_kept_event_meets_threshold(self, validator):
        values = {
            "name": ["Jazz Night", ""],
            "date": ["Friday, June 27", "TBD"],
            "time": ["7 PM", ""],
            "venue": ["Wooly's", "TBD"],
        }
        events = [
            Event(name=n, date=d, time=t, venue=v)
            for n, d, t, v in itertools.product(*values.values())
        ]
        extracted = ExtractionResult(categories=[Category(name="Live Music", events=events)])
        validation = validator.validate(extracted)

        kept = validation.result.categories[0].events
        assert len(kept) + len(validation.rejected) == len(events)
        # 1 event with all four + 4 with exactly three
        assert len(kept) == 5
        assert all(validator.required_field_count(e) >= 3 for e in kept)
        assert all(validator.required_field_count(e) < 3 for e in validation.rejected)

    def test_planning_tips_cleaned_and_weather_appended(self, validator):
        extracted = ExtractionResult(planning_tips=["  Parking: Arrive early. ", "", "   "])
        forecast = [
            WeatherDay(date="Monday, June 23", temp=Temperature(min=70, max=90), weather="Clear", precipitation=10),
        ]
        tips = validator.validate(extracted, weather_forecast=forecast).result.planning_tips

        assert tips[0] == "Parking: Arrive early."
        assert any(tip.startswith("Heat Advisory:") for tip in tips)
        assert tips[-1].startswith("Weekly Weather:")

    def test_generator_placeholders_become_sentinels(self, validator):
        text = (
            "### LIVE MUSIC\n\n**Jazz Night**\n"
            "* Date: Friday, June 27\n* Time: 7 PM\n"
            "* Venue: Venue not specified\n* Tickets: Price TBD\n"
            "* Ticket Link: TBD\n* Description: N/A\n"
        )
        extracted = extract_activities(text)
        validation = validator.validate(extracted)

        event = validation.result.categories[0].events[0]
        assert event.venue == "TBD"
        assert event.ticket_price == "TBD"
        assert event.ticket_link == ""
        assert event.description == "No description available."

    def test_real_values_survive_normalization(self, validator):
        event = validator.normalize_event(make_event(ticket_price=" Free ", ticket_link="https://woolys.com"))
        assert event.ticket_price == "Free"
        assert event.ticket_link == "https://woolys.com"
