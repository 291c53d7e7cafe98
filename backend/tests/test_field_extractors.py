import pytest
from backend.app.services.extraction_config import Sentinels
from backend.app.services.field_extractors import (
    DATE_RULES,
    TICKET_PRICE_RULES,
    TIME_RULES,
    extract_date,
    extract_description,
    extract_ticket_link,
    extract_ticket_price,
    extract_time,
    extract_venue,
    first_match,
)


class TestDateExtraction:

    @pytest.mark.parametrize("text, expected", [
        ("Saturday, June 28 at the park", "Saturday, June 28"),
        ("Happening on July 4 downtown", "July 4"),
        ("Sat, Jun 28 only", "Sat, Jun 28"),
        ("Registration closes 6/28/2025", "6/28/2025"),
        ("Every Friday 13 of the year", "Friday 13"),
    ])
    def test_patterns(self, text, expected):
        assert extract_date(text) == expected

    def test_label_wins_over_later_pattern(self):
        text = "* Date: Every weekend in June\nAlso on Monday, June 30"
        assert extract_date(text) == "Every weekend in June"
        assert first_match(text, DATE_RULES)[0] == "labeled_date"

    def test_bold_label(self):
        assert extract_date("**Date:** Friday, June 27") == "Friday, June 27"

    def test_sentinel_when_nothing_matches(self):
        assert extract_date("Come by whenever") == "TBD"
        assert extract_date("", Sentinels(date="Date not specified")) == "Date not specified"


class TestTimeExtraction:

    @pytest.mark.parametrize("text, tag, expected", [
        ("Doors 7:30 PM - 10:00 PM", "clock_range", "7:30 PM - 10:00 PM"),
        ("Open 10 AM - 4 PM daily", "hour_range", "10 AM - 4 PM"),
        ("Show starts 7:30 PM sharp", "clock", "7:30 PM"),
        ("Show starts 8 PM", "hour", "8 PM"),
        ("Time: Doors at 6, show at 7", "labeled_time", "Doors at 6, show at 7"),
        ("Hours: 9 AM - 5 PM", "labeled_time", "9 AM - 5 PM"),
    ])
    def test_precedence(self, text, tag, expected):
        assert first_match(text, TIME_RULES) == (tag, expected)

    def test_sentinel(self):
        assert extract_time("sometime next week") == "TBD"


class TestVenueExtraction:

    def test_labeled(self):
        assert extract_venue("* Venue: Hoyt Sherman Place") == "Hoyt Sherman Place"
        assert extract_venue("Location: Gray's Lake Park") == "Gray's Lake Park"

    def test_at_phrase(self):
        assert extract_venue("Live at Water Works Park, all day") == "Water Works Park"

    def test_at_price_or_time_is_not_a_venue(self):
        assert extract_venue("Tickets at $45") == "TBD"
        assert extract_venue("Starts at 7 PM") == "TBD"


class TestTicketPriceExtraction:

    @pytest.mark.parametrize("text, tag, expected", [
        ("* Tickets: $25-$40", "labeled_price", "$25-$40"),
        ("Admission: Free", "labeled_price", "Free"),
        ("Starting at $30 per person", "starting_at", "Starting at $30"),
        ("Prices $25 - $40 at the door", "dollar_range", "$25 - $40"),
        ("Just $12.50 cover", "dollar_amount", "$12.50"),
        ("Entry is FREE for all", "free", "Free"),
    ])
    def test_precedence(self, text, tag, expected):
        assert first_match(text, TICKET_PRICE_RULES) == (tag, expected)

    def test_sentinel(self):
        assert extract_ticket_price("Ask at the box office") == "TBD"


class TestTicketLinkExtraction:

    def test_labeled_markdown_link_reduced_to_url(self):
        assert extract_ticket_link("* Ticket Link: [site](https://example.com)") == "https://example.com"

    def test_labeled_angle_brackets(self):
        assert extract_ticket_link("Website: <https://a.org>") == "https://a.org"

    def test_bare_markdown_link(self):
        assert extract_ticket_link("More info [here](https://b.org/x).") == "https://b.org/x"

    def test_sentinel_is_empty(self):
        assert extract_ticket_link("No link today") == ""


class TestDescriptionExtraction:

    def test_labeled(self):
        assert extract_description("* Time: 8 PM\n* Bio: Local legends.") == "Local legends."

    def test_last_line_fallback(self):
        assert extract_description("* Time: 8 PM\n- A fun night out.") == "A fun night out."

    def test_last_line_that_is_a_field_is_not_a_description(self):
        assert extract_description("A fun night\n* Venue: Wooly's") == "No description available."

    def test_empty(self):
        assert extract_description("") == "No description available."
