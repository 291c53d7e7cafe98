"""
Field extractors for free-text event blocks.

Every field has an ordered list of FieldRule entries. The first rule that
matches wins, so the list order is the precedence: labeled lines first, then
specific patterns before generic ones. Extractors never raise and never
return None; on total failure they return the configured sentinel.
"""
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from .extraction_config import Sentinels

DEFAULT_SENTINELS = Sentinels()

WEEKDAYS = r"(?:Monday|Tuesday|Wednesday|Thursday|Friday|Saturday|Sunday)"
WEEKDAYS_ABBR = r"(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun)"
MONTHS = (
    r"(?:January|February|March|April|May|June|July|August|September|"
    r"October|November|December)"
)
MONTHS_ABBR = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"
MERIDIEM = r"(?:AM|PM)"
DASH = r"[-–—]"

MARKDOWN_LINK = re.compile(r"\[[^\]]*\]\((https?://[^\s)]+)\)")
BULLET_PREFIX = re.compile(r"^(?:[*\-•]|\d+\.)\s+")
LABELED_LINE = re.compile(
    r"^(?:\*\*)?(Time|Date|Venue|Tickets|Ticket Link|Link|Location|Hours|Admission|Website|Price|Cost)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class FieldRule:
    """One tagged pattern; `group` selects the captured value."""
    tag: str
    pattern: Pattern
    group: int = 0
    transform: Optional[Callable[[str], str]] = None

    def apply(self, text: str) -> Optional[str]:
        match = self.pattern.search(text)
        if not match:
            return None
        value = match.group(self.group).strip()
        if self.transform:
            value = self.transform(value)
        return value or None


def labeled(tag: str, *labels: str, transform: Optional[Callable[[str], str]] = None) -> FieldRule:
    """Rule for a `Label: value` line; tolerates bullets and bold markers around the label."""
    names = "|".join(re.escape(label) for label in labels)
    pattern = re.compile(
        rf"\b(?:{names})\*{{0,2}}[ \t]*:\*{{0,2}}[ \t]*(.+?)[ \t]*$",
        re.IGNORECASE | re.MULTILINE,
    )
    return FieldRule(tag, pattern, group=1, transform=transform)


def _strip_emphasis(value: str) -> str:
    return value.strip("*_ ").strip()


def _link_target(value: str) -> str:
    """Reduce `[text](url)` or `<url>` to the bare URL."""
    value = _strip_emphasis(value)
    markdown = MARKDOWN_LINK.search(value)
    if markdown:
        return markdown.group(1)
    return value.strip("<>")


def _canonical_free(value: str) -> str:
    return "Free"


DATE_RULES: List[FieldRule] = [
    labeled("labeled_date", "Dates", "Date", transform=_strip_emphasis),
    FieldRule("weekday_month_day", re.compile(
        rf"\b{WEEKDAYS},?[ \t]+{MONTHS}[ \t]+\d{{1,2}}\b", re.IGNORECASE)),
    FieldRule("month_day", re.compile(
        rf"\b{MONTHS}[ \t]+\d{{1,2}}\b", re.IGNORECASE)),
    FieldRule("abbr_weekday_month", re.compile(
        rf"\b{WEEKDAYS_ABBR},?[ \t]+{MONTHS_ABBR}[ \t]+\d{{1,2}}\b", re.IGNORECASE)),
    FieldRule("slash_date", re.compile(r"\b\d{1,2}/\d{1,2}/\d{2,4}\b")),
    FieldRule("weekday_day", re.compile(
        rf"\b{WEEKDAYS},?[ \t]+\d{{1,2}}\b", re.IGNORECASE)),
]

TIME_RULES: List[FieldRule] = [
    labeled("labeled_time", "Time", "Hours", transform=_strip_emphasis),
    FieldRule("clock_range", re.compile(
        rf"\b\d{{1,2}}:\d{{2}}[ \t]*{MERIDIEM}?[ \t]*{DASH}[ \t]*\d{{1,2}}:\d{{2}}[ \t]*{MERIDIEM}\b",
        re.IGNORECASE)),
    FieldRule("hour_range", re.compile(
        rf"\b\d{{1,2}}(?::\d{{2}})?[ \t]*{MERIDIEM}?[ \t]*{DASH}[ \t]*\d{{1,2}}(?::\d{{2}})?[ \t]*{MERIDIEM}\b",
        re.IGNORECASE)),
    FieldRule("clock", re.compile(rf"\b\d{{1,2}}:\d{{2}}[ \t]*{MERIDIEM}\b", re.IGNORECASE)),
    FieldRule("hour", re.compile(rf"\b\d{{1,2}}[ \t]*{MERIDIEM}\b", re.IGNORECASE)),
]

VENUE_RULES: List[FieldRule] = [
    labeled("labeled_venue", "Location", "Venue", transform=_strip_emphasis),
    # "at <phrase>", but not "at $45" or "at 7 PM"
    FieldRule("at_phrase", re.compile(
        rf"\bat[ \t]+(?!\$)(?!\d{{1,2}}(?::\d{{2}})?[ \t]*{MERIDIEM}\b)([^,.\n]+)",
        re.IGNORECASE), group=1, transform=_strip_emphasis),
]

TICKET_PRICE_RULES: List[FieldRule] = [
    labeled("labeled_price", "Tickets", "Admission", "Price", "Cost", transform=_strip_emphasis),
    FieldRule("starting_at", re.compile(r"\bStarting at \$\d+(?:\.\d{2})?", re.IGNORECASE)),
    FieldRule("dollar_range", re.compile(
        rf"\$\d+(?:\.\d{{2}})?[ \t]*{DASH}[ \t]*\$\d+(?:\.\d{{2}})?")),
    FieldRule("dollar_amount", re.compile(r"\$\d+(?:\.\d{2})?")),
    FieldRule("free", re.compile(r"\bFree\b", re.IGNORECASE), transform=_canonical_free),
]

TICKET_LINK_RULES: List[FieldRule] = [
    labeled("labeled_link", "Ticket Link", "Link", "Website", transform=_link_target),
    FieldRule("markdown_link", MARKDOWN_LINK, group=1),
]

DESCRIPTION_RULES: List[FieldRule] = [
    labeled("labeled_description", "Bio", "Description", "Details", transform=_strip_emphasis),
]

FIELD_RULES: Dict[str, List[FieldRule]] = {
    "date": DATE_RULES,
    "time": TIME_RULES,
    "venue": VENUE_RULES,
    "ticket_price": TICKET_PRICE_RULES,
    "ticket_link": TICKET_LINK_RULES,
    "description": DESCRIPTION_RULES,
}


def first_match(text: str, rules: List[FieldRule]) -> Optional[Tuple[str, str]]:
    """Return (tag, value) of the first rule that matches, or None."""
    if not text:
        return None
    for rule in rules:
        value = rule.apply(text)
        if value is not None:
            return rule.tag, value
    return None


def _extract(text: str, rules: List[FieldRule], default: str) -> str:
    found = first_match(text, rules)
    return found[1] if found else default


def extract_date(text: str, sentinels: Sentinels = DEFAULT_SENTINELS) -> str:
    return _extract(text, DATE_RULES, sentinels.date)


def extract_time(text: str, sentinels: Sentinels = DEFAULT_SENTINELS) -> str:
    return _extract(text, TIME_RULES, sentinels.time)


def extract_venue(text: str, sentinels: Sentinels = DEFAULT_SENTINELS) -> str:
    return _extract(text, VENUE_RULES, sentinels.venue)


def extract_ticket_price(text: str, sentinels: Sentinels = DEFAULT_SENTINELS) -> str:
    return _extract(text, TICKET_PRICE_RULES, sentinels.ticket_price)


def extract_ticket_link(text: str, sentinels: Sentinels = DEFAULT_SENTINELS) -> str:
    return _extract(text, TICKET_LINK_RULES, sentinels.ticket_link)


def extract_description(text: str, sentinels: Sentinels = DEFAULT_SENTINELS) -> str:
    found = first_match(text, DESCRIPTION_RULES)
    if found:
        return found[1]

    # Fall back to the last non-empty line unless it is another labeled field
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    if lines:
        last_line = BULLET_PREFIX.sub("", lines[-1]).strip()
        if last_line and not LABELED_LINE.match(last_line):
            return last_line
    return sentinels.description
