"""
Activity Parser - turns a free-text events newsletter into structured categories.

Pipeline:
1. Split the document into heading-delimited sections
2. Classify each heading (live music / festivals / planning tips)
3. Split event sections on bold event names and run the field extractors
4. If no category came out of steps 1-3, scan the whole document with
   compound patterns instead

Parsing is pure: no I/O, no randomness, the same text always yields the same
result. It never fails, it can only yield zero events.
"""
import logging
import re
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern

from backend.app.schemas.activities import Category, Event, ExtractionResult
from .extraction_config import ExtractionConfig, Sentinels
from .field_extractors import (
    BULLET_PREFIX,
    extract_date,
    extract_description,
    extract_ticket_link,
    extract_ticket_price,
    extract_time,
    extract_venue,
)

logger = logging.getLogger(__name__)

LIVE_MUSIC = "Live Music"
FESTIVALS_AND_EVENTS = "Festivals & Events"
LOCAL_ACTIVITIES = "Local Activities"
PLANNING_TIPS = "planning_tips"

HEADING = re.compile(r"^[ \t]*#{1,3}[ \t]+(?P<title>[^\n]*?)[ \t#]*$", re.MULTILINE)

# Bold event name at the start of a line, optionally after a bullet or number
BOLD_NAME = re.compile(
    r"^[ \t]*(?:[*\-•][ \t]+|\d+\.[ \t]+)?\*\*(?P<name>[^*\n]+)\*\*",
    re.MULTILINE,
)

# Bold tokens that are field labels, not event names ("**Date:** Saturday")
FIELD_LABEL_NAME = re.compile(
    r"^(?:Dates?|Time|Hours|Venue|Location|Tickets?|Ticket Link|Link|Website|"
    r"Admission|Price|Cost|Bio|Description|Details)\s*:?$",
    re.IGNORECASE,
)

# "**When**: Friday" - a colon right after the closing markers
COLON_AFTER = re.compile(r"[ \t]*:")

BOLD_TOPIC = re.compile(r"^\*\*(?P<topic>[^*]+?)\*\*\s*:|^\*\*(?P<inner>[^*]+?):\*\*")

MUSIC_KEYWORDS = re.compile(r"concert|music|band|artist|performance|show", re.IGNORECASE)

FALLBACK_PATTERNS: List[Pattern] = [
    # * Name
    #   * Time: ...
    #   * Tickets: ...
    #   * Ticket Link: ...
    #   * Bio: ...
    re.compile(
        r"\*[ \t]+(?P<name>[^\n]+)\n"
        r"[ \t]*\*[ \t]+Time:[ \t]*[^\n]+\n"
        r"[ \t]*\*[ \t]+(?:Tickets|Admission):[ \t]*[^\n]+\n"
        r"[ \t]*\*[ \t]+(?:Ticket Link|Link|Website):[ \t]*[^\n]+\n"
        r"[ \t]*\*[ \t]+(?:Bio|Description|Details):[ \t]*[^\n]+",
        re.IGNORECASE,
    ),
    # **Name**
    # * Date: ...
    # * Time: ...
    # * Location: ...
    re.compile(
        r"\*\*(?P<name>[^*]+)\*\*\n"
        r"[ \t]*\*[ \t]+(?:Date|Dates):[ \t]*[^\n]+\n"
        r"[ \t]*\*[ \t]+(?:Time|Hours):[ \t]*[^\n]+\n"
        r"[ \t]*\*[ \t]+(?:Location|Venue):[ \t]*[^\n]+",
        re.IGNORECASE,
    ),
]


@dataclass(frozen=True)
class SectionRule:
    kind: str
    pattern: Pattern


# Checked in order; the first synonym set that matches the title wins
SECTION_RULES: List[SectionRule] = [
    SectionRule(LIVE_MUSIC, re.compile(r"live music|music|concerts?|shows", re.IGNORECASE)),
    SectionRule(FESTIVALS_AND_EVENTS, re.compile(r"festivals?|events|outdoor|family", re.IGNORECASE)),
    SectionRule(PLANNING_TIPS, re.compile(r"planning|tips|notes", re.IGNORECASE)),
]


@dataclass(frozen=True)
class Section:
    title: str
    body: str


def classify_section(title: str) -> Optional[str]:
    """Return the category label (or PLANNING_TIPS) for a heading title."""
    for rule in SECTION_RULES:
        if rule.pattern.search(title):
            return rule.kind
    return None


def build_event(name: str, block: str, sentinels: Sentinels) -> Event:
    """Run every field extractor over one event block."""
    return Event(
        name=name,
        date=extract_date(block, sentinels),
        time=extract_time(block, sentinels),
        venue=extract_venue(block, sentinels),
        ticket_price=extract_ticket_price(block, sentinels),
        ticket_link=extract_ticket_link(block, sentinels),
        description=extract_description(block, sentinels),
    )


def _clean_name(raw: str) -> str:
    return raw.strip().rstrip(":").strip()


def _is_field_label(match: re.Match, body: str) -> bool:
    """`**When:**`, `**Where**:` and the known field names are labels, not event names."""
    raw = match.group("name").strip()
    if raw.endswith(":") or COLON_AFTER.match(body, match.end()):
        return True
    return bool(FIELD_LABEL_NAME.match(_clean_name(raw)))


class ActivityParser:
    """Parse generated newsletter text into categories and planning tips."""

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()

    @property
    def sentinels(self) -> Sentinels:
        return self.config.sentinels

    def extract_activities(self, raw_text: str) -> ExtractionResult:
        raw_text = (raw_text or "").replace("\r\n", "\n")
        grouped: Dict[str, List[Event]] = OrderedDict()
        planning_tips: List[str] = []

        for section in self.split_sections(raw_text):
            kind = classify_section(section.title)
            if kind == PLANNING_TIPS:
                planning_tips.extend(self.parse_planning_tips(section.body))
                continue

            if kind is None:
                if not self.config.unclassified_label:
                    logger.debug(f"Dropping unclassified section '{section.title}'")
                    continue
                kind = self.config.unclassified_label

            events = self.parse_event_blocks(section.body)
            logger.debug(f"Section '{section.title}' -> {kind}: {len(events)} events")
            if events:
                grouped.setdefault(kind, []).extend(events)

        categories = [Category(name=name, events=events) for name, events in grouped.items()]

        if not categories:
            logger.debug("Section parsing produced no categories, scanning whole document")
            categories = self.scan_whole_document(raw_text)

        return ExtractionResult(categories=categories, planning_tips=planning_tips)

    def split_sections(self, raw_text: str) -> List[Section]:
        """Split on heading lines. Content before the first heading is dropped."""
        headings = list(HEADING.finditer(raw_text))
        sections = []
        for i, heading in enumerate(headings):
            end = headings[i + 1].start() if i + 1 < len(headings) else len(raw_text)
            body = raw_text[heading.end():end].strip()
            sections.append(Section(title=heading.group("title").strip(), body=body))
        return sections

    def parse_event_blocks(self, body: str) -> List[Event]:
        """One event per bold name; the text up to the next bold name is its block."""
        names = [match for match in BOLD_NAME.finditer(body) if not _is_field_label(match, body)]
        events = []
        for i, match in enumerate(names):
            end = names[i + 1].start() if i + 1 < len(names) else len(body)
            block = body[match.end():end].strip()
            name = _clean_name(match.group("name"))
            if not name:
                continue
            events.append(build_event(name, block, self.sentinels))
        return events

    def parse_planning_tips(self, body: str) -> List[str]:
        """Bullet items become tips; continuation lines join the previous item."""
        tips: List[str] = []
        current: Optional[str] = None

        for line in body.splitlines():
            stripped = line.strip()
            if not stripped:
                if current:
                    tips.append(current)
                current = None
                continue
            bullet = BULLET_PREFIX.match(stripped)
            if bullet:
                if current:
                    tips.append(current)
                current = stripped[bullet.end():].strip()
            elif current:
                current = f"{current} {stripped}"
            else:
                current = stripped
        if current:
            tips.append(current)

        return [tip for tip in (self._unwrap_topic(t) for t in tips) if tip]

    @staticmethod
    def _unwrap_topic(tip: str) -> str:
        """`**Parking**: text` and `**Parking:** text` become `Parking: text`."""
        match = BOLD_TOPIC.match(tip)
        if not match:
            return tip.strip()
        topic = (match.group("topic") or match.group("inner")).strip()
        rest = tip[match.end():].strip()
        return f"{topic}: {rest}".strip() if rest else f"{topic}:"

    def scan_whole_document(self, raw_text: str) -> List[Category]:
        """Compound-pattern scan used when no section produced events."""
        music: List[Event] = []
        festivals: List[Event] = []
        taken = []

        for pattern in FALLBACK_PATTERNS:
            for match in pattern.finditer(raw_text):
                if any(match.start() < end and start < match.end() for start, end in taken):
                    continue
                taken.append((match.start(), match.end()))

                event_text = match.group(0)
                name = _clean_name(match.group("name").strip("* "))
                event = build_event(name, event_text, self.sentinels)
                if MUSIC_KEYWORDS.search(event_text):
                    music.append(event)
                else:
                    festivals.append(event)

        logger.debug(f"Whole-document scan found {len(music)} music and {len(festivals)} other events")
        categories = []
        if music:
            categories.append(Category(name=LIVE_MUSIC, events=music))
        if festivals:
            categories.append(Category(name=FESTIVALS_AND_EVENTS, events=festivals))
        return categories


def extract_activities(raw_text: str, config: Optional[ExtractionConfig] = None) -> ExtractionResult:
    """Extract categories and planning tips from already-fetched generator output."""
    return ActivityParser(config).extract_activities(raw_text)
