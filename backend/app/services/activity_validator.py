"""
Activity Validator for extraction results.
Drops events that are missing too many required fields and normalizes the rest.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from backend.app.schemas.activities import Category, Event, ExtractionResult, WeatherDay
from .extraction_config import ExtractionConfig
from .planning_tips import weather_planning_tips

logger = logging.getLogger(__name__)

# Names the parser or a generator uses when it has nothing better ("Event 3")
GENERIC_NAME = re.compile(r"^Event(?:\s+\d+)?$", re.IGNORECASE)


@dataclass
class ValidationResult:
    """Result of validation check."""
    result: ExtractionResult
    rejected: List[Event] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def total_events(self) -> int:
        return self.result.total_events


class ActivityValidator:
    """Keep events with enough required fields; drop categories left empty."""

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()

    def required_field_count(self, event: Event) -> int:
        """How many of name/date/time/venue carry a real value."""
        sentinels = self.config.sentinels
        has_name = not self.config.is_placeholder(event.name) and not GENERIC_NAME.match(event.name.strip())
        has_date = not self.config.is_placeholder(event.date, sentinels.date)
        has_time = not self.config.is_placeholder(event.time, sentinels.time)
        has_venue = not self.config.is_placeholder(event.venue, sentinels.venue)
        return sum([has_name, has_date, has_time, has_venue])

    def is_valid_event(self, event: Event) -> bool:
        return self.required_field_count(event) >= self.config.min_required_fields

    def _normalize_field(self, value: str, sentinel: str) -> str:
        if self.config.is_placeholder(value, sentinel):
            return sentinel
        return value.strip()

    def normalize_event(self, event: Event) -> Event:
        """Strip whitespace; empty and placeholder fields become their sentinels."""
        sentinels = self.config.sentinels
        return Event(
            name=event.name.strip(),
            date=self._normalize_field(event.date, sentinels.date),
            time=self._normalize_field(event.time, sentinels.time),
            venue=self._normalize_field(event.venue, sentinels.venue),
            ticket_price=self._normalize_field(event.ticket_price, sentinels.ticket_price),
            ticket_link=self._normalize_field(event.ticket_link, sentinels.ticket_link),
            description=self._normalize_field(event.description, sentinels.description),
        )

    def validate(
        self,
        extracted: ExtractionResult,
        weather_forecast: Optional[List[WeatherDay]] = None,
    ) -> ValidationResult:
        """
        Filter and normalize an extraction result.

        - Events with fewer than `min_required_fields` real values are rejected
          (logged, never raised)
        - Categories with no surviving events are dropped
        - Blank planning tips are dropped; weather tips are appended when a
          forecast is given
        """
        rejected: List[Event] = []
        warnings: List[str] = []
        categories: List[Category] = []

        for category in extracted.categories:
            kept = []
            for event in category.events:
                if self.is_valid_event(event):
                    kept.append(self.normalize_event(event))
                else:
                    rejected.append(event)
                    logger.warning(
                        f"Filtered out event with insufficient data: {event.name or 'Unnamed event'} "
                        f"({category.name})"
                    )
            if kept:
                categories.append(Category(name=category.name, events=kept))
            elif category.events:
                warnings.append(f"Category '{category.name}' dropped: no valid events")

        planning_tips = [tip.strip() for tip in extracted.planning_tips if tip and tip.strip()]
        if weather_forecast is not None:
            planning_tips.extend(weather_planning_tips(weather_forecast))

        if rejected:
            warnings.append(f"Rejected {len(rejected)} events with fewer than "
                            f"{self.config.min_required_fields} required fields")

        return ValidationResult(
            result=ExtractionResult(categories=categories, planning_tips=planning_tips),
            rejected=rejected,
            warnings=warnings,
        )
