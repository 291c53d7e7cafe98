"""
Extraction options shared by the parser and the validator.

Sentinels are the strings written into fields that could not be extracted.
One convention is used everywhere: "TBD" for the required fields and for the
ticket price, an empty ticket link, and a fixed phrase for the description.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class Sentinels:
    date: str = "TBD"
    time: str = "TBD"
    venue: str = "TBD"
    ticket_price: str = "TBD"
    ticket_link: str = ""
    description: str = "No description available."


# Placeholder values a generator may write on its own; never count as present.
DEFAULT_PLACEHOLDERS = frozenset({
    "tbd",
    "tba",
    "n/a",
    "date not specified",
    "time not specified",
    "venue not specified",
    "date tbd",
    "time tbd",
    "venue tbd",
    "price tbd",
    "price not specified",
    "link not specified",
    "description not specified",
    "no description available",
    "no description available.",
})


@dataclass(frozen=True)
class ExtractionConfig:
    sentinels: Sentinels = field(default_factory=Sentinels)
    min_required_fields: int = 3
    # Label for sections whose heading matches no known category.
    # None keeps the drop-and-log behavior.
    unclassified_label: Optional[str] = None
    placeholders: FrozenSet[str] = DEFAULT_PLACEHOLDERS

    @classmethod
    def from_settings(cls, settings) -> "ExtractionConfig":
        return cls(
            min_required_fields=settings.MIN_REQUIRED_FIELDS,
            unclassified_label=settings.UNCLASSIFIED_SECTION_LABEL or None,
        )

    def is_placeholder(self, value: Optional[str], sentinel: str = "") -> bool:
        if value is None:
            return True
        text = value.strip()
        if not text:
            return True
        if sentinel and text == sentinel:
            return True
        return text.lower() in self.placeholders
