"""
Error taxonomy for the weekly activities pipeline.
"""
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from backend.app.schemas.activities import Event, ExtractionResult


class ActivitiesError(Exception):
    """Base class for pipeline failures."""


class GenerationError(ActivitiesError):
    """The text-generation call failed outright (network, auth, timeout)."""


class SourceError(ActivitiesError):
    """A structured API source failed. Always degraded to an empty contribution."""


class InsufficientDataError(ActivitiesError):
    """Too few valid events after every generation attempt."""

    def __init__(
        self,
        message: str,
        partial: Optional["ExtractionResult"] = None,
        raw_response: str = "",
        rejected: Optional[List["Event"]] = None,
        attempts: int = 0,
    ):
        super().__init__(message)
        self.partial = partial
        self.raw_response = raw_response
        self.rejected = rejected or []
        self.attempts = attempts
