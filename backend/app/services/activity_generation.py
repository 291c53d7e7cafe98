"""
Generation-Retry Controller.

Drives prompt -> generate -> parse -> validate for one week:

    IDLE -> PROMPTING -> AWAITING_RESPONSE -> PARSING -> VALIDATING
         -> ACCEPTED | RETRYING (back to PROMPTING) | FAILED

Only insufficient yield is retried, with a stricter prompt each time.
Transport failures (including the per-attempt timeout) fail immediately.
Attempts run strictly one after another. Diagnostics are emitted through
observers, which never influence control flow.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from backend.app.schemas.activities import Event, ExtractionResult
from .activity_parser import ActivityParser
from .activity_validator import ActivityValidator, ValidationResult
from .date_range import DateRange
from .errors import GenerationError, InsufficientDataError
from .extraction_config import ExtractionConfig
from .genai_generator import TextGenerator
from .prompts import build_newsletter_prompt

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 2
DEFAULT_MIN_VALID_EVENTS = 3
DEFAULT_TIMEOUT_SECONDS = 45.0
RAW_EXCERPT_CHARS = 500


class GenerationState(str, Enum):
    IDLE = "idle"
    PROMPTING = "prompting"
    AWAITING_RESPONSE = "awaiting_response"
    PARSING = "parsing"
    VALIDATING = "validating"
    ACCEPTED = "accepted"
    RETRYING = "retrying"
    FAILED = "failed"


TERMINAL_STATES = {GenerationState.ACCEPTED, GenerationState.FAILED}


@dataclass
class Transition:
    state: GenerationState
    attempt: int
    detail: Dict[str, Any] = field(default_factory=dict)


Observer = Callable[[Transition], None]


@dataclass
class GenerationOutcome:
    """Accepted result of a generation run."""
    result: ExtractionResult
    raw_response: str
    attempts: int
    rejected: List[Event] = field(default_factory=list)


def log_transition(transition: Transition) -> None:
    """Default observer: write each transition to the module logger."""
    state = transition.state
    detail = transition.detail
    attempt = transition.attempt + 1

    if state == GenerationState.PROMPTING:
        logger.debug(f"Attempt {attempt}: prompt built ({len(detail.get('prompt', ''))} chars)")
    elif state == GenerationState.VALIDATING:
        rejected = detail.get("rejected") or []
        if rejected:
            names = ", ".join(event.name for event in rejected)
            logger.warning(f"Attempt {attempt}: rejected {len(rejected)} events: {names}")
    elif state == GenerationState.RETRYING:
        logger.warning(
            f"Only found {detail.get('valid_events')} valid events on attempt {attempt}. Retrying..."
        )
    elif state == GenerationState.ACCEPTED:
        logger.info(f"Accepted {detail.get('valid_events')} valid events after {attempt} attempt(s)")
    elif state == GenerationState.FAILED:
        logger.error(f"Generation failed on attempt {attempt}: {detail.get('error')}")
        raw = detail.get("raw_response")
        if raw:
            logger.error(f"Raw response excerpt: {raw[:RAW_EXCERPT_CHARS]}")
        if detail.get("prompt"):
            logger.debug(f"Last prompt: {detail['prompt']}")


class GenerationRetryController:
    """Run the generation loop for one date range."""

    def __init__(
        self,
        generator: TextGenerator,
        city: str,
        config: Optional[ExtractionConfig] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        min_valid_events: int = DEFAULT_MIN_VALID_EVENTS,
        timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
        observers: Optional[List[Observer]] = None,
    ):
        self.generator = generator
        self.city = city
        self.config = config or ExtractionConfig()
        self.parser = ActivityParser(self.config)
        self.validator = ActivityValidator(self.config)
        self.max_retries = max_retries
        self.min_valid_events = min_valid_events
        self.timeout_seconds = timeout_seconds
        self.observers = observers if observers is not None else [log_transition]
        self.state = GenerationState.IDLE
        self.history: List[GenerationState] = [GenerationState.IDLE]

    def _transition(self, state: GenerationState, attempt: int, **detail) -> None:
        self.state = state
        self.history.append(state)
        transition = Transition(state=state, attempt=attempt, detail=detail)
        for observer in self.observers:
            try:
                observer(transition)
            except Exception as e:
                logger.warning(f"Generation observer failed: {e}")

    async def _generate(self, prompt: str) -> str:
        call = asyncio.to_thread(self.generator.generate, prompt)
        try:
            if self.timeout_seconds:
                return await asyncio.wait_for(call, timeout=self.timeout_seconds)
            return await call
        except asyncio.TimeoutError as e:
            raise GenerationError(f"Text generation timed out after {self.timeout_seconds}s") from e
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"Text generation failed: {e}") from e

    async def run(self, date_range: DateRange) -> GenerationOutcome:
        attempt = 0
        while True:
            prompt = build_newsletter_prompt(date_range, self.city, retry_attempt=attempt)
            self._transition(GenerationState.PROMPTING, attempt, prompt=prompt)

            self._transition(GenerationState.AWAITING_RESPONSE, attempt)
            try:
                raw_response = await self._generate(prompt)
            except GenerationError as e:
                self._transition(GenerationState.FAILED, attempt, error=str(e), prompt=prompt)
                raise

            self._transition(GenerationState.PARSING, attempt, raw_length=len(raw_response))
            extracted = self.parser.extract_activities(raw_response)

            validation: ValidationResult = self.validator.validate(extracted)
            valid_events = validation.total_events
            self._transition(
                GenerationState.VALIDATING,
                attempt,
                valid_events=valid_events,
                rejected=validation.rejected,
                warnings=validation.warnings,
            )

            if valid_events >= self.min_valid_events:
                self._transition(GenerationState.ACCEPTED, attempt, valid_events=valid_events)
                return GenerationOutcome(
                    result=validation.result,
                    raw_response=raw_response,
                    attempts=attempt + 1,
                    rejected=validation.rejected,
                )

            if attempt < self.max_retries:
                self._transition(GenerationState.RETRYING, attempt, valid_events=valid_events)
                attempt += 1
                continue

            message = (
                f"Only {valid_events} valid events after {attempt + 1} attempts "
                f"(need {self.min_valid_events})"
            )
            self._transition(
                GenerationState.FAILED,
                attempt,
                error=message,
                prompt=prompt,
                raw_response=raw_response,
            )
            raise InsufficientDataError(
                message,
                partial=validation.result,
                raw_response=raw_response,
                rejected=validation.rejected,
                attempts=attempt + 1,
            )


async def run_with_retry(
    date_range: DateRange,
    generator: TextGenerator,
    city: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    config: Optional[ExtractionConfig] = None,
    min_valid_events: int = DEFAULT_MIN_VALID_EVENTS,
    timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
) -> GenerationOutcome:
    """Generate, parse and validate a week's activities; raise on terminal failure."""
    controller = GenerationRetryController(
        generator,
        city=city,
        config=config,
        max_retries=max_retries,
        min_valid_events=min_valid_events,
        timeout_seconds=timeout_seconds,
    )
    return await controller.run(date_range)
