"""
Text generation collaborator backed by Google Gemini.
Returns free-form text for a prompt, or raises GenerationError.
"""
import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

from google import genai
from google.genai import types

from .errors import GenerationError
from .prompts import SYSTEM_INSTRUCTION

logger = logging.getLogger(__name__)

# Retry configuration for transient provider errors (503, 429, etc.)
MAX_TRANSIENT_RETRIES = 3
INITIAL_BACKOFF = 2  # seconds


class TextGenerator(ABC):
    """Anything that turns a prompt into free-form text."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return the generated text or raise GenerationError."""


def _is_transient(error: Exception) -> bool:
    error_str = str(error)
    return (
        "503" in error_str
        or "429" in error_str
        or "UNAVAILABLE" in error_str
        or "overloaded" in error_str.lower()
    )


class GenAITextGenerator(TextGenerator):
    """Generate newsletter text using Google Gemini."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.5-flash",
        timeout_seconds: Optional[float] = None,
        temperature: float = 0.7,
    ):
        http_options = None
        if timeout_seconds:
            http_options = types.HttpOptions(timeout=int(timeout_seconds * 1000))
        self.client = genai.Client(api_key=api_key, http_options=http_options)
        self.model_name = model_name
        self.temperature = temperature

    def _call_with_retry(self, config: types.GenerateContentConfig, prompt: str):
        """Call the model, backing off on overloaded/rate-limited responses only."""
        for attempt in range(MAX_TRANSIENT_RETRIES):
            try:
                return self.client.models.generate_content(
                    model=self.model_name,
                    contents=prompt,
                    config=config
                )
            except Exception as e:
                if _is_transient(e) and attempt < MAX_TRANSIENT_RETRIES - 1:
                    wait_time = INITIAL_BACKOFF * (2 ** attempt)
                    logger.warning(
                        f"Generation hit a transient error, retrying in {wait_time}s "
                        f"(attempt {attempt + 1}/{MAX_TRANSIENT_RETRIES}): {e}"
                    )
                    time.sleep(wait_time)
                    continue
                raise

    def generate(self, prompt: str) -> str:
        config = types.GenerateContentConfig(
            system_instruction=SYSTEM_INSTRUCTION,
            temperature=self.temperature,
            max_output_tokens=4096,
        )
        try:
            response = self._call_with_retry(config, prompt)
        except Exception as e:
            logger.error(f"Error calling Gemini API: {e}")
            raise GenerationError(f"Failed to get response from text generator: {e}") from e

        if response.usage_metadata:
            logger.debug(
                f"Generation usage: input={response.usage_metadata.prompt_token_count} "
                f"output={response.usage_metadata.candidates_token_count}"
            )
        return response.text or ""
