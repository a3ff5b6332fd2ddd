"""
Gemini API access and the retry policy around it.

GeminiClient makes single calls; with_retries() wraps any call with
exponential backoff and turns a permanent failure into a GenerationError
carrying a message fit for the learner.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, TypeVar

from google import genai
from google.genai import types as genai_types

from tutorlab.config import DEFAULT_MODEL, DEFAULT_TEMPERATURE, MAX_RETRIES, RETRY_BASE_DELAY
from tutorlab.schemas import Source

from .decoder import DecodeError

logger = logging.getLogger(__name__)

INVALID_RESPONSE_MESSAGE = "The AI returned an invalid response. Please try again."
UNAVAILABLE_MESSAGE = "The AI service could not be reached. Please try again."

T = TypeVar("T")


class GenerationError(RuntimeError):
    """A generation failed permanently; the message is shown to the learner."""


@dataclass
class GenerationResult:
    text: str
    sources: list[Source] = field(default_factory=list)


@dataclass
class StreamChunk:
    text: str
    sources: list[Source] = field(default_factory=list)


def extract_sources(response: Any) -> list[Source]:
    """Grounding citations (web uri + title) of the first candidate."""
    candidates = getattr(response, "candidates", None)
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) if metadata else None
    if not chunks:
        return []

    sources = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web is not None and web.uri and web.title:
            sources.append(Source(uri=web.uri, title=web.title))
    return sources


def _response_text(response: Any) -> str:
    if response.text is not None:
        return response.text
    if response.candidates and len(response.candidates) > 0:
        candidate = response.candidates[0]
        if candidate.content and candidate.content.parts:
            return candidate.content.parts[0].text or ""
    raise DecodeError("Empty response from API", raw_text="")


def with_retries(
    fn: Callable[[], T],
    retries: int = MAX_RETRIES,
    base_delay: float = RETRY_BASE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call fn, retrying failures with exponential backoff.

    Args:
        fn: Zero-argument callable
        retries: Retries after the first attempt
        base_delay: Seconds before the first retry; doubled for each next one
        sleep: Sleep function (injectable for tests)

    Raises:
        GenerationError: After the last retry failed
    """
    delay = base_delay
    for attempt in range(retries + 1):
        try:
            return fn()
        except Exception as e:
            if attempt < retries:
                logger.warning(f"AI call failed (attempt {attempt + 1}/{retries + 1}), retrying in {delay}s: {e}")
                sleep(delay)
                delay *= 2
                continue
            logger.error(f"AI call failed after {retries + 1} attempts: {e}")
            message = INVALID_RESPONSE_MESSAGE if isinstance(e, DecodeError) else UNAVAILABLE_MESSAGE
            raise GenerationError(message) from e


class GeminiClient:
    """Wrapper for the Gemini API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
    ):
        self.api_key = api_key or os.environ.get("GEMINI_API_KEY")
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY not set. Check your .env file.")

        self.client = genai.Client(api_key=self.api_key)
        self.temperature = temperature
        self.model_name = model

    def _config(
        self,
        use_search: bool,
        json_output: bool,
        temperature: Optional[float],
    ) -> genai_types.GenerateContentConfig:
        kwargs: dict[str, Any] = {
            "temperature": self.temperature if temperature is None else temperature,
        }
        # Search grounding and JSON mime type can't be combined
        if use_search:
            kwargs["tools"] = [genai_types.Tool(google_search=genai_types.GoogleSearch())]
        elif json_output:
            kwargs["response_mime_type"] = "application/json"
        return genai_types.GenerateContentConfig(**kwargs)

    def generate(
        self,
        prompt: str,
        use_search: bool = False,
        json_output: bool = True,
        temperature: Optional[float] = None,
    ) -> GenerationResult:
        """Single generate_content call; returns text plus grounding sources."""
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=prompt,
            config=self._config(use_search, json_output, temperature),
        )
        return GenerationResult(text=_response_text(response), sources=extract_sources(response))

    def generate_stream(
        self,
        prompt: str,
        use_search: bool = True,
        temperature: Optional[float] = None,
    ) -> Iterator[StreamChunk]:
        """Stream text chunks as the model produces them."""
        stream = self.client.models.generate_content_stream(
            model=self.model_name,
            contents=prompt,
            config=self._config(use_search, json_output=False, temperature=temperature),
        )
        for response in stream:
            yield StreamChunk(text=response.text or "", sources=extract_sources(response))
