"""Content generation through the Gemini API."""

from .decoder import DecodeError, extract_json_text, decode_json, decode_model, StreamSplitter
from .client import GeminiClient, GenerationError, GenerationResult, StreamChunk, with_retries
from .guard import RequestGenerations, RequestTicket
from .service import TutorService, ArticleStream, SourceFileError

__all__ = [
    "DecodeError",
    "extract_json_text",
    "decode_json",
    "decode_model",
    "StreamSplitter",
    "GeminiClient",
    "GenerationError",
    "GenerationResult",
    "StreamChunk",
    "with_retries",
    "RequestGenerations",
    "RequestTicket",
    "TutorService",
    "ArticleStream",
    "SourceFileError",
]
