"""
Decoding of model output into JSON and pydantic models.

Model text may be bare JSON, JSON inside a ```json fenced block, or JSON
surrounded by prose. Extraction is a heuristic: the fenced block wins,
otherwise the span from the first opening brace/bracket to the last
matching closing character is taken. Nested braces in surrounding prose
can defeat it; that limitation is accepted.
"""

import codecs
import json
import logging
import re
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from tutorlab.config import ARTICLE_JSON_SEPARATOR

logger = logging.getLogger(__name__)

FENCED_JSON_PATTERN = re.compile(r"```(?:json)?\n([\s\S]*?)\n```")

ModelT = TypeVar("ModelT", bound=BaseModel)


class DecodeError(ValueError):
    """Model output could not be turned into the expected data."""

    def __init__(self, message: str, raw_text: str):
        super().__init__(message)
        self.raw_text = raw_text


def extract_json_text(raw: str) -> str:
    """
    Cut the JSON payload out of raw model text.

    >>> extract_json_text('noise{"a": 1}trailing')
    '{"a": 1}'
    """
    text = raw.strip()

    match = FENCED_JSON_PATTERN.search(text)
    if match and match.group(1):
        return match.group(1).strip()

    first_brace = text.find("{")
    last_brace = text.rfind("}")
    first_bracket = text.find("[")
    last_bracket = text.rfind("]")

    if first_brace != -1 and last_brace > first_brace and (first_bracket == -1 or first_brace < first_bracket):
        return text[first_brace:last_brace + 1]
    if first_bracket != -1 and last_bracket > first_bracket:
        return text[first_bracket:last_bracket + 1]
    return text


def decode_json(raw: str) -> Any:
    """Parse the JSON payload of raw model text, raising DecodeError on failure."""
    if raw is None:
        raise DecodeError("Empty response from model", raw_text="")
    try:
        return json.loads(extract_json_text(raw))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON response: {e}")
        raise DecodeError(f"Could not parse JSON from response: {e}", raw_text=raw) from e


def decode_model(raw: str, model_cls: Type[ModelT]) -> ModelT:
    """Parse and validate raw model text into model_cls."""
    data = decode_json(raw)
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        logger.error(f"Response does not match {model_cls.__name__}: {e.error_count()} errors")
        raise DecodeError(f"Response does not match {model_cls.__name__}: {e}", raw_text=raw) from e


class StreamSplitter:
    """
    Route streamed text into a prose part and a trailing JSON part.

    Everything before the first delimiter is prose, everything after it is
    JSON. A chunk ending in the first characters of the delimiter is held
    back until the next chunk shows whether the delimiter completes. Byte
    chunks are decoded incrementally, so a multi-byte character split
    across chunks is reassembled; invalid or truncated bytes become U+FFFD.
    """

    def __init__(self, delimiter: str = ARTICLE_JSON_SEPARATOR):
        if not delimiter:
            raise ValueError("Delimiter must not be empty")
        self.delimiter = delimiter
        self.found = False
        self._prose: list[str] = []
        self._json: list[str] = []
        self._pending = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def prose(self) -> str:
        return "".join(self._prose)

    @property
    def json_text(self) -> str:
        return "".join(self._json)

    def feed(self, chunk) -> str:
        """
        Consume one chunk.

        Returns:
            Prose text that became final with this chunk (may be empty)
        """
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        if not chunk:
            return ""

        if self.found:
            self._json.append(chunk)
            return ""

        text = self._pending + chunk
        self._pending = ""
        index = text.find(self.delimiter)
        if index != -1:
            prose = text[:index]
            self._json.append(text[index + len(self.delimiter):])
            self.found = True
        else:
            keep = self._partial_delimiter_length(text)
            prose = text[:len(text) - keep]
            self._pending = text[len(text) - keep:]

        if prose:
            self._prose.append(prose)
        return prose

    def close(self) -> str:
        """Flush held-back text; returns any prose released by the flush."""
        released = ""
        tail = self._decoder.decode(b"", final=True)
        if tail:
            released = self.feed(tail)
        if self._pending:
            self._prose.append(self._pending)
            released += self._pending
            self._pending = ""
        return released

    def _partial_delimiter_length(self, text: str) -> int:
        for size in range(min(len(text), len(self.delimiter) - 1), 0, -1):
            if self.delimiter.startswith(text[-size:]):
                return size
        return 0
