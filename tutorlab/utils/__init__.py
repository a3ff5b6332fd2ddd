"""TutorLab utilities."""

from .prompt_loader import load_prompt, format_prompt, render_prompt, get_available_prompts
from .text import (
    split_highlights,
    highlighted_terms,
    strip_highlights,
    is_math_topic,
    significant_words,
    truncate_source,
    normalize_answer,
)

__all__ = [
    "load_prompt",
    "format_prompt",
    "render_prompt",
    "get_available_prompts",
    "split_highlights",
    "highlighted_terms",
    "strip_highlights",
    "is_math_topic",
    "significant_words",
    "truncate_source",
    "normalize_answer",
]
