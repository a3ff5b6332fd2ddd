"""
Text helpers shared by the lesson flow and the renderers.

[[term]] markers in slide content delimit highlighted key terms.
"""

import re

HIGHLIGHT_PATTERN = re.compile(r"(\[\[.*?\]\])")

MATH_KEYWORDS = (
    "algebra",
    "geometry",
    "calculus",
    "math",
    "equation",
    "graph",
    "trigonometry",
    "statistics",
    "arithmetic",
    "derivative",
    "integral",
    "vector",
    "matrix",
)

WORD_PATTERN = re.compile(r"[a-z0-9]+")


def split_highlights(text: str) -> list[tuple[str, bool]]:
    """
    Split text into (fragment, is_highlighted) pairs.

    >>> split_highlights("A [[cell]] divides")
    [('A ', False), ('cell', True), (' divides', False)]
    """
    if not text:
        return []
    parts = []
    for part in HIGHLIGHT_PATTERN.split(text):
        if not part:
            continue
        if part.startswith("[[") and part.endswith("]]"):
            parts.append((part[2:-2], True))
        else:
            parts.append((part, False))
    return parts


def highlighted_terms(text: str) -> list[str]:
    """Key terms marked with [[...]] in order of appearance."""
    return [fragment for fragment, highlighted in split_highlights(text) if highlighted]


def strip_highlights(text: str) -> str:
    return "".join(fragment for fragment, _ in split_highlights(text))


def is_math_topic(title: str) -> bool:
    lower_title = title.lower()
    return any(keyword in lower_title for keyword in MATH_KEYWORDS)


def significant_words(text: str, min_length: int = 4) -> set[str]:
    """Lower-cased words of at least min_length characters."""
    return {w for w in WORD_PATTERN.findall(text.lower()) if len(w) >= min_length}


def truncate_source(text: str, limit: int) -> str:
    return text[:limit]


def normalize_answer(answer: str) -> str:
    return answer.strip().lower()
