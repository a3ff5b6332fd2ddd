"""
TutorLab Viewer - Rendering components for lesson display.

This module provides:
- Slide, feedback and summary rendering with [[term]] highlights
- Brain map rendering (HTML and plain text)
"""

from .lesson import (
    get_lesson_css,
    render_highlighted_text,
    render_slide,
    render_hearts,
    render_question_feedback,
    render_sources,
    render_section_overview,
    render_lesson_summary,
)

from .knowledge import (
    get_brain_map_css,
    render_brain_map,
    format_brain_map,
    GROUP_LABELS,
)

__all__ = [
    # Lesson rendering
    "get_lesson_css",
    "render_highlighted_text",
    "render_slide",
    "render_hearts",
    "render_question_feedback",
    "render_sources",
    "render_section_overview",
    "render_lesson_summary",
    # Brain map
    "get_brain_map_css",
    "render_brain_map",
    "format_brain_map",
    "GROUP_LABELS",
]
