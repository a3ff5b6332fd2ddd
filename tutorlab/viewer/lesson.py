"""
Lesson renderer - Generate HTML for lesson display.

Features:
- [[term]] highlights rendered as hover-reveal key terms
- Learning slide and section overview cards
- Answer feedback, hearts and the end-of-lesson summary
"""

from typing import Optional
import html

from tutorlab.classroom.session import LessonResult
from tutorlab.schemas import LearningSlide, Question, Section, Source
from tutorlab.utils.text import split_highlights


def get_lesson_css(theme: str = "light") -> str:
    """Get CSS styles for lesson display."""
    card_background = "#1e293b" if theme == "dark" else "#ffffff"
    text_color = "#e2e8f0" if theme == "dark" else "#1e293b"
    return f"""
    <style>
    .slide-card {{
        background: {card_background};
        color: {text_color};
        border-radius: 16px;
        padding: 1.5em;
        margin: 1em 0;
        box-shadow: 0 2px 8px rgba(0,0,0,0.08);
    }}
    .slide-title {{
        font-size: 1.4em;
        font-weight: 700;
        color: #2563eb;
        margin-bottom: 0.6em;
    }}
    .slide-content {{
        font-size: 1.1em;
        line-height: 1.7em;
    }}
    .key-term {{
        background-color: rgba(59, 130, 246, 0.15);
        color: #1d4ed8;
        font-weight: 600;
        border-radius: 4px;
        padding: 0 3px;
    }}
    .visual-aid {{
        margin-top: 1em;
        padding: 0.8em 1em;
        border-left: 4px solid #a855f7;
        background: rgba(168, 85, 247, 0.08);
        font-style: italic;
    }}
    .feedback-correct {{
        background: #dcfce7;
        border-left: 4px solid #16a34a;
        padding: 0.8em 1em;
        border-radius: 0 8px 8px 0;
    }}
    .feedback-incorrect {{
        background: #fee2e2;
        border-left: 4px solid #dc2626;
        padding: 0.8em 1em;
        border-radius: 0 8px 8px 0;
    }}
    .hearts {{
        font-size: 1.3em;
        letter-spacing: 2px;
    }}
    .summary-box {{
        text-align: center;
        padding: 1.5em;
        border-radius: 16px;
        background: linear-gradient(135deg, #e0f2fe 0%, #f3e8ff 100%);
        color: #1e293b;
    }}
    .summary-score {{
        font-size: 2.4em;
        font-weight: 800;
    }}
    .sources-list {{
        font-size: 0.9em;
        color: #64748b;
    }}
    </style>
    """


def render_highlighted_text(text: str) -> str:
    """
    Escape text and wrap [[term]] markers in key-term spans.

    Newlines become <br>.
    """
    parts = []
    for fragment, highlighted in split_highlights(text):
        escaped = html.escape(fragment).replace("\n", "<br>")
        if highlighted:
            parts.append(f'<span class="key-term">{escaped}</span>')
        else:
            parts.append(escaped)
    return "".join(parts)


def render_slide(slide: LearningSlide, index: Optional[int] = None, total: Optional[int] = None) -> str:
    """Render one learning slide card."""
    counter = f" ({index + 1}/{total})" if index is not None and total else ""
    parts = ['<div class="slide-card">']
    parts.append(f'<div class="slide-title">{html.escape(slide.title)}{counter}</div>')
    parts.append(f'<div class="slide-content">{render_highlighted_text(slide.content)}</div>')
    if slide.visual_aid_description:
        parts.append(f'<div class="visual-aid">🖼️ {html.escape(slide.visual_aid_description)}</div>')
    parts.append('</div>')
    return ''.join(parts)


def render_hearts(hearts: int, initial_hearts: int) -> str:
    full = "❤️" * max(0, hearts)
    empty = "🤍" * max(0, initial_hearts - hearts)
    return f'<div class="hearts">{full}{empty}</div>'


def render_question_feedback(question: Question, is_correct: bool) -> str:
    """Render the feedback box shown after a question is answered."""
    if is_correct:
        header = "✅ Correct!"
        css_class = "feedback-correct"
    else:
        header = f"❌ Not quite. The answer is <strong>{html.escape(question.correct_answer)}</strong>."
        css_class = "feedback-incorrect"

    explanation = render_highlighted_text(question.explanation) if question.explanation else ""
    return f'<div class="{css_class}"><p>{header}</p><p>{explanation}</p></div>'


def render_sources(sources: list[Source]) -> str:
    if not sources:
        return ""
    items = ''.join(
        f'<li><a href="{html.escape(source.uri, quote=True)}" target="_blank">{html.escape(source.title)}</a></li>'
        for source in sources
    )
    return f'<div class="sources-list"><strong>Sources:</strong><ul>{items}</ul></div>'


def render_section_overview(section: Section) -> str:
    """Render summary, key points and bias analysis of a section."""
    parts = []
    if section.summary:
        parts.append(f'<p style="font-style:italic;">{html.escape(section.summary)}</p>')

    if section.key_points:
        parts.append('<p><strong>Key Points:</strong></p><ul>')
        for point in section.key_points:
            parts.append(f'<li>{render_highlighted_text(point)}</li>')
        parts.append('</ul>')

    if section.bias_analysis:
        parts.append(f'<p><strong>Bias Analysis:</strong> {html.escape(section.bias_analysis)}</p>')

    parts.append(render_sources(section.sources))
    return ''.join(parts)


def render_lesson_summary(result: LessonResult) -> str:
    """Render the end-of-lesson score box."""
    emoji = "🏆" if result.percentage == 100 else ("🎉" if result.passed else "💪")
    parts = ['<div class="summary-box">']
    parts.append(f'<div class="summary-score">{emoji} {result.percentage}%</div>')
    parts.append(f'<p>{html.escape(result.message)}</p>')
    parts.append(f'<p>{result.score} of {result.total_questions} questions correct</p>')
    if result.bonus:
        parts.append(f'<p>❤️ Perfect health bonus: +{result.bonus}</p>')
    parts.append(f'<p><strong>{result.points} points</strong></p>')
    parts.append('</div>')
    return ''.join(parts)
