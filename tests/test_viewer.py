"""HTML renderer and text helper tests."""

from tutorlab.classroom import KnowledgeTracker, LessonResult
from tutorlab.schemas import LearningSlide, Source
from tutorlab.utils import highlighted_terms, is_math_topic, split_highlights, strip_highlights
from tutorlab.viewer import (
    format_brain_map,
    get_lesson_css,
    render_brain_map,
    render_hearts,
    render_highlighted_text,
    render_lesson_summary,
    render_question_feedback,
    render_section_overview,
    render_slide,
)

from conftest import make_mc, make_section


class TestTextHelpers:
    """Test [[term]] handling and topic detection."""

    def test_split_highlights(self):
        assert split_highlights("A [[cell]] divides") == [("A ", False), ("cell", True), (" divides", False)]
        assert split_highlights("") == []

    def test_terms_and_strip(self):
        text = "[[DNA]] holds [[genes]]."
        assert highlighted_terms(text) == ["DNA", "genes"]
        assert strip_highlights(text) == "DNA holds genes."

    def test_is_math_topic(self):
        assert is_math_topic("Intro to Linear Algebra")
        assert not is_math_topic("The French Revolution")


class TestLessonViewer:
    """Test lesson HTML fragments."""

    def test_highlighted_text_escapes(self):
        html = render_highlighted_text("<b>x</b> and [[key]]\nnext")
        assert "&lt;b&gt;" in html
        assert '<span class="key-term">key</span>' in html
        assert "<br>" in html

    def test_slide_counter(self):
        slide = LearningSlide(title="Cells", content="Small", visual_aid_description="A cell")
        html = render_slide(slide, index=0, total=3)
        assert "Cells (1/3)" in html
        assert "visual-aid" in html

    def test_hearts(self):
        assert render_hearts(3, 5).count("❤️") == 3
        assert render_hearts(3, 5).count("🤍") == 2
        assert render_hearts(-1, 5).count("🤍") == 6

    def test_question_feedback(self):
        question = make_mc()
        assert "feedback-correct" in render_question_feedback(question, True)
        wrong = render_question_feedback(question, False)
        assert "<strong>Paris</strong>" in wrong
        assert '<span class="key-term">Paris</span>' in wrong

    def test_section_overview_with_sources(self):
        section = make_section().model_copy(update={
            "key_points": ["[[Paris]] is big"],
            "sources": [Source(uri="https://a.example/?q=1&r=2", title="A")],
        })
        html = render_section_overview(section)
        assert "Key Points" in html
        assert "https://a.example/?q=1&amp;r=2" in html

    def test_lesson_summary(self):
        result = LessonResult(
            score=7, total_questions=7, percentage=100, passed=True,
            perfect_health=True, bonus=50, points=120,
        )
        html = render_lesson_summary(result)
        assert "🏆 100%" in html
        assert "+50" in html
        assert "120 points" in html

    def test_dark_theme_css(self):
        assert get_lesson_css("dark") != get_lesson_css("light")


class TestBrainMapViewer:
    def test_empty(self):
        groups = KnowledgeTracker().brain_map()
        assert "No concepts tracked yet" in render_brain_map(groups)
        assert format_brain_map(groups) == "No concepts tracked yet."

    def test_groups_rendered(self):
        tracker = KnowledgeTracker()
        tracker.update("<Cells>", True)
        tracker.update("Atoms", False)
        tracker.update("Atoms", False)
        html = render_brain_map(tracker.brain_map())
        assert "&lt;Cells&gt;" in html
        assert "Needs Review (1)" in html
        assert "width:20%" in html
        text = format_brain_map(tracker.brain_map())
        assert text.index("Needs Review") < text.index("Learning")
