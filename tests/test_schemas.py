"""
Schema validation tests for TutorLab.

Tests the Pydantic models to ensure they validate correctly.
"""

import pytest
from datetime import datetime
from pydantic import TypeAdapter, ValidationError

from tutorlab.schemas import (
    # Lesson
    Difficulty,
    QuestionType,
    LearningSlide,
    MathInitialState,
    Question,
    TeachingPrompt,
    Section,
    # Curriculum
    Chapter,
    Curriculum,
    ModuleList,
    # Knowledge
    KnowledgeStatus,
    KnowledgeItem,
    # Progress
    CurriculumHistoryItem,
    LessonHistoryItem,
    HistoryItem,
    NavigatorSnapshot,
    QueueItem,
    # Responses
    FeedItems,
    ExplanationVerdict,
)

from conftest import make_mc, make_prompt, make_section


class TestLessonSchemas:
    """Test lesson-related schemas."""

    def test_question_from_wire_json(self):
        q = Question.model_validate({
            "question_text": "2 + 2 = ?",
            "question_type": "math-interaction",
            "interaction_type": "calculation-pad",
            "initial_state": {"expression": "2 + 2"},
            "correct_answer": "4",
            "related_slide_index": 0,
        })
        assert q.question_type == QuestionType.MATH_INTERACTION
        assert q.initial_state.expression == "2 + 2"
        assert q.options == []

    def test_question_missing_answer(self):
        with pytest.raises(ValidationError):
            Question(
                question_text="?",
                question_type="multiple-choice",
                related_slide_index=0,
            )

    def test_negative_slide_index_rejected(self):
        with pytest.raises(ValidationError):
            TeachingPrompt(prompt_text="Explain", related_slide_index=-1)

    def test_unknown_question_type(self):
        with pytest.raises(ValidationError):
            Question(
                question_text="?",
                question_type="essay",
                correct_answer="x",
                related_slide_index=0,
            )

    def test_math_state_geometric_task(self):
        state = MathInitialState(
            geometric_task="MEASURE_ANGLE",
            initial_objects=[{"type": "point", "id": "A", "x": 0, "y": 0}],
        )
        assert state.initial_objects[0].id == "A"

        with pytest.raises(ValidationError):
            MathInitialState(geometric_task="DRAW")


class TestSectionSchema:
    """Test slide back-reference validation."""

    def test_valid_section(self):
        section = make_section(questions=[make_mc(slide=1)], prompts=[make_prompt(slide=0)])
        assert len(section.learning_material) == 2
        assert section.related_slide(section.questions[0]).title == "Chlorophyll"

    def test_question_points_past_last_slide(self):
        with pytest.raises(ValidationError, match="related_slide_index"):
            make_section(questions=[make_mc(slide=2)])

    def test_prompt_points_past_last_slide(self):
        with pytest.raises(ValidationError):
            make_section(prompts=[make_prompt(slide=5)])

    def test_section_without_slides_skips_check(self):
        section = make_section(slides=[], questions=[make_mc(slide=3)])
        assert section.related_slide(section.questions[0]) is None


class TestCurriculumSchemas:
    """Test curriculum-related schemas."""

    def test_chapter_requires_sections(self):
        with pytest.raises(ValidationError):
            Chapter(title="Empty", sections=[])

    def test_curriculum_requires_chapters(self):
        with pytest.raises(ValidationError):
            Curriculum(title="Empty", chapters=[])

    def test_section_count(self):
        curriculum = Curriculum(
            title="Course",
            chapters=[
                Chapter(title="A", sections=[make_section("a1"), make_section("a2")]),
                Chapter(title="B", sections=[make_section("b1")]),
            ],
        )
        assert curriculum.section_count == 3

    def test_module_list_requires_modules(self):
        with pytest.raises(ValidationError):
            ModuleList(modules=[])


class TestKnowledgeSchemas:
    """Test knowledge item bounds."""

    def test_defaults(self):
        item = KnowledgeItem(id="Photosynthesis")
        assert item.status == KnowledgeStatus.NEW
        assert item.strength == 0
        assert item.failure_count == 0

    def test_strength_bounds(self):
        with pytest.raises(ValidationError):
            KnowledgeItem(id="x", strength=101)
        with pytest.raises(ValidationError):
            KnowledgeItem(id="x", strength=-1)


class TestProgressSchemas:
    """Test history union, snapshots and queue items."""

    def test_history_union_dispatches_on_type(self):
        adapter = TypeAdapter(list[HistoryItem])
        now = datetime(2024, 1, 1)
        items = adapter.validate_python([
            {
                "type": "lesson",
                "id": "1-Geo",
                "title": "Geo",
                "timestamp": now,
                "lesson_data": make_section().model_dump(),
                "difficulty": "college",
            },
            {
                "type": "curriculum",
                "id": "2-Course",
                "title": "Course",
                "timestamp": now,
                "curriculum": {"title": "Course", "chapters": [{"title": "c", "sections": [make_section().model_dump()]}]},
            },
        ])
        assert isinstance(items[0], LessonHistoryItem)
        assert items[0].difficulty == Difficulty.COLLEGE
        assert isinstance(items[1], CurriculumHistoryItem)

    def test_snapshot_rejects_negative_index(self):
        with pytest.raises(ValidationError):
            NavigatorSnapshot(section_index=-1)

    def test_queue_item_status(self):
        assert QueueItem(topic="Rust").status == "pending"
        with pytest.raises(ValidationError):
            QueueItem(topic="Rust", status="started")


class TestResponseSchemas:
    """Test response shapes."""

    def test_feed_items_require_one(self):
        with pytest.raises(ValidationError):
            FeedItems(feed_items=[])

    def test_explanation_verdict_feedback_optional(self):
        assert ExplanationVerdict(is_correct=True).feedback == ""
