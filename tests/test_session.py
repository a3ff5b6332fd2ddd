"""Lesson session state machine tests."""

import pytest

from tutorlab.classroom import (
    AnswerStatus,
    KnowledgeTracker,
    LessonPhase,
    LessonSession,
    LessonStateError,
)
from tutorlab.classroom.session import LessonResult, fallback_explanation_verdict
from tutorlab.schemas import ExplanationVerdict, KnowledgeStatus, LearningSlide

from conftest import make_fib, make_math, make_mc, make_prompt, make_section, no_shuffle


class FakeEvaluator:
    def __init__(self, blank_result=True, explanation_results=None, fail=False):
        self.blank_result = blank_result
        self.explanation_results = list(explanation_results or [])
        self.fail = fail
        self.calls = []

    def evaluate_fill_in_the_blank(self, question_text, correct_answer, user_answer):
        self.calls.append(("blank", user_answer))
        if self.fail:
            raise RuntimeError("network down")
        return self.blank_result

    def evaluate_explanation(self, prompt_text, user_answer, original_context):
        self.calls.append(("explain", original_context))
        if self.fail:
            raise RuntimeError("network down")
        return self.explanation_results.pop(0)


def start_assessment(session):
    while session.phase == LessonPhase.LEARNING:
        session.next_slide()


class TestLearningPhase:
    """Test slide navigation."""

    def test_starts_in_learning_with_slides(self):
        session = LessonSession(make_section(), shuffle=no_shuffle)
        assert session.phase == LessonPhase.LEARNING
        assert session.current_slide.title == "Capitals"
        assert session.current_item is None

    def test_back_is_noop_at_first_slide(self):
        session = LessonSession(make_section(), shuffle=no_shuffle)
        session.back_slide()
        assert session.learning_index == 0

    def test_next_past_last_slide_enters_assessment(self):
        session = LessonSession(make_section(), shuffle=no_shuffle)
        session.next_slide()
        assert session.learning_index == 1
        session.back_slide()
        assert session.learning_index == 0
        session.next_slide()
        session.next_slide()
        assert session.phase == LessonPhase.ASSESSMENT
        assert session.current_step == 3
        assert session.total_steps == 3

    def test_no_slides_starts_in_assessment(self):
        session = LessonSession(make_section(slides=[]), shuffle=no_shuffle)
        assert session.phase == LessonPhase.ASSESSMENT

    def test_empty_section_finishes(self):
        session = LessonSession(make_section(slides=[], questions=[]), shuffle=no_shuffle)
        assert session.is_finished
        assert session.result.percentage == 0
        assert not session.result.passed

    def test_answer_during_learning_rejected(self):
        session = LessonSession(make_section(), shuffle=no_shuffle)
        with pytest.raises(LessonStateError):
            session.submit_answer("Paris")


class TestQuestions:
    """Test answering questions."""

    def test_case_insensitive_trimmed_match(self):
        session = LessonSession(make_section(), shuffle=no_shuffle)
        start_assessment(session)
        assert session.submit_answer("  paris ") == AnswerStatus.CORRECT
        assert session.score == 1
        assert session.points == 10

    def test_math_answer_compared_locally(self):
        evaluator = FakeEvaluator()
        session = LessonSession(make_section(questions=[make_math()]), evaluator=evaluator, shuffle=no_shuffle)
        start_assessment(session)
        assert session.submit_answer("42") == AnswerStatus.CORRECT
        assert evaluator.calls == []

    def test_incorrect_costs_heart_and_surfaces_slide(self):
        section = make_section(questions=[make_mc(slide=1), make_mc("q2")])
        session = LessonSession(section, shuffle=no_shuffle)
        start_assessment(session)
        assert session.submit_answer("Lyon") == AnswerStatus.INCORRECT
        assert session.hearts == 4
        assert session.review_slide.title == "Chlorophyll"

    def test_second_submit_is_noop(self):
        session = LessonSession(make_section(questions=[make_mc(), make_mc("q2")]), shuffle=no_shuffle)
        start_assessment(session)
        session.submit_answer("Lyon")
        assert session.submit_answer("Paris") == AnswerStatus.INCORRECT
        assert session.hearts == 4
        assert session.score == 0

    def test_next_item_requires_answer(self):
        session = LessonSession(make_section(questions=[make_mc(), make_mc("q2")]), shuffle=no_shuffle)
        start_assessment(session)
        with pytest.raises(LessonStateError):
            session.next_item()

    def test_next_item_resets_item_state(self):
        session = LessonSession(make_section(questions=[make_mc(), make_mc("q2")]), shuffle=no_shuffle)
        start_assessment(session)
        session.submit_answer("Lyon")
        session.next_item()
        assert session.status == AnswerStatus.UNANSWERED
        assert session.review_slide is None
        assert session.selected_answer is None
        assert session.assessment_index == 1

    def test_fill_blank_uses_evaluator(self):
        evaluator = FakeEvaluator(blank_result=True)
        session = LessonSession(make_section(questions=[make_fib()]), evaluator=evaluator, shuffle=no_shuffle)
        start_assessment(session)
        assert session.submit_answer("azure") == AnswerStatus.CORRECT
        assert evaluator.calls == [("blank", "azure")]

    def test_fill_blank_falls_back_on_failure(self):
        evaluator = FakeEvaluator(fail=True)
        section = make_section(questions=[make_fib(), make_fib("q2")])
        session = LessonSession(section, evaluator=evaluator, shuffle=no_shuffle)
        start_assessment(session)
        assert session.submit_answer("Blue") == AnswerStatus.CORRECT
        session.next_item()
        assert session.submit_answer("azure") == AnswerStatus.INCORRECT

    def test_knowledge_updated_with_slide_title(self):
        knowledge = KnowledgeTracker()
        section = make_section(questions=[make_mc(slide=1), make_mc("q2", slide=0)])
        session = LessonSession(section, knowledge=knowledge, shuffle=no_shuffle)
        start_assessment(session)
        session.submit_answer("Paris")
        session.next_item()
        session.submit_answer("Lyon")
        assert knowledge.get("Chlorophyll").strength == 20
        assert knowledge.get("Capitals").failure_count == 1

    def test_knowledge_uses_section_title_without_slides(self):
        knowledge = KnowledgeTracker()
        section = make_section(title="Geo", slides=[], questions=[make_mc()])
        session = LessonSession(section, knowledge=knowledge, shuffle=no_shuffle)
        session.submit_answer("Paris")
        assert knowledge.get("Geo").status == KnowledgeStatus.REVIEWING


class TestTeachingPrompts:
    """Test explain-it-back items."""

    def test_positive_explanation_awards_points_and_advances(self):
        evaluator = FakeEvaluator(explanation_results=[ExplanationVerdict(is_correct=True, feedback="I get it!")])
        section = make_section(questions=[make_mc()], prompts=[make_prompt(slide=1)])
        session = LessonSession(section, evaluator=evaluator, shuffle=no_shuffle)
        start_assessment(session)
        session.submit_answer("Paris")
        session.next_item()

        feedback = session.submit_explanation("Chlorophyll absorbs light")
        assert feedback.is_correct
        assert feedback.feedback == "I get it!"
        assert session.points == 25
        assert session.is_finished
        assert evaluator.calls[-1] == ("explain", section.learning_material[1].content)

    def test_failures_unlock_example(self):
        evaluator = FakeEvaluator(explanation_results=[
            ExplanationVerdict(is_correct=False, feedback="Hmm?"),
            ExplanationVerdict(is_correct=False, feedback="Still confused"),
        ])
        section = make_section(questions=[], prompts=[make_prompt(slide=1)])
        session = LessonSession(section, evaluator=evaluator, shuffle=no_shuffle)
        start_assessment(session)

        first = session.submit_explanation("no idea")
        assert not first.can_show_example
        with pytest.raises(LessonStateError):
            session.reveal_example()
        with pytest.raises(LessonStateError):
            session.next_item()

        second = session.submit_explanation("still no idea")
        assert second.can_show_example
        assert session.hearts == 5

        slide = session.reveal_example()
        assert slide.title == "Chlorophyll"
        session.next_item()
        assert session.is_finished

    def test_empty_explanation_rejected(self):
        section = make_section(questions=[], prompts=[make_prompt()])
        session = LessonSession(section, shuffle=no_shuffle)
        start_assessment(session)
        with pytest.raises(ValueError):
            session.submit_explanation("   ")

    def test_evaluator_failure_uses_fallback(self):
        evaluator = FakeEvaluator(fail=True)
        section = make_section(questions=[], prompts=[make_prompt(slide=1)])
        session = LessonSession(section, evaluator=evaluator, shuffle=no_shuffle)
        start_assessment(session)
        feedback = session.submit_explanation("It is because of Chlorophyll in the leaf")
        assert feedback.is_correct
        assert session.is_finished


class TestFallbackExplanation:
    """Test the local explanation judge."""

    def test_key_term_mentioned(self):
        verdict = fallback_explanation_verdict("the [[mitochondria]] thing", "The [[mitochondria]] makes energy")
        assert verdict.is_correct

    def test_key_term_missing(self):
        verdict = fallback_explanation_verdict("it is magic", "The [[mitochondria]] makes energy")
        assert not verdict.is_correct

    def test_word_overlap_without_terms(self):
        context = "Plants convert sunlight into chemical energy stored in glucose"
        assert fallback_explanation_verdict("plants store sunlight energy", context).is_correct
        assert not fallback_explanation_verdict("plants are green", context).is_correct


class TestFinishing:
    """Test hearts, scoring and results."""

    def test_zero_hearts_finishes_immediately(self):
        questions = [make_mc(f"q{i}") for i in range(4)]
        section = make_section(questions=questions)
        session = LessonSession(section, initial_hearts=2, shuffle=no_shuffle)
        start_assessment(session)
        session.submit_answer("Lyon")
        session.next_item()
        session.submit_answer("Lyon")
        assert session.is_finished
        assert session.hearts == 0
        assert session.result.total_questions == 4
        assert not session.result.perfect_health

    def test_perfect_health_bonus(self):
        section = make_section(questions=[make_mc(), make_mc("q2")])
        session = LessonSession(section, shuffle=no_shuffle)
        start_assessment(session)
        for _ in range(2):
            session.submit_answer("Paris")
            session.next_item()
        result = session.result
        assert result.percentage == 100
        assert result.perfect_health
        assert result.bonus == 50
        assert result.points == 70
        assert result.message == "Perfect! You're a star!"

    def test_no_bonus_after_lost_heart(self):
        section = make_section(questions=[make_mc(), make_mc("q2"), make_mc("q3")])
        session = LessonSession(section, shuffle=no_shuffle)
        start_assessment(session)
        for answer in ("Paris", "Lyon", "Paris"):
            session.submit_answer(answer)
            session.next_item()
        result = session.result
        assert result.percentage == 67
        assert result.passed
        assert result.bonus == 0
        assert result.points == 20

    def test_percentage_rounds_half_up(self):
        questions = [make_mc(f"q{i}") for i in range(8)]
        session = LessonSession(make_section(questions=questions), initial_hearts=5, shuffle=no_shuffle)
        start_assessment(session)
        for answer in ["Paris"] * 5 + ["Lyon"] * 3:
            session.submit_answer(answer)
            session.next_item()
        assert session.result.score == 5
        assert session.result.percentage == 63

    def test_restart_resets_everything(self):
        section = make_section(questions=[make_mc(), make_mc("q2")])
        session = LessonSession(section, shuffle=no_shuffle)
        start_assessment(session)
        session.submit_answer("Lyon")
        session.restart()
        assert session.phase == LessonPhase.LEARNING
        assert session.hearts == 5
        assert session.score == 0
        assert session.points == 0
        assert session.result is None

    def test_result_messages(self):
        def result(percentage):
            return LessonResult(
                score=0, total_questions=0, percentage=percentage, passed=percentage >= 50,
                perfect_health=False, bonus=0, points=0,
            )

        assert result(80).message == "Excellent work!"
        assert result(50).message == "Good job! Keep practicing!"
        assert result(20).message == "Great effort!"

    def test_scenario_paris(self):
        slides = [LearningSlide(title="s1", content="France"), LearningSlide(title="s2", content="Capitals")]
        section = make_section(slides=slides, questions=[make_mc(answer="Paris")])
        session = LessonSession(section, shuffle=no_shuffle)
        start_assessment(session)
        assert session.submit_answer("paris") == AnswerStatus.CORRECT
