"""
LessonSession - State machine for playing one section.

Phases:
- learning: step through the section's slides
- assessment: answer the sequenced questions and teaching prompts
- finished: score, points and pass/fail are fixed

Answer judging that needs the model (fill-in-the-blank, teaching
explanations) goes through an evaluator collaborator. Evaluator failures
never stall the lesson: a deterministic local comparison is used instead.
"""

import logging
import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

from tutorlab.config import (
    CORRECT_ANSWER_POINTS,
    EXAMPLE_AFTER_FAILURES,
    INITIAL_HEARTS,
    PASS_PERCENTAGE,
    PERFECT_HEALTH_BONUS,
    TEACHING_POINTS,
)
from tutorlab.schemas import (
    AssessmentItem,
    ExplanationVerdict,
    LearningSlide,
    Question,
    QuestionType,
    Section,
    TeachingPrompt,
)
from tutorlab.utils.text import highlighted_terms, normalize_answer, significant_words, strip_highlights

from .knowledge import KnowledgeTracker
from .sequencer import sequence_assessment

logger = logging.getLogger(__name__)

FALLBACK_MIN_OVERLAP = 3
FALLBACK_CORRECT_FEEDBACK = "Oh, I think I get it now! Thanks for explaining."
FALLBACK_CONFUSED_FEEDBACK = "Hmm, I'm a little confused. Can you explain it another way?"


class LessonPhase(str, Enum):
    LEARNING = "learning"
    ASSESSMENT = "assessment"
    FINISHED = "finished"


class AnswerStatus(str, Enum):
    UNANSWERED = "unanswered"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class LessonStateError(RuntimeError):
    """Raised when an action does not fit the session's current phase or item."""


class AnswerEvaluator(Protocol):
    """Model-backed judge for free-text answers."""

    def evaluate_fill_in_the_blank(self, question_text: str, correct_answer: str, user_answer: str) -> bool:
        ...

    def evaluate_explanation(self, prompt_text: str, user_answer: str, original_context: str) -> ExplanationVerdict:
        ...


@dataclass
class TeachingFeedback:
    """Outcome of one explanation attempt."""
    is_correct: bool
    feedback: str
    failed_attempts: int
    can_show_example: bool


@dataclass
class LessonResult:
    """Final tally of a finished session."""
    score: int
    total_questions: int
    percentage: int
    passed: bool
    perfect_health: bool
    bonus: int
    points: int

    @property
    def message(self) -> str:
        if self.percentage == 100:
            return "Perfect! You're a star!"
        if self.percentage >= 75:
            return "Excellent work!"
        if self.percentage >= PASS_PERCENTAGE:
            return "Good job! Keep practicing!"
        return "Great effort!"


def answers_match(answer: str, correct_answer: str) -> bool:
    """Trimmed, case-insensitive equality."""
    return normalize_answer(answer) == normalize_answer(correct_answer)


def fallback_explanation_verdict(explanation: str, context: str) -> ExplanationVerdict:
    """
    Judge an explanation without the model.

    Accepted when it mentions one of the context's [[key terms]], or, for
    contexts without marked terms, when it shares enough significant words
    with the context.
    """
    lowered = explanation.lower()
    terms = highlighted_terms(context)
    if terms:
        accepted = any(term.lower() in lowered for term in terms)
    else:
        context_words = significant_words(strip_highlights(context))
        needed = min(FALLBACK_MIN_OVERLAP, len(context_words))
        accepted = len(significant_words(explanation) & context_words) >= needed and bool(explanation.strip())
    feedback = FALLBACK_CORRECT_FEEDBACK if accepted else FALLBACK_CONFUSED_FEEDBACK
    return ExplanationVerdict(is_correct=accepted, feedback=feedback)


class LessonSession:
    """
    Drive one section from its first slide to the summary screen.

    Args:
        section: Section to play
        knowledge: Optional tracker updated on every answered question
        evaluator: Optional model-backed judge; without one, local
            comparisons are used throughout
        initial_hearts: Mistakes allowed before the session ends
        shuffle: In-place shuffle for the assessment buckets
    """

    def __init__(
        self,
        section: Section,
        knowledge: Optional[KnowledgeTracker] = None,
        evaluator: Optional[AnswerEvaluator] = None,
        initial_hearts: int = INITIAL_HEARTS,
        shuffle: Callable[[list], None] = random.shuffle,
    ):
        self.section = section
        self.knowledge = knowledge
        self.evaluator = evaluator
        self.initial_hearts = initial_hearts
        self._shuffle = shuffle
        self.restart()

    def restart(self):
        """Reset every counter and re-sequence the assessment (try again)."""
        self.items: list[AssessmentItem] = sequence_assessment(
            self.section.teaching_prompts, self.section.questions, self._shuffle
        )
        self.learning_index = 0
        self.assessment_index = 0
        self.hearts = self.initial_hearts
        self.score = 0
        self.points = 0
        self._result: Optional[LessonResult] = None
        self._reset_item_state()

        if self.slides:
            self.phase = LessonPhase.LEARNING
        else:
            self.phase = LessonPhase.ASSESSMENT
            if not self.items:
                self._finish()

    def _reset_item_state(self):
        self.status = AnswerStatus.UNANSWERED
        self.selected_answer: Optional[str] = None
        self.review_slide: Optional[LearningSlide] = None
        self.failed_attempts = 0
        self.example_shown = False

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def slides(self) -> list[LearningSlide]:
        return self.section.learning_material

    @property
    def is_finished(self) -> bool:
        return self.phase == LessonPhase.FINISHED

    @property
    def current_slide(self) -> Optional[LearningSlide]:
        if self.phase != LessonPhase.LEARNING:
            return None
        return self.slides[self.learning_index]

    @property
    def current_item(self) -> Optional[AssessmentItem]:
        if self.phase != LessonPhase.ASSESSMENT:
            return None
        return self.items[self.assessment_index]

    @property
    def total_questions(self) -> int:
        """Questions in this pass; teaching prompts are not scored."""
        return sum(1 for item in self.items if isinstance(item, Question))

    @property
    def total_steps(self) -> int:
        return len(self.slides) + len(self.items)

    @property
    def current_step(self) -> int:
        if self.phase == LessonPhase.LEARNING:
            return self.learning_index + 1
        if self.phase == LessonPhase.ASSESSMENT:
            return len(self.slides) + self.assessment_index + 1
        return self.total_steps

    @property
    def result(self) -> Optional[LessonResult]:
        return self._result

    # -------------------------------------------------------------------------
    # Learning phase
    # -------------------------------------------------------------------------

    def next_slide(self):
        """Move to the next slide, or into the assessment after the last one."""
        if self.phase != LessonPhase.LEARNING:
            raise LessonStateError("Not in the learning phase")
        if self.learning_index < len(self.slides) - 1:
            self.learning_index += 1
            return
        self.phase = LessonPhase.ASSESSMENT
        if not self.items:
            self._finish()

    def back_slide(self):
        if self.phase != LessonPhase.LEARNING:
            raise LessonStateError("Not in the learning phase")
        if self.learning_index > 0:
            self.learning_index -= 1

    # -------------------------------------------------------------------------
    # Assessment phase
    # -------------------------------------------------------------------------

    def _require_item(self, kind: type):
        item = self.current_item
        if item is None:
            raise LessonStateError(f"No active assessment item in phase '{self.phase.value}'")
        if not isinstance(item, kind):
            raise LessonStateError(f"Active item is not a {kind.__name__}")
        return item

    def submit_answer(self, answer: str) -> AnswerStatus:
        """
        Judge an answer to the active question.

        A second submission for an already answered question is ignored.
        """
        question: Question = self._require_item(Question)
        if self.status != AnswerStatus.UNANSWERED:
            return self.status

        self.selected_answer = answer
        is_correct = self._judge_answer(question, answer)
        slide = self.section.related_slide(question)
        concept_id = slide.title if slide else self.section.title

        if is_correct:
            self.status = AnswerStatus.CORRECT
            self.score += 1
            self.points += CORRECT_ANSWER_POINTS
            self.review_slide = None
            self._record_knowledge(concept_id, True)
        else:
            self.status = AnswerStatus.INCORRECT
            self.hearts -= 1
            self.review_slide = slide
            self._record_knowledge(concept_id, False)
            if self.hearts <= 0:
                logger.info(f"Out of hearts in '{self.section.title}'")
                self._finish()

        return self.status

    def _judge_answer(self, question: Question, answer: str) -> bool:
        if question.question_type != QuestionType.FILL_IN_THE_BLANK or self.evaluator is None:
            return answers_match(answer, question.correct_answer)
        try:
            return self.evaluator.evaluate_fill_in_the_blank(
                question.question_text, question.correct_answer, answer
            )
        except Exception as e:
            logger.warning(f"Fill-in-the-blank evaluation failed, comparing locally: {e}")
            return answers_match(answer, question.correct_answer)

    def submit_explanation(self, explanation: str) -> TeachingFeedback:
        """
        Judge an explanation for the active teaching prompt.

        A positive judgment awards points and moves on. A negative one only
        counts the attempt; hearts are never lost on teaching prompts.
        """
        prompt: TeachingPrompt = self._require_item(TeachingPrompt)
        if not explanation.strip():
            raise ValueError("Explanation must not be empty")
        if self.example_shown:
            raise LessonStateError("Example already shown; continue to the next item")

        slide = self.section.related_slide(prompt)
        context = slide.content if slide else (self.section.summary or self.section.title)
        verdict = self._judge_explanation(prompt, explanation, context)

        if verdict.is_correct:
            self.points += TEACHING_POINTS
            feedback = TeachingFeedback(
                is_correct=True,
                feedback=verdict.feedback,
                failed_attempts=self.failed_attempts,
                can_show_example=False,
            )
            self._advance()
            return feedback

        self.failed_attempts += 1
        self.review_slide = slide
        return TeachingFeedback(
            is_correct=False,
            feedback=verdict.feedback,
            failed_attempts=self.failed_attempts,
            can_show_example=self.failed_attempts >= EXAMPLE_AFTER_FAILURES,
        )

    def _judge_explanation(self, prompt: TeachingPrompt, explanation: str, context: str) -> ExplanationVerdict:
        if self.evaluator is None:
            return fallback_explanation_verdict(explanation, context)
        try:
            return self.evaluator.evaluate_explanation(prompt.prompt_text, explanation, context)
        except Exception as e:
            logger.warning(f"Explanation evaluation failed, comparing locally: {e}")
            return fallback_explanation_verdict(explanation, context)

    def reveal_example(self) -> Optional[LearningSlide]:
        """Show the related slide as a worked explanation after repeated failures."""
        prompt: TeachingPrompt = self._require_item(TeachingPrompt)
        if self.failed_attempts < EXAMPLE_AFTER_FAILURES:
            raise LessonStateError(
                f"Example is available after {EXAMPLE_AFTER_FAILURES} failed attempts"
            )
        self.example_shown = True
        self.review_slide = self.section.related_slide(prompt)
        return self.review_slide

    def next_item(self):
        """Continue past an answered question or a revealed example."""
        item = self.current_item
        if item is None:
            raise LessonStateError(f"No active assessment item in phase '{self.phase.value}'")
        if isinstance(item, Question) and self.status == AnswerStatus.UNANSWERED:
            raise LessonStateError("Answer the question before continuing")
        if isinstance(item, TeachingPrompt) and not self.example_shown:
            raise LessonStateError("Explain the concept or reveal the example before continuing")
        self._advance()

    def _advance(self):
        self._reset_item_state()
        if self.assessment_index < len(self.items) - 1:
            self.assessment_index += 1
        else:
            self._finish()

    def _record_knowledge(self, concept_id: str, is_correct: bool):
        if self.knowledge is not None:
            self.knowledge.update(concept_id, is_correct)

    # -------------------------------------------------------------------------
    # Finish
    # -------------------------------------------------------------------------

    def _finish(self):
        if self.phase == LessonPhase.FINISHED:
            return
        total = self.total_questions
        percentage = math.floor(self.score / total * 100 + 0.5) if total > 0 else 0
        passed = percentage >= PASS_PERCENTAGE
        perfect_health = self.hearts == self.initial_hearts
        bonus = PERFECT_HEALTH_BONUS if perfect_health and passed else 0

        self._result = LessonResult(
            score=self.score,
            total_questions=total,
            percentage=percentage,
            passed=passed,
            perfect_health=perfect_health,
            bonus=bonus,
            points=self.points + bonus,
        )
        self.phase = LessonPhase.FINISHED
        logger.info(
            f"Finished '{self.section.title}': {self.score}/{total} ({percentage}%), "
            f"{self._result.points} points"
        )
