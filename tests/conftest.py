"""Shared fixtures and builders for TutorLab tests."""

import pytest

from tutorlab.classroom import KeyValueStore
from tutorlab.schemas import (
    Chapter,
    Curriculum,
    LearningSlide,
    Question,
    QuestionOption,
    QuestionType,
    Section,
    TeachingPrompt,
)


def make_mc(text="Capital of France?", answer="Paris", slide=0) -> Question:
    return Question(
        question_text=text,
        question_type=QuestionType.MULTIPLE_CHOICE,
        options=[QuestionOption(text=answer), QuestionOption(text="Lyon"),
                 QuestionOption(text="Nice"), QuestionOption(text="Lille")],
        correct_answer=answer,
        explanation=f"[[{answer}]] is correct.",
        related_slide_index=slide,
    )


def make_fib(text="The sky is ___.", answer="blue", slide=0) -> Question:
    return Question(
        title="Sky colour",
        question_text=text,
        question_type=QuestionType.FILL_IN_THE_BLANK,
        correct_answer=answer,
        related_slide_index=slide,
    )


def make_math(text="What is 6 * 7?", answer="42", slide=0) -> Question:
    return Question(
        question_text=text,
        question_type=QuestionType.MATH_INTERACTION,
        interaction_type="calculation-pad",
        initial_state={"expression": "6 * 7"},
        correct_answer=answer,
        related_slide_index=slide,
    )


def make_prompt(text="Explain why leaves are green.", slide=0) -> TeachingPrompt:
    return TeachingPrompt(prompt_text=text, related_slide_index=slide)


def make_section(title="Geography", questions=None, prompts=None, slides=None) -> Section:
    if slides is None:
        slides = [
            LearningSlide(title="Capitals", content="[[Paris]] is the capital of France."),
            LearningSlide(title="Chlorophyll", content="Leaves contain [[chlorophyll]], which absorbs red light."),
        ]
    return Section(
        title=title,
        summary=f"All about {title}.",
        learning_material=slides,
        teaching_prompts=prompts or [],
        questions=questions if questions is not None else [make_mc()],
    )


def make_curriculum(title="Course", chapters=(2,)) -> Curriculum:
    """Section counts per chapter, e.g. (2, 1) is two chapters with 2 and 1 sections."""
    return Curriculum(
        title=title,
        chapters=[
            Chapter(
                title=f"{title} ch{c + 1}",
                sections=[make_section(title=f"{title} {c + 1}.{s + 1}") for s in range(count)],
            )
            for c, count in enumerate(chapters)
        ],
    )


def no_shuffle(items):
    """Keep bucket order as given."""


@pytest.fixture
def store(tmp_path):
    return KeyValueStore(tmp_path / "store.db", namespace="test")
