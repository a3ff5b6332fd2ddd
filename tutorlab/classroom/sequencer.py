"""
Assessment sequencing - order questions and teaching prompts for one pass.

Items are split into four buckets (multiple-choice, math-interaction,
fill-in-the-blank, teaching prompts), each shuffled on its own, then woven
together in rounds of MC, MATH, MC, FIB, TAT. Multiple-choice and math
items come early; open-ended teaching prompts are spread out.
"""

import random
from collections import deque
from enum import Enum
from typing import Callable, Iterable, Sequence

from tutorlab.schemas import AssessmentItem, Question, QuestionType, TeachingPrompt


class AssessmentKind(str, Enum):
    MULTIPLE_CHOICE = "mc"
    MATH = "math"
    FILL_IN_THE_BLANK = "fib"
    TEACHING = "tat"


ROUND_PATTERN = (
    AssessmentKind.MULTIPLE_CHOICE,
    AssessmentKind.MATH,
    AssessmentKind.MULTIPLE_CHOICE,
    AssessmentKind.FILL_IN_THE_BLANK,
    AssessmentKind.TEACHING,
)

_QUESTION_KINDS = {
    QuestionType.MULTIPLE_CHOICE: AssessmentKind.MULTIPLE_CHOICE,
    QuestionType.MATH_INTERACTION: AssessmentKind.MATH,
    QuestionType.FILL_IN_THE_BLANK: AssessmentKind.FILL_IN_THE_BLANK,
}


def partition_items(
    teaching_prompts: Iterable[TeachingPrompt],
    questions: Iterable[Question],
) -> dict[AssessmentKind, list[AssessmentItem]]:
    """Split items into per-kind buckets, keeping their given order."""
    buckets: dict[AssessmentKind, list[AssessmentItem]] = {kind: [] for kind in AssessmentKind}
    for question in questions:
        buckets[_QUESTION_KINDS[question.question_type]].append(question)
    buckets[AssessmentKind.TEACHING].extend(teaching_prompts)
    return buckets


def interleave_buckets(buckets: dict[AssessmentKind, Sequence[AssessmentItem]]) -> list[AssessmentItem]:
    """
    Weave already-shuffled buckets together.

    Each round takes one item per slot of ROUND_PATTERN, skipping empty
    buckets, until every bucket is exhausted. The result is fully
    determined by the bucket contents.
    """
    queues = {kind: deque(buckets.get(kind, ())) for kind in AssessmentKind}
    ordered: list[AssessmentItem] = []
    while any(queues.values()):
        for kind in ROUND_PATTERN:
            if queues[kind]:
                ordered.append(queues[kind].popleft())
    return ordered


def sequence_assessment(
    teaching_prompts: Iterable[TeachingPrompt],
    questions: Iterable[Question],
    shuffle: Callable[[list], None] = random.shuffle,
) -> list[AssessmentItem]:
    """
    Build the ordered assessment pass for a section.

    Args:
        teaching_prompts: Section teaching prompts
        questions: Section questions of any type
        shuffle: In-place shuffle applied to each bucket

    Returns:
        Interleaved list of questions and teaching prompts
    """
    buckets = partition_items(teaching_prompts, questions)
    for bucket in buckets.values():
        shuffle(bucket)
    return interleave_buckets(buckets)
