"""Lesson flow, progression and learner state."""

from .store import KeyValueStore
from .knowledge import KnowledgeTracker
from .sequencer import AssessmentKind, sequence_assessment, interleave_buckets
from .session import (
    LessonSession,
    LessonPhase,
    AnswerStatus,
    LessonResult,
    TeachingFeedback,
    LessonStateError,
)
from .navigator import CurriculumNavigator, NavigationStep
from .history import HistoryLog
from .queue import LearningQueue

__all__ = [
    "KeyValueStore",
    "KnowledgeTracker",
    "AssessmentKind",
    "sequence_assessment",
    "interleave_buckets",
    "LessonSession",
    "LessonPhase",
    "AnswerStatus",
    "LessonResult",
    "TeachingFeedback",
    "LessonStateError",
    "CurriculumNavigator",
    "NavigationStep",
    "HistoryLog",
    "LearningQueue",
]
