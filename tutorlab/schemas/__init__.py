"""
TutorLab Schemas - Pydantic models for the tutoring app.

This module exports all schema classes for:
- Lesson: slides, questions, teaching prompts, sections
- Curriculum: chapters, curricula, module lists
- Knowledge: per-concept mastery items
- Progress: history entries, navigator snapshots, queue items
- Responses: verdicts, related topics, articles, feed items, chat
"""

# Lesson schemas
from .lesson import (
    Difficulty,
    QuestionType,
    MathInteractionType,
    Source,
    LearningSlide,
    GeoObject,
    MathInitialState,
    QuestionOption,
    Question,
    TeachingPrompt,
    AssessmentItem,
    Section,
)

# Curriculum schemas
from .curriculum import (
    Chapter,
    Curriculum,
    ModuleList,
)

# Knowledge schemas
from .knowledge import (
    KnowledgeStatus,
    KnowledgeItem,
    KnowledgeGraph,
)

# Progress schemas
from .progress import (
    CurriculumHistoryItem,
    LessonHistoryItem,
    HistoryItem,
    NavigatorSnapshot,
    QueueItem,
)

# Response schemas
from .responses import (
    RelatedTopics,
    FillBlankVerdict,
    ExplanationVerdict,
    ArticleMetadata,
    ArticleData,
    FeedItem,
    FeedItems,
    ChatMessage,
)

__all__ = [
    # Lesson
    'Difficulty',
    'QuestionType',
    'MathInteractionType',
    'Source',
    'LearningSlide',
    'GeoObject',
    'MathInitialState',
    'QuestionOption',
    'Question',
    'TeachingPrompt',
    'AssessmentItem',
    'Section',
    # Curriculum
    'Chapter',
    'Curriculum',
    'ModuleList',
    # Knowledge
    'KnowledgeStatus',
    'KnowledgeItem',
    'KnowledgeGraph',
    # Progress
    'CurriculumHistoryItem',
    'LessonHistoryItem',
    'HistoryItem',
    'NavigatorSnapshot',
    'QueueItem',
    # Responses
    'RelatedTopics',
    'FillBlankVerdict',
    'ExplanationVerdict',
    'ArticleMetadata',
    'ArticleData',
    'FeedItem',
    'FeedItems',
    'ChatMessage',
]
