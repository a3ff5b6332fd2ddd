"""
Progress and history schemas for TutorLab.

Defines Pydantic models for:
- Lesson/curriculum history entries (tagged union on `type`)
- Navigator position snapshots
- CLI learning queue entries
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from .curriculum import Curriculum
from .lesson import Difficulty, Section


class CurriculumHistoryItem(BaseModel):
    type: Literal["curriculum"] = "curriculum"
    id: str
    title: str
    timestamp: datetime
    curriculum: Curriculum


class LessonHistoryItem(BaseModel):
    type: Literal["lesson"] = "lesson"
    id: str
    title: str
    timestamp: datetime
    lesson_data: Section
    difficulty: Difficulty


HistoryItem = Annotated[
    Union[CurriculumHistoryItem, LessonHistoryItem],
    Field(discriminator="type"),
]


class NavigatorSnapshot(BaseModel):
    """
    Saved curriculum position.

    Exactly one of `modules` (multi-part path) or `curriculum` is set.
    """
    modules: Optional[list[Curriculum]] = None
    curriculum: Optional[Curriculum] = None
    module_index: int = Field(0, ge=0)
    chapter_index: int = Field(0, ge=0)
    section_index: int = Field(0, ge=0)


class QueueItem(BaseModel):
    topic: str
    added_at: datetime = Field(default_factory=datetime.now)
    status: Literal["pending", "done"] = "pending"
