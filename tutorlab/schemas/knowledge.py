"""
Knowledge graph schemas for TutorLab.

Per-concept mastery state that persists across sessions. Concepts are
keyed by slide title (or section title when no slide applies).
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class KnowledgeStatus(str, Enum):
    NEW = "new"
    REVIEWING = "reviewing"
    STRUGGLING = "struggling"
    MASTERED = "mastered"


class KnowledgeItem(BaseModel):
    id: str
    status: KnowledgeStatus = KnowledgeStatus.NEW
    strength: int = Field(0, ge=0, le=100)
    failure_count: int = Field(0, ge=0)
    last_reviewed: datetime = Field(default_factory=datetime.now)


KnowledgeGraph = dict[str, KnowledgeItem]
