"""
Curriculum schemas for TutorLab.

A curriculum is an ordered list of chapters, each an ordered list of
sections. A module list is a multi-part learning path built from one
source article; each module is a full curriculum.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .lesson import Section, Source


class Chapter(BaseModel):
    title: str
    sections: list[Section] = Field(..., min_length=1)


class Curriculum(BaseModel):
    title: str
    summary: Optional[str] = None
    key_points: list[str] = []
    bias_analysis: Optional[str] = None
    chapters: list[Chapter] = Field(..., min_length=1)
    sources: list[Source] = []

    @property
    def section_count(self) -> int:
        return sum(len(chapter.sections) for chapter in self.chapters)


class ModuleList(BaseModel):
    modules: list[Curriculum] = Field(..., min_length=1)
