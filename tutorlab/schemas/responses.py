"""
Response shapes for the smaller generation calls.

Each model is what one prompt asks the model to return; decoding
validates against it before anything else sees the data.
"""

from typing import Literal

from pydantic import BaseModel, Field

from .lesson import Source


class RelatedTopics(BaseModel):
    topics: list[str]


class FillBlankVerdict(BaseModel):
    is_correct: bool


class ExplanationVerdict(BaseModel):
    is_correct: bool
    feedback: str = ""


class ArticleMetadata(BaseModel):
    summary: str
    key_points: list[str] = []
    bias_analysis: str = ""


class ArticleData(ArticleMetadata):
    content: str
    sources: list[Source] = []


class FeedItem(BaseModel):
    title: str
    summary: str
    emoji: str = ""
    color: str = "bg-blue-500"


class FeedItems(BaseModel):
    feed_items: list[FeedItem] = Field(..., min_length=1)


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    text: str
