"""
HistoryLog - Recently finished lessons and curricula.

Most recent first, at most HISTORY_LIMIT entries, one entry per title.
"""

import logging
import re
import threading
from datetime import datetime
from typing import Callable, Optional

from pydantic import TypeAdapter, ValidationError

from tutorlab.config import HISTORY_LIMIT
from tutorlab.schemas import (
    Curriculum,
    CurriculumHistoryItem,
    Difficulty,
    HistoryItem,
    LessonHistoryItem,
    Section,
)

from .store import HISTORY_KEY, KeyValueStore

logger = logging.getLogger(__name__)

_history_adapter = TypeAdapter(list[HistoryItem])


def make_history_id(title: str, timestamp: datetime) -> str:
    """Id from the timestamp in milliseconds and the dashed title."""
    millis = int(timestamp.timestamp() * 1000)
    slug = re.sub(r"\s+", "-", title)
    return f"{millis}-{slug}"


class HistoryLog:
    """
    Capped, de-duplicated history of finished work.

    Re-adding a title replaces the old entry and moves it to the front.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        limit: int = HISTORY_LIMIT,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.limit = limit
        self.clock = clock
        self._lock = threading.Lock()
        self._items: list = self._load()

    def _load(self) -> list:
        if self.store is None:
            return []
        raw = self.store.get(HISTORY_KEY, [])
        try:
            return _history_adapter.validate_python(raw)[: self.limit]
        except ValidationError as e:
            logger.warning(f"Discarding invalid history: {e}")
            self.store.delete(HISTORY_KEY)
            return []

    def _save(self):
        if self.store is not None:
            self.store.set(HISTORY_KEY, _history_adapter.dump_python(self._items, mode="json"))

    def _insert(self, item):
        with self._lock:
            remaining = [existing for existing in self._items if existing.title != item.title]
            self._items = [item] + remaining[: self.limit - 1]
            self._save()
        logger.debug(f"History now holds {len(self._items)} items")
        return item

    def add_curriculum(self, curriculum: Curriculum) -> CurriculumHistoryItem:
        now = self.clock()
        return self._insert(CurriculumHistoryItem(
            id=make_history_id(curriculum.title, now),
            title=curriculum.title,
            timestamp=now,
            curriculum=curriculum,
        ))

    def add_lesson(self, section: Section, difficulty: Difficulty) -> LessonHistoryItem:
        now = self.clock()
        return self._insert(LessonHistoryItem(
            id=make_history_id(section.title, now),
            title=section.title,
            timestamp=now,
            lesson_data=section,
            difficulty=difficulty,
        ))

    def items(self) -> list:
        with self._lock:
            return list(self._items)

    def get(self, item_id: str):
        for item in self.items():
            if item.id == item_id:
                return item
        return None

    def clear(self):
        with self._lock:
            self._items = []
            if self.store is not None:
                self.store.delete(HISTORY_KEY)

    def __len__(self) -> int:
        return len(self._items)
