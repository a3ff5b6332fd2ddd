"""
LearningQueue - Topics saved for later, in the order they were added.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from pydantic import TypeAdapter, ValidationError

from tutorlab.schemas import QueueItem

from .store import LEARNING_QUEUE_KEY, KeyValueStore

logger = logging.getLogger(__name__)

_queue_adapter = TypeAdapter(list[QueueItem])


class LearningQueue:
    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.clock = clock
        self._items: list[QueueItem] = self._load()

    def _load(self) -> list[QueueItem]:
        if self.store is None:
            return []
        raw = self.store.get(LEARNING_QUEUE_KEY, [])
        try:
            return _queue_adapter.validate_python(raw)
        except ValidationError as e:
            logger.warning(f"Discarding invalid learning queue: {e}")
            self.store.delete(LEARNING_QUEUE_KEY)
            return []

    def _save(self):
        if self.store is not None:
            self.store.set(LEARNING_QUEUE_KEY, _queue_adapter.dump_python(self._items, mode="json"))

    def items(self) -> list[QueueItem]:
        return list(self._items)

    def pending(self) -> list[QueueItem]:
        return [item for item in self._items if item.status == "pending"]

    def add(self, topic: str) -> QueueItem:
        topic = topic.strip()
        if not topic:
            raise ValueError("Topic must not be empty")
        item = QueueItem(topic=topic, added_at=self.clock())
        self._items.append(item)
        self._save()
        return item

    def mark_done(self, topic: str) -> bool:
        """Mark the first pending entry for topic as done."""
        for index, item in enumerate(self._items):
            if item.topic == topic and item.status == "pending":
                self._items[index] = item.model_copy(update={"status": "done"})
                self._save()
                return True
        return False

    def clear(self):
        self._items = []
        if self.store is not None:
            self.store.delete(LEARNING_QUEUE_KEY)
