"""
KnowledgeTracker - Per-concept mastery state ("brain map").

Each answer moves a concept's strength by 20 points and adjusts its
failure count; status follows from both. The graph persists through the
key-value store after every update.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from pydantic import TypeAdapter, ValidationError

from tutorlab.schemas import KnowledgeGraph, KnowledgeItem, KnowledgeStatus

from .store import KNOWLEDGE_GRAPH_KEY, KeyValueStore

logger = logging.getLogger(__name__)

STRENGTH_STEP = 20
MAX_STRENGTH = 100
MASTERY_THRESHOLD = 80
STRUGGLING_FAILURES = 2

_graph_adapter = TypeAdapter(dict[str, KnowledgeItem])


def apply_answer(item: KnowledgeItem, is_correct: bool, now: datetime) -> KnowledgeItem:
    """Return the item updated for one answer."""
    status = item.status
    strength = item.strength
    failure_count = item.failure_count

    if is_correct:
        strength = min(MAX_STRENGTH, strength + STRENGTH_STEP)
        failure_count = max(0, failure_count - 1)
        if strength >= MASTERY_THRESHOLD:
            status = KnowledgeStatus.MASTERED
        else:
            status = KnowledgeStatus.REVIEWING
    else:
        strength = max(0, strength - STRENGTH_STEP)
        failure_count += 1
        if failure_count >= STRUGGLING_FAILURES:
            status = KnowledgeStatus.STRUGGLING
        elif status == KnowledgeStatus.MASTERED:
            status = KnowledgeStatus.REVIEWING

    return item.model_copy(update={
        "status": status,
        "strength": strength,
        "failure_count": failure_count,
        "last_reviewed": now,
    })


class KnowledgeTracker:
    """
    Track mastery per concept id.

    Updates to the graph are serialized by a lock, so two updates of the
    same concept apply in arrival order and the last one wins.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.clock = clock
        self._lock = threading.Lock()
        self._graph: KnowledgeGraph = self._load()

    def _load(self) -> KnowledgeGraph:
        if self.store is None:
            return {}
        raw = self.store.get(KNOWLEDGE_GRAPH_KEY, {})
        try:
            return _graph_adapter.validate_python(raw)
        except ValidationError as e:
            logger.warning(f"Discarding invalid knowledge graph: {e}")
            self.store.delete(KNOWLEDGE_GRAPH_KEY)
            return {}

    def _save(self):
        if self.store is not None:
            self.store.set(KNOWLEDGE_GRAPH_KEY, _graph_adapter.dump_python(self._graph, mode="json"))

    @property
    def graph(self) -> KnowledgeGraph:
        """Copy of the current graph."""
        with self._lock:
            return dict(self._graph)

    def get(self, concept_id: str) -> Optional[KnowledgeItem]:
        return self._graph.get(concept_id)

    def update(self, concept_id: str, is_correct: bool) -> KnowledgeItem:
        """Record one answer for a concept and return its new state."""
        with self._lock:
            now = self.clock()
            item = self._graph.get(concept_id) or KnowledgeItem(id=concept_id, last_reviewed=now)
            updated = apply_answer(item, is_correct, now)
            self._graph[concept_id] = updated
            self._save()

        logger.debug(f"Knowledge '{concept_id}': {updated.status.value} ({updated.strength})")
        return updated

    def brain_map(self) -> dict[str, list[KnowledgeItem]]:
        """
        Group concepts for display.

        Returns dict with keys struggling, reviewing (includes new) and
        mastered, each sorted by concept id.
        """
        groups: dict[str, list[KnowledgeItem]] = {"struggling": [], "reviewing": [], "mastered": []}
        for item in sorted(self.graph.values(), key=lambda i: i.id):
            if item.status == KnowledgeStatus.MASTERED:
                groups["mastered"].append(item)
            elif item.status == KnowledgeStatus.STRUGGLING:
                groups["struggling"].append(item)
            else:
                groups["reviewing"].append(item)
        return groups

    def clear(self):
        with self._lock:
            self._graph = {}
            if self.store is not None:
                self.store.delete(KNOWLEDGE_GRAPH_KEY)
