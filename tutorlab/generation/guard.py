"""
Request generations - drop results of superseded requests.

Each logical action ("lesson", "feed", ...) has a counter. Starting a new
request bumps it; a result is only applied if its ticket still carries the
latest generation for its action.
"""

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class RequestTicket:
    action: str
    generation: int


class RequestGenerations:
    """Monotonic per-action counters."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current: dict[str, int] = {}

    def begin(self, action: str) -> RequestTicket:
        with self._lock:
            generation = self._current.get(action, 0) + 1
            self._current[action] = generation
        return RequestTicket(action=action, generation=generation)

    def is_current(self, ticket: RequestTicket) -> bool:
        with self._lock:
            return self._current.get(ticket.action, 0) == ticket.generation

    def invalidate(self, action: str):
        """Make every outstanding ticket for action stale."""
        with self._lock:
            self._current[action] = self._current.get(action, 0) + 1
