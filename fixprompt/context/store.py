"""ContextStore — conversation state keyed by conversation id.

Backend: in-process memory (MVP). Entries live until deleted or until the
process exits; there is no expiry. Other backends implement the same three
operations and can be passed to ``PromptImprover`` / ``create_app`` instead.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import Lock
from typing import Any

logger = logging.getLogger("fixprompt.context.store")


class ContextStore(ABC):
    """Storage interface: full-replace save, snapshot get, idempotent delete."""

    @abstractmethod
    def save(self, conversation_id: str, context: dict[str, Any]) -> dict[str, Any]:
        """Replace the stored context and stamp ``savedAt``. Returns the stored snapshot."""

    @abstractmethod
    def get(self, conversation_id: str) -> dict[str, Any] | None:
        """Return a snapshot of the stored context, or None when absent."""

    @abstractmethod
    def delete(self, conversation_id: str) -> bool:
        """Remove the context. Returns whether an entry existed."""


class InMemoryContextStore(ContextStore):
    """Dict-backed store with one lock per stored conversation id.

    A lock exists only while its entry does: ``save`` creates it, ``delete``
    drops it, and ``get`` of an unknown id allocates nothing.

    Usage:
        store = InMemoryContextStore()
        store.save("conv-1", {"conversationTopic": "Python"})
        store.get("conv-1")      # {"conversationTopic": "Python", "savedAt": "..."}
        store.delete("conv-1")
    """

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, Any]] = {}
        self._locks: dict[str, Lock] = {}
        self._registry_lock = Lock()

    def _lock_for(self, conversation_id: str) -> Lock:
        with self._registry_lock:
            lock = self._locks.get(conversation_id)
            if lock is None:
                lock = self._locks[conversation_id] = Lock()
            return lock

    def _existing_lock(self, conversation_id: str) -> Lock | None:
        # lookups never register a lock, so unknown ids leave no trace
        with self._registry_lock:
            return self._locks.get(conversation_id)

    def save(self, conversation_id: str, context: dict[str, Any]) -> dict[str, Any]:
        snapshot = copy.deepcopy(dict(context))
        snapshot["savedAt"] = datetime.now(timezone.utc).isoformat()
        while True:
            lock = self._lock_for(conversation_id)
            with lock:
                # a concurrent delete may have retired this lock; retry on a fresh one
                with self._registry_lock:
                    current = self._locks.get(conversation_id) is lock
                if current:
                    self._entries[conversation_id] = snapshot
                    break
        logger.debug(f"Saved context for {conversation_id} ({len(snapshot)} fields)")
        return copy.deepcopy(snapshot)

    def get(self, conversation_id: str) -> dict[str, Any] | None:
        lock = self._existing_lock(conversation_id)
        if lock is None:
            return None
        with lock:
            entry = self._entries.get(conversation_id)
            return copy.deepcopy(entry) if entry is not None else None

    def delete(self, conversation_id: str) -> bool:
        lock = self._existing_lock(conversation_id)
        if lock is None:
            logger.debug(f"Deleted context for {conversation_id} (existed=False)")
            return False
        with lock:
            existed = self._entries.pop(conversation_id, None) is not None
            with self._registry_lock:
                if self._locks.get(conversation_id) is lock:
                    del self._locks[conversation_id]
        logger.debug(f"Deleted context for {conversation_id} (existed={existed})")
        return existed

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        """Drop every entry (for testing)."""
        with self._registry_lock:
            self._entries.clear()
            self._locks.clear()
