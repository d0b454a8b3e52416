"""Cache mémoire LRU des versions actives (dev, tests, déploiement mono-processus)."""

from __future__ import annotations

import copy
import dataclasses
import threading
from collections import OrderedDict

from cms.domain.content_version import ContentVersion

from .base import ContentCache


def _detached(version: ContentVersion) -> ContentVersion:
    """Copie dont le payload ne partage aucun objet mutable avec l'original."""
    return dataclasses.replace(version, payload=copy.deepcopy(version.payload))


class InMemoryContentCache(ContentCache):
    """
    Cache de versions actives en mémoire, borné en capacité (éviction LRU).

    Non partagé entre processus: plusieurs workers doivent utiliser `RedisContentCache` pour que
    l'invalidation d'un worker soit vue par les autres.
    """

    backend_name = "memory"

    def __init__(self, max_entries: int = 256) -> None:
        """Initialise un cache vide de capacité `max_entries` (>= 1)."""
        self.max_entries = max(1, int(max_entries))
        self._entries: OrderedDict[str, ContentVersion] = OrderedDict()
        self._epochs: dict[str, int] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, section: str) -> ContentVersion | None:
        with self._lock:
            entry = self._entries.get(section)
            if entry is None:
                return None
            self._entries.move_to_end(section)
            return _detached(entry)

    def set(self, section: str, version: ContentVersion, epoch: int | None = None) -> bool:
        with self._lock:
            if epoch is not None and epoch != self._epochs.get(section, 0):
                return False
            self._entries[section] = _detached(version)
            self._entries.move_to_end(section)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
            return True

    def invalidate(self, section: str) -> None:
        with self._lock:
            self._entries.pop(section, None)
            self._epochs[section] = self._epochs.get(section, 0) + 1

    def epoch(self, section: str) -> int:
        with self._lock:
            return self._epochs.get(section, 0)
