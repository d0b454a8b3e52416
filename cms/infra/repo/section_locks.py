"""Verrous d'exclusion mutuelle par section (in-process).

Deux écrivains d'une même section sont sérialisés; deux sections différentes ne se bloquent
jamais. La sérialisation inter-processus est assurée par la base (voir `ContentVersionRepo`).
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class SectionLocks:
    """Registre paresseux de `threading.Lock`, un par section."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def for_section(self, section: str) -> threading.Lock:
        """Retourne (en le créant au besoin) le verrou propre à `section`."""
        with self._guard:
            lock = self._locks.get(section)
            if lock is None:
                lock = threading.Lock()
                self._locks[section] = lock
            return lock

    @contextmanager
    def hold(self, section: str, timeout: float) -> Iterator[bool]:
        """Tente d'acquérir le verrou de `section` pendant `timeout` secondes.

        Produit True si le verrou est tenu (et le relâche en sortie), False sinon.
        """
        lock = self.for_section(section)
        acquired = lock.acquire(timeout=timeout)
        try:
            yield acquired
        finally:
            if acquired:
                lock.release()
