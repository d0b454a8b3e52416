"""
Interface de base des caches de contenu.

Le cache ne contient que la version active de chaque section. Il est dérivé, jamais autoritaire:
la seule mutation liée aux écritures est `invalidate`. Chaque invalidation fait avancer une
"époque" par section; un remplissage (`set`) portant une époque périmée est ignoré, ce qui empêche
une lecture concurrente d'une écriture de réinstaller la version remplacée.
"""

from abc import ABC, abstractmethod

from cms.domain.content_version import ContentVersion


class ContentCache(ABC):
    """Interface abstraite pour les caches de versions actives."""

    backend_name = "abstract"

    @abstractmethod
    def get(self, section: str) -> ContentVersion | None:
        """Retourne la version en cache, ou None (miss)."""
        ...

    @abstractmethod
    def set(self, section: str, version: ContentVersion, epoch: int | None = None) -> bool:
        """Peuple l'entrée d'une section.

        Si `epoch` est fourni et ne correspond plus à l'époque courante, rien n'est écrit.
        Retourne True si l'entrée a été écrite.
        """
        ...

    @abstractmethod
    def invalidate(self, section: str) -> None:
        """Retire l'entrée d'une section et fait avancer son époque."""
        ...

    @abstractmethod
    def epoch(self, section: str) -> int:
        """Époque courante d'une section (nombre d'invalidations observées)."""
        ...
