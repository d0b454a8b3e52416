"""Taxonomie des erreurs du cœur de gestion de contenu.

Les routes HTTP traduisent ces exceptions en enveloppes d'erreur (voir `cms.apigw.errors`);
le domaine et l'infrastructure ne connaissent pas les codes HTTP.
"""

from __future__ import annotations


class ContentError(Exception):
    """Base de toutes les erreurs métier du contenu."""


class ValidationError(ContentError):
    """Section inconnue ou champs requis manquants; jamais transmise au stockage."""

    def __init__(self, section: str, errors: list[str]) -> None:
        super().__init__(f"Validation failed for section {section!r}: {'; '.join(errors)}")
        self.section = section
        self.errors = list(errors)


class ConflictError(ContentError):
    """Écritures concurrentes non sérialisables dans le budget de tentatives."""

    def __init__(self, section: str, attempts: int, reason: str = "concurrent_write") -> None:
        super().__init__(
            f"Could not serialize write on section {section!r} after {attempts} attempt(s)"
        )
        self.section = section
        self.attempts = attempts
        self.reason = reason


class NotFoundError(ContentError):
    """Version ou section demandée explicitement mais absente."""

    def __init__(self, section: str, version: int | None = None) -> None:
        if version is None:
            super().__init__(f"No record for section {section!r}")
        else:
            super().__init__(f"No record for version {version} of section {section!r}")
        self.section = section
        self.version = version


class StorageUnavailable(ContentError):
    """Stockage durable injoignable ou en échec; toujours remonté à l'appelant."""

    def __init__(self, operation: str, detail: str = "") -> None:
        suffix = f": {detail}" if detail else ""
        super().__init__(f"Durable storage unavailable during {operation}{suffix}")
        self.operation = operation
        self.detail = detail


class CacheInvalidationError(ContentError):
    """Le cache n'a pas pu retirer une entrée après une écriture validée."""

    def __init__(self, section: str, detail: str = "") -> None:
        suffix = f": {detail}" if detail else ""
        super().__init__(f"Cache invalidation failed for section {section!r}{suffix}")
        self.section = section
        self.detail = detail
