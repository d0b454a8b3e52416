"""Service métier de gestion des contenus versionnés.

Seul point d'entrée des appelants externes (routes HTTP, scripts). Ordonne les composants:

- écriture: validation -> écriture durable atomique -> invalidation du cache -> retour;
- lecture: cache -> (miss) version active durable -> remplissage du cache -> retour.

L'absence n'est jamais mise en cache. Le service ne journalise pas: chaque opération émet un
`OperationSignal` vers le `signal_sink` injecté (métriques, logs, tests).
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from cms.domain.content_version import ACTION_RESTORE, ACTION_UPDATE, AuditEntry, ContentVersion
from cms.domain.errors import (
    CacheInvalidationError,
    ConflictError,
    NotFoundError,
    StorageUnavailable,
    ValidationError,
)
from cms.domain.rendering import render_payload
from cms.domain.validation import ValidationRegistry

# Issues possibles d'une opération
OUTCOME_HIT = "hit"
OUTCOME_MISS = "miss"
OUTCOME_ABSENT = "absent"
OUTCOME_OK = "ok"
OUTCOME_VALIDATION_ERROR = "validation_error"
OUTCOME_CONFLICT = "conflict"
OUTCOME_NOT_FOUND = "not_found"
OUTCOME_STORAGE_UNAVAILABLE = "storage_unavailable"
OUTCOME_CACHE_INVALIDATION_FAILED = "cache_invalidation_failed"


@dataclass(frozen=True)
class OperationSignal:
    """Signal grossier émis par opération: opération, section et issue."""

    operation: str
    section: str
    outcome: str


@dataclass(frozen=True)
class ReadOutcome:
    """Résultat d'une lecture avec l'information de hit/miss cache."""

    section: str
    version: ContentVersion | None
    cache_hit: bool


SignalSink = Callable[[OperationSignal], None]


def _discard(_signal: OperationSignal) -> None:
    return None


class ContentService:
    """Orchestrateur: validation, stockage durable, cache et audit.

    Dépendances injectées:
    - store: dépôt durable (`ContentVersionRepo` ou équivalent).
    - cache: `ContentCache`; seul ce service appelle `set`/`invalidate`.
    - registry: `ValidationRegistry`.
    - signal_sink: reçoit un `OperationSignal` par opération.
    """

    def __init__(
        self,
        store,
        cache,
        registry: ValidationRegistry,
        signal_sink: SignalSink | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.registry = registry
        self._emit = signal_sink or _discard

    def lookup(self, section: str) -> ReadOutcome:
        """Lit la version active d'une section en précisant si le cache a servi."""
        cached = self.cache.get(section)
        if cached is not None:
            self._emit(OperationSignal("read", section, OUTCOME_HIT))
            return ReadOutcome(section=section, version=cached, cache_hit=True)

        # Époque lue avant la base: une invalidation concurrente annule le remplissage
        epoch = self.cache.epoch(section)
        try:
            active = self.store.get_active(section)
        except StorageUnavailable:
            self._emit(OperationSignal("read", section, OUTCOME_STORAGE_UNAVAILABLE))
            raise
        if active is None:
            self._emit(OperationSignal("read", section, OUTCOME_ABSENT))
            return ReadOutcome(section=section, version=None, cache_hit=False)
        self.cache.set(section, active, epoch=epoch)
        self._emit(OperationSignal("read", section, OUTCOME_MISS))
        return ReadOutcome(section=section, version=active, cache_hit=False)

    def read(self, section: str) -> ContentVersion | None:
        """Version active d'une section, ou None si elle n'a jamais été écrite."""
        return self.lookup(section).version

    def update(
        self, section: str, payload: Mapping[str, Any], actor_id: int | None
    ) -> ContentVersion:
        """Valide puis écrit une nouvelle version active, et invalide le cache.

        Lève `ValidationError` (aucune écriture, cache intact), `ConflictError` après une
        seconde course perdue, `StorageUnavailable` si la base est en échec.
        """
        self._check(section, payload, "update")
        return self._write(section, payload, actor_id, ACTION_UPDATE, "update")

    def restore(self, section: str, version: int, actor_id: int | None) -> ContentVersion:
        """Republie le contenu d'une version historique comme nouvelle version active.

        L'historique n'est jamais réécrit: la restauration crée la version N+1.
        """
        try:
            source = self.store.get_version(section, version)
        except StorageUnavailable:
            self._emit(OperationSignal("restore", section, OUTCOME_STORAGE_UNAVAILABLE))
            raise
        if source is None:
            self._emit(OperationSignal("restore", section, OUTCOME_NOT_FOUND))
            raise NotFoundError(section, version)
        self._check(section, source.payload, "restore")
        return self._write(section, source.payload, actor_id, ACTION_RESTORE, "restore")

    def preview(self, section: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Rend les champs riches d'un brouillon, sans toucher au stockage ni au cache."""
        self._emit(OperationSignal("preview", section, OUTCOME_OK))
        return render_payload(copy.deepcopy(dict(payload)))

    def history(self, section: str, limit: int | None = None) -> list[ContentVersion]:
        """Historique des versions (la plus récente d'abord), toujours lu en base."""
        versions = self._fresh("history", section, self.store.get_history, section, limit)
        self._emit(OperationSignal("history", section, OUTCOME_OK))
        return versions

    def version(self, section: str, version: int) -> ContentVersion | None:
        """Version exacte (historique comprise), ou None si absente."""
        found = self._fresh("version", section, self.store.get_version, section, version)
        outcome = OUTCOME_OK if found is not None else OUTCOME_NOT_FOUND
        self._emit(OperationSignal("version", section, outcome))
        return found

    def audit(self, section: str, limit: int | None = None) -> list[AuditEntry]:
        """Journal d'audit d'une section, entrées les plus récentes d'abord."""
        entries = self._fresh("audit", section, self.store.list_audit, section, limit)
        self._emit(OperationSignal("audit", section, OUTCOME_OK))
        return entries

    def _check(self, section: str, payload: Any, operation: str) -> None:
        result = self.registry.validate(section, payload)
        if not result.valid:
            self._emit(OperationSignal(operation, section, OUTCOME_VALIDATION_ERROR))
            raise ValidationError(section, result.errors)

    def _write(
        self,
        section: str,
        payload: Mapping[str, Any],
        actor_id: int | None,
        action: str,
        operation: str,
    ) -> ContentVersion:
        try:
            try:
                created = self.store.write(section, payload, actor_id, action=action)
            except ConflictError:
                # Une seule nouvelle tentative, avec relecture de la version courante
                created = self.store.write(section, payload, actor_id, action=action)
        except ConflictError:
            self._emit(OperationSignal(operation, section, OUTCOME_CONFLICT))
            raise
        except StorageUnavailable:
            self._emit(OperationSignal(operation, section, OUTCOME_STORAGE_UNAVAILABLE))
            raise
        # Strictement après le commit durable, avant de rendre la main
        try:
            self.cache.invalidate(section)
        except CacheInvalidationError:
            self._emit(OperationSignal(operation, section, OUTCOME_CACHE_INVALIDATION_FAILED))
            raise
        self._emit(OperationSignal(operation, section, OUTCOME_OK))
        return created

    def _fresh(self, operation: str, section: str, call, *args):
        try:
            result = call(*args)
        except StorageUnavailable:
            self._emit(OperationSignal(operation, section, OUTCOME_STORAGE_UNAVAILABLE))
            raise
        return result
