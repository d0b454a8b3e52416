# ============================================================
# Module : cms/infra/repo/content_version_repo.py
# Objet  : Stockage durable des versions de contenu (SQLAlchemy).
# Notes  : source de vérité unique; seul écrivain des lignes
#          `content` et `content_audit_log`.
# ============================================================
"""Dépôt durable des versions de contenu et du journal d'audit.

Invariants tenus par `write`:
- versions strictement séquentielles par section (1, 2, 3...), sans trou ni doublon;
- exactement une ligne active par section après la première écriture;
- désactivation de l'ancienne ligne, insertion de la nouvelle et entrée d'audit dans une même
  transaction: tout est visible ou rien ne l'est.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from ...domain.content_version import ACTION_UPDATE, AuditEntry, ContentVersion
from ...domain.errors import ConflictError, StorageUnavailable
from .db import get_session_factory, serialized, session_scope
from .models import ContentAuditLogORM, ContentVersionORM
from .section_locks import SectionLocks

log = structlog.get_logger(__name__)


class _ActiveRowChanged(Exception):
    """La ligne active lue a été désactivée par un autre écrivain entre-temps."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime | None) -> datetime:
    if value is None:
        return _utcnow()
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _to_domain(row: ContentVersionORM) -> ContentVersion:
    return ContentVersion(
        id=row.id,
        section=row.section,
        payload=copy.deepcopy(row.payload or {}),
        version=row.version,
        is_active=bool(row.is_active),
        created_by=row.created_by,
        created_at=_as_utc(row.created_at),
    )


def _audit_to_domain(row: ContentAuditLogORM) -> AuditEntry:
    return AuditEntry(
        id=row.id,
        section=row.section,
        version=row.version,
        action=row.action,
        user_id=row.user_id,
        created_at=_as_utc(row.created_at),
    )


@contextmanager
def _storage_errors(operation: str, section: str | None = None) -> Iterator[None]:
    """Traduit les pannes du backend SQL en `StorageUnavailable`."""
    try:
        yield
    except (OperationalError, InterfaceError) as err:
        log.error(
            "content_store_unavailable",
            operation=operation,
            section=section,
            error=type(err).__name__,
        )
        raise StorageUnavailable(operation, detail=type(err).__name__) from err


class ContentVersionRepo:
    """Stockage append-only des versions de contenu, autorité sur la numérotation."""

    def __init__(
        self,
        engine: Engine,
        locks: SectionLocks | None = None,
        *,
        lock_timeout_s: float = 5.0,
        max_attempts: int = 3,
        history_default_limit: int = 10,
        history_max_limit: int = 100,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Construit le dépôt.

        Paramètres:
        - engine: moteur SQLAlchemy (tables créées par Alembic ou `create_all`).
        - locks: registre de verrous par section (partagé par tous les écrivains du processus).
        - lock_timeout_s: attente maximale du verrou de section avant `ConflictError`.
        - max_attempts: tentatives de transaction avant `ConflictError` en cas de course.
        - history_default_limit / history_max_limit: bornes de `get_history`.
        - clock: source de temps pour `created_at`.
        """
        self._engine = engine
        self._sessions = get_session_factory(engine)
        self._locks = locks or SectionLocks()
        self._lock_timeout_s = lock_timeout_s
        self._max_attempts = max(1, int(max_attempts))
        self._default_limit = max(1, int(history_default_limit))
        self._max_limit = max(self._default_limit, int(history_max_limit))
        self._clock = clock

    @property
    def locks(self) -> SectionLocks:
        return self._locks

    def clamp_limit(self, limit: int | None) -> int:
        """Borne une limite d'historique à [1, max]; défaut si None."""
        if limit is None:
            return self._default_limit
        return max(1, min(int(limit), self._max_limit))

    def get_active(self, section: str) -> ContentVersion | None:
        """Retourne la version active d'une section, ou None si jamais écrite."""
        with _storage_errors("get_active", section), session_scope(self._sessions) as session:
            row = self._select_active(session, section)
            return _to_domain(row) if row is not None else None

    def get_version(self, section: str, version: int) -> ContentVersion | None:
        """Recherche exacte d'une version, historique compris."""
        stmt = select(ContentVersionORM).where(
            ContentVersionORM.section == section,
            ContentVersionORM.version == int(version),
        )
        with _storage_errors("get_version", section), session_scope(self._sessions) as session:
            row = session.execute(stmt).scalars().first()
            return _to_domain(row) if row is not None else None

    def get_history(self, section: str, limit: int | None = None) -> list[ContentVersion]:
        """Versions d'une section, la plus récente d'abord, bornées par `limit`."""
        stmt = (
            select(ContentVersionORM)
            .where(ContentVersionORM.section == section)
            .order_by(ContentVersionORM.version.desc())
            .limit(self.clamp_limit(limit))
        )
        with _storage_errors("get_history", section), session_scope(self._sessions) as session:
            return [_to_domain(r) for r in session.execute(stmt).scalars().all()]

    def list_audit(self, section: str | None = None, limit: int | None = None) -> list[AuditEntry]:
        """Entrées d'audit (filtrables par section), les plus récentes d'abord."""
        stmt = select(ContentAuditLogORM)
        if section is not None:
            stmt = stmt.where(ContentAuditLogORM.section == section)
        stmt = stmt.order_by(ContentAuditLogORM.id.desc()).limit(self.clamp_limit(limit))
        with _storage_errors("list_audit", section), session_scope(self._sessions) as session:
            return [_audit_to_domain(r) for r in session.execute(stmt).scalars().all()]

    def write(
        self,
        section: str,
        payload: Mapping[str, Any],
        actor_id: int | None,
        action: str = ACTION_UPDATE,
    ) -> ContentVersion:
        """Crée la version suivante d'une section et l'active, de façon atomique.

        Lève `ConflictError` si le verrou de section n'est pas obtenu à temps ou si la course
        persiste au-delà du budget de tentatives, `StorageUnavailable` si la base est en échec.
        """
        with self._locks.hold(section, self._lock_timeout_s) as acquired:
            if not acquired:
                log.warning(
                    "content_write_lock_timeout",
                    section=section,
                    timeout_s=self._lock_timeout_s,
                )
                raise ConflictError(section, attempts=0, reason="lock_timeout")

            last_error: Exception | None = None
            for attempt in range(1, self._max_attempts + 1):
                try:
                    with _storage_errors("write", section):
                        created = self._write_once(section, payload, actor_id, action)
                except (IntegrityError, _ActiveRowChanged) as err:
                    # Un autre processus a gagné la course: transaction annulée, on relit
                    last_error = err
                    log.warning(
                        "content_write_conflict",
                        section=section,
                        attempt=attempt,
                        error=type(err).__name__,
                    )
                    continue
                log.info(
                    "content_version_written",
                    section=section,
                    version=created.version,
                    actor_id=actor_id,
                    action=action,
                )
                return created
            raise ConflictError(section, attempts=self._max_attempts) from last_error

    def ping(self) -> None:
        """Vérifie que la base répond (lève `StorageUnavailable` sinon)."""
        with _storage_errors("ping"), serialized(self._engine), self._engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def _select_active(
        self, session: Session, section: str, for_update: bool = False
    ) -> ContentVersionORM | None:
        stmt = select(ContentVersionORM).where(
            ContentVersionORM.section == section,
            ContentVersionORM.is_active.is_(True),
        )
        if for_update:
            stmt = stmt.with_for_update()
        return session.execute(stmt).scalars().first()

    def _write_once(
        self,
        section: str,
        payload: Mapping[str, Any],
        actor_id: int | None,
        action: str,
    ) -> ContentVersion:
        now = self._clock()
        with session_scope(self._sessions) as session:
            current = self._select_active(session, section, for_update=True)
            previous_version = current.version if current is not None else 0
            if current is not None:
                # Compare-and-swap: ne désactive que si la ligne est toujours active
                result = session.execute(
                    update(ContentVersionORM)
                    .where(
                        ContentVersionORM.id == current.id,
                        ContentVersionORM.is_active.is_(True),
                    )
                    .values(is_active=False)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise _ActiveRowChanged(section)
            row = ContentVersionORM(
                section=section,
                payload=copy.deepcopy(dict(payload)),
                version=previous_version + 1,
                is_active=True,
                created_by=actor_id,
                created_at=now,
            )
            session.add(row)
            session.add(
                ContentAuditLogORM(
                    section=section,
                    version=previous_version + 1,
                    action=action,
                    user_id=actor_id,
                    created_at=now,
                )
            )
            session.flush()
            created = _to_domain(row)
        return created
