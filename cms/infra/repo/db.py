"""DB utilities for SQLAlchemy sessions/engine.

Uses `DATABASE_URL` env var or falls back to a SQLite file (`./cms.db`, as in `alembic.ini`).
"""

from __future__ import annotations

import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from weakref import WeakKeyDictionary

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///./cms.db"

# Un moteur à connexion unique (StaticPool) ne tolère qu'une transaction à la fois
_single_connection_locks: WeakKeyDictionary[Engine, threading.RLock] = WeakKeyDictionary()
_registry_lock = threading.Lock()


def is_memory_sqlite(db_url: str) -> bool:
    """Indique si l'URL désigne une base SQLite en mémoire."""
    if not db_url.startswith("sqlite"):
        return False
    path = db_url.split("://", 1)[-1]
    return path in ("", "/") or ":memory:" in path


def get_engine(url: str | None = None, connect_timeout_s: float = 5.0) -> Engine:
    """Crée un moteur SQLAlchemy à partir de l'URL de base de données.

    - SQLite fichier (défaut): `timeout` borne l'attente sur le verrou d'écriture.
    - SQLite mémoire, uniquement sur demande explicite: une connexion unique partagée (StaticPool)
      pour que toutes les sessions voient les mêmes tables; `session_scope` sérialise alors les
      sessions de ce moteur.
    - Autres backends: `connect_timeout` et `pool_pre_ping` pour échouer vite si la base tombe.
    """
    db_url = url or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
    kwargs: dict = {"future": True, "echo": False}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": connect_timeout_s}
        if is_memory_sqlite(db_url):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["connect_args"] = {"connect_timeout": max(1, int(connect_timeout_s))}
        kwargs["pool_pre_ping"] = True
        kwargs["pool_timeout"] = connect_timeout_s
    return create_engine(db_url, **kwargs)


def get_session_factory(engine: Engine) -> sessionmaker:
    """Crée une factory de sessions SQLAlchemy."""
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False)


def _engine_lock(engine: Engine | None) -> threading.RLock | None:
    if engine is None or not isinstance(engine.pool, StaticPool):
        return None
    with _registry_lock:
        lock = _single_connection_locks.get(engine)
        if lock is None:
            lock = _single_connection_locks[engine] = threading.RLock()
        return lock


@contextmanager
def serialized(engine: Engine | None) -> Iterator[None]:
    """Sérialise l'accès à un moteur à connexion unique; sans effet pour les autres moteurs."""
    lock = _engine_lock(engine)
    if lock is None:
        yield
        return
    with lock:
        yield


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Contexte de session SQLAlchemy avec gestion automatique des transactions.

    Commit en sortie normale, rollback sur toute exception (qui est relancée), fermeture dans tous
    les cas: soit tout le travail de la session est visible, soit rien. Sur un moteur à connexion
    unique, une seule session est ouverte à la fois.
    """
    with serialized(factory.kw.get("bind")):
        session = factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
