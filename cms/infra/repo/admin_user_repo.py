"""Dépôt SQL des comptes administrateurs (éditeurs de contenu)."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.engine import Engine

from .db import get_session_factory, session_scope
from .models import AdminUserORM


def _row_to_dict(row: AdminUserORM) -> dict[str, Any]:
    return {
        "id": row.id,
        "email": row.email,
        "password_hash": row.password_hash,
        "is_admin": bool(row.is_admin),
    }


class AdminUserRepo:
    """Accès aux comptes `admin_users` (lecture par email, création)."""

    def __init__(self, engine: Engine) -> None:
        """Construit le repo sur un moteur SQLAlchemy."""
        self._sessions = get_session_factory(engine)

    def get_by_email(self, email: str) -> dict[str, Any] | None:
        """Recherche un compte par email (insensible à la casse)."""
        stmt = select(AdminUserORM).where(AdminUserORM.email == email.strip().lower())
        with session_scope(self._sessions) as session:
            row = session.execute(stmt).scalars().first()
            return _row_to_dict(row) if row is not None else None

    def create(self, email: str, password_hash: str, is_admin: bool = True) -> dict[str, Any]:
        """Crée un compte. Lève IntegrityError si l'email existe déjà."""
        row = AdminUserORM(
            email=email.strip().lower(),
            password_hash=password_hash,
            is_admin=is_admin,
            created_at=datetime.now(UTC),
        )
        with session_scope(self._sessions) as session:
            session.add(row)
            session.flush()
            return _row_to_dict(row)
