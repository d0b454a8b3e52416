"""
Modèle de domaine des versions de contenu éditorial (POPO).

Ce module définit `ContentVersion`, un instantané immuable du contenu d'une section (hero, faq,
annonces...) à un numéro de version donné, et `AuditEntry`, la trace d'une écriture acceptée.
"""

# ============================================================
# Module : cms/domain/content_version.py
# Objet  : Versions de contenu et entrées d'audit (objets domaine).
# ============================================================

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

ACTION_UPDATE = "update"
ACTION_RESTORE = "restore"


def _as_utc(value: datetime) -> datetime:
    # SQLite restitue des datetimes naïfs
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


@dataclass(frozen=True)
class ContentVersion:
    """
    Version de contenu d'une section (objet domaine).

    Attributs
    - id: identifiant attribué par le stockage.
    - section: clé de la section (ex: "hero").
    - payload: dictionnaire champ -> valeur (schéma validé en amont).
    - version: entier strictement croissant par section, à partir de 1.
    - is_active: vrai pour l'unique version courante de la section.
    - created_by: identifiant de l'auteur.
    - created_at: date de création (UTC).
    """

    id: int
    section: str
    payload: dict[str, Any]
    version: int
    is_active: bool
    created_by: int | None
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Sérialise la version en dict compatible JSON."""
        return {
            "id": self.id,
            "section": self.section,
            "payload": self.payload,
            "version": self.version,
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": _as_utc(self.created_at).isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentVersion:
        """Reconstruit une version depuis `to_dict` (lève KeyError/ValueError si incomplet)."""
        return cls(
            id=int(data["id"]),
            section=str(data["section"]),
            payload=dict(data["payload"]),
            version=int(data["version"]),
            is_active=bool(data["is_active"]),
            created_by=data.get("created_by"),
            created_at=_as_utc(datetime.fromisoformat(data["created_at"])),
        )


@dataclass(frozen=True)
class AuditEntry:
    """Entrée du journal d'audit: une par écriture acceptée, jamais modifiée."""

    id: int
    section: str
    version: int
    action: str
    user_id: int | None
    created_at: datetime = field(compare=False)
