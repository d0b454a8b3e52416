# Schémas Pydantic exposés par l'API de contenu (requêtes et réponses).

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from cms.domain.content_version import AuditEntry, ContentVersion


class ContentResponse(BaseModel):
    """Version de contenu telle que renvoyée par l'API.

    Champs:
    - section: clé de la section
    - version: numéro de version (>= 1)
    - content: dictionnaire des champs du contenu
    - isActive: vrai pour la version courante
    - createdBy: identifiant de l'auteur
    - createdAt: date de création (ISO 8601)

    Le contenu reste imbriqué sous `content`, jamais fusionné avec les métadonnées.
    """

    model_config = ConfigDict(populate_by_name=True)

    section: str
    version: int
    content: dict[str, Any]
    is_active: bool = Field(alias="isActive")
    created_by: int | None = Field(default=None, alias="createdBy")
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_domain(cls, cv: ContentVersion) -> ContentResponse:
        return cls(
            section=cv.section,
            version=cv.version,
            content=cv.payload,
            is_active=cv.is_active,
            created_by=cv.created_by,
            created_at=cv.created_at,
        )


class HistoryResponse(BaseModel):
    """Historique d'une section, versions les plus récentes d'abord."""

    section: str
    versions: list[ContentResponse]


class PreviewResponse(BaseModel):
    """Brouillon rendu (Markdown -> HTML), jamais persisté."""

    section: str
    preview: dict[str, Any]


class AuditEntryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    section: str
    version: int
    action: str
    user_id: int | None = Field(default=None, alias="userId")
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_domain(cls, entry: AuditEntry) -> AuditEntryResponse:
        return cls(
            section=entry.section,
            version=entry.version,
            action=entry.action,
            user_id=entry.user_id,
            created_at=entry.created_at,
        )


class AuditResponse(BaseModel):
    section: str
    entries: list[AuditEntryResponse]


class LoginPayload(BaseModel):
    """Payload pour la connexion d'un administrateur."""

    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
