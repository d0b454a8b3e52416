"""
Routes de gestion des contenus éditoriaux (`/content`).

Lecture publique de la version active d'une section; édition, historique, restauration, aperçu et
audit réservés aux administrateurs authentifiés. Les routes ne parlent qu'au `ContentService`:
jamais directement au cache ni au stockage.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from cms.api.deps import get_content_service, get_current_admin
from cms.api.schemas import (
    AuditEntryResponse,
    AuditResponse,
    ContentResponse,
    HistoryResponse,
    PreviewResponse,
)
from cms.apigw.errors import not_found
from cms.domain.auth import TokenData
from cms.domain.content_service import ContentService

router = APIRouter(prefix="/content", tags=["content"])
admin_dep = Depends(get_current_admin)
service_dep = Depends(get_content_service)


@router.get("/{section}", response_model=ContentResponse)
def read_content(section: str, service: ContentService = service_dep):
    """Retourne la version active d'une section (404 si jamais écrite)."""
    cv = service.read(section)
    if cv is None:
        raise not_found("Content not found")
    return ContentResponse.from_domain(cv)


@router.post("/{section}", response_model=ContentResponse)
def update_content(
    section: str,
    payload: dict[str, Any] = Body(...),
    admin: TokenData = admin_dep,
    service: ContentService = service_dep,
):
    """Crée une nouvelle version active (400 si le contenu est invalide)."""
    cv = service.update(section, payload, actor_id=admin.actor_id)
    return ContentResponse.from_domain(cv)


@router.get("/{section}/versions", response_model=HistoryResponse)
def list_versions(
    section: str,
    limit: int | None = Query(None),
    admin: TokenData = admin_dep,
    service: ContentService = service_dep,
):
    """Historique des versions, la plus récente d'abord (limite bornée côté stockage)."""
    versions = service.history(section, limit)
    return HistoryResponse(
        section=section, versions=[ContentResponse.from_domain(v) for v in versions]
    )


@router.get("/{section}/versions/{version}", response_model=ContentResponse)
def get_version(
    section: str,
    version: int,
    admin: TokenData = admin_dep,
    service: ContentService = service_dep,
):
    """Version exacte d'une section, historique comprise (404 si absente)."""
    cv = service.version(section, version)
    if cv is None:
        raise not_found("Version not found")
    return ContentResponse.from_domain(cv)


@router.post("/{section}/versions/{version}/restore", response_model=ContentResponse)
def restore_version(
    section: str,
    version: int,
    admin: TokenData = admin_dep,
    service: ContentService = service_dep,
):
    """Republie une version historique comme nouvelle version active."""
    cv = service.restore(section, version, actor_id=admin.actor_id)
    return ContentResponse.from_domain(cv)


@router.post("/{section}/preview", response_model=PreviewResponse)
def preview_content(
    section: str,
    payload: dict[str, Any] = Body(...),
    admin: TokenData = admin_dep,
    service: ContentService = service_dep,
):
    """Aperçu rendu d'un brouillon, sans validation ni persistance."""
    return PreviewResponse(section=section, preview=service.preview(section, payload))


@router.get("/{section}/audit", response_model=AuditResponse)
def list_audit(
    section: str,
    limit: int | None = Query(None),
    admin: TokenData = admin_dep,
    service: ContentService = service_dep,
):
    """Journal d'audit d'une section, entrées les plus récentes d'abord."""
    entries = service.audit(section, limit)
    return AuditResponse(
        section=section, entries=[AuditEntryResponse.from_domain(e) for e in entries]
    )
