"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Centraliser l'accès aux instances nécessaires aux endpoints (service de contenu, dépôt des
  administrateurs, paramètres) depuis le conteneur.
- Offrir un point de substitution: les tests remplacent ces fonctions via
  `app.dependency_overrides` sans toucher au conteneur global.
- Extraire l'administrateur courant du token Bearer (son `sub` est l'auteur des écritures).
"""

from fastapi import Depends, Header

from cms.apigw.errors import unauthorized
from cms.core.container import container
from cms.core.settings import Settings
from cms.domain.auth import TokenData, decode_token
from cms.domain.content_service import ContentService
from cms.infra.repo.admin_user_repo import AdminUserRepo


def get_content_service() -> ContentService:
    return container.content_service


def get_user_repo() -> AdminUserRepo:
    return container.user_repo


def get_app_settings() -> Settings:
    return container.settings


def get_current_admin(
    authorization: str | None = Header(None),
    settings: Settings = Depends(get_app_settings),
) -> TokenData:
    """Valide le token Bearer et retourne ses données (401 sinon)."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise unauthorized("missing_token")
    token = authorization.split(" ", 1)[1].strip()
    data = decode_token(token, settings.JWT_SECRET, settings.JWT_ALG)
    if data is None:
        raise unauthorized("invalid_token")
    if data.actor_id is None:
        raise unauthorized("invalid_subject")
    return data
