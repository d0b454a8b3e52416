"""
Routes d'authentification des administrateurs.

Fournit la connexion (`/auth/login`) qui délivre un JWT dont le `sub` est l'identifiant de
l'administrateur; ce jeton est exigé par les routes d'édition de contenu.
"""

from fastapi import APIRouter, Depends

from cms.api.deps import get_app_settings, get_user_repo
from cms.api.schemas import LoginPayload, TokenResponse
from cms.apigw.errors import unauthorized
from cms.core.settings import Settings
from cms.domain.auth import create_access_token, verify_password
from cms.infra.repo.admin_user_repo import AdminUserRepo

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(
    p: LoginPayload,
    users: AdminUserRepo = Depends(get_user_repo),
    settings: Settings = Depends(get_app_settings),
):
    """Authentifie un administrateur et retourne un token d'accès."""
    user = users.get_by_email(str(p.email))
    if not user or not user.get("is_admin"):
        raise unauthorized("invalid_credentials")
    if not verify_password(p.password, user.get("password_hash", "")):
        raise unauthorized("invalid_credentials")
    token = create_access_token(
        secret=settings.JWT_SECRET,
        alg=settings.JWT_ALG,
        expires_min=settings.JWT_EXPIRES_MIN,
        payload={"sub": str(user["id"]), "email": user["email"]},
    )
    return TokenResponse(access_token=token)
