"""
Endpoint de santé pour vérifier la disponibilité de l'API, de la base et du cache.

Expose `/health`: 200 si la base répond, 503 sinon (le cache peut encore servir des lectures).
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from cms.api.deps import get_content_service
from cms.core.http_constants import HTTP_OK, HTTP_SERVICE_UNAVAILABLE
from cms.domain.content_service import ContentService
from cms.domain.errors import StorageUnavailable

router = APIRouter(tags=["health"])


@router.get("/health")
def health(service: ContentService = Depends(get_content_service)):
    """Vérifie la base de données et rapporte le backend de cache utilisé."""
    try:
        service.store.ping()
        database = "connected"
    except StorageUnavailable:
        database = "disconnected"
    ok = database == "connected"
    return JSONResponse(
        status_code=HTTP_OK if ok else HTTP_SERVICE_UNAVAILABLE,
        content={
            "status": "ok" if ok else "error",
            "database": database,
            "cache": getattr(service.cache, "backend_name", "unknown"),
        },
    )
