"""
Application principale FastAPI.

Ce module assemble les composants de l'application : logging, middlewares, gestion d'erreurs,
routes de contenu, d'authentification, de santé et de métriques.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (request id, métriques)
- Monter les routers (contenu et auth sous le préfixe d'API, santé et métriques à la racine)
"""

from __future__ import annotations

from fastapi import FastAPI

from cms.api.routes_auth import router as auth_router
from cms.api.routes_content import router as content_router
from cms.api.routes_health import router as health_router
from cms.apigw.errors import register_error_handlers
from cms.app.metrics import PrometheusMiddleware, metrics_router
from cms.core.container import container
from cms.core.logging import setup_logging
from cms.middlewares.request_id import RequestIDMiddleware


def create_app() -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog)
    - Lit les paramètres d'exécution
    - Ajoute les middlewares utiles au debug/traçabilité
    - Publie les routes de contenu, d'auth, de santé et de métriques
    """
    settings = container.settings
    setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router, prefix=settings.API_PREFIX)
    app.include_router(content_router, prefix=settings.API_PREFIX)
    app.include_router(metrics_router)
    return app


app = create_app()
