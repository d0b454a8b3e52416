"""
Métriques Prometheus pour l'application.

Ce module définit les métriques HTTP et les compteurs alimentés par les `OperationSignal` du service
de contenu (hit/miss cache, issues des écritures), et expose `/metrics`.
"""

import time
from collections.abc import Iterable

from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from cms.domain.content_service import OperationSignal

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

CONTENT_CACHE_LOOKUPS = Counter(
    "content_cache_lookups_total",
    "Content reads by cache result (hit, miss, absent)",
    ["section", "result"],
)
CONTENT_OPERATIONS = Counter(
    "content_operations_total",
    "Content service operations by outcome",
    ["operation", "section", "outcome"],
)


def labelize_section(section: str | None, allowed: Iterable[str]) -> str:
    """Project section label through the known sections; otherwise 'unknown'."""
    value = (section or "").strip()
    return value if value in set(allowed) else "unknown"


def record_content_signal(signal: OperationSignal, allowed_sections: Iterable[str] = ()) -> None:
    """Traduit un `OperationSignal` en incréments de compteurs Prometheus."""
    section = labelize_section(signal.section, allowed_sections)
    if signal.operation == "read" and signal.outcome in ("hit", "miss", "absent"):
        CONTENT_CACHE_LOOKUPS.labels(section=section, result=signal.outcome).inc()
    CONTENT_OPERATIONS.labels(
        operation=signal.operation, section=section, outcome=signal.outcome
    ).inc()


@metrics_router.get("/metrics")
def metrics():
    """Expose les métriques Prometheus au format texte."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def route_template(request: Request) -> str:
    """Gabarit complet de la route servie, préfixes de montage compris (`unmatched` sinon).

    Selon la version de Starlette, un routeur inclus avec préfixe est monté: le préfixe est alors
    dans `root_path` et non dans le gabarit de la route.
    """
    route = request.scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    if not template:
        return "unmatched"
    mounted = (request.scope.get("root_path") or "").rstrip("/")
    return mounted + template


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Le label `route` utilise le gabarit de route (`/api/v1/content/{section}`) et non le chemin
    brut, pour borner la cardinalité.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = route_template(request)
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
