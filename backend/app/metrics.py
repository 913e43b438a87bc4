"""
Métriques Prometheus pour l'application.

Ce module définit les métriques HTTP entrantes, les appels amont (Prokerala, Gemini) et
l'émission de jetons, ainsi que le middleware et la route `/metrics`.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Appels amont
UPSTREAM_CALLS = Counter(
    "upstream_calls_total",
    "Total upstream API calls by endpoint and outcome",
    ["endpoint", "outcome"],
)
UPSTREAM_LATENCY = Histogram(
    "upstream_latency_seconds",
    "Latency of upstream API calls",
    ["endpoint"],
)

# Jetons OAuth2 (les hits de cache ne sont pas comptés: seul l'appel réseau l'est)
TOKEN_FETCHES = Counter(
    "token_fetches_total",
    "Token endpoint calls by outcome",
    ["outcome"],
)

# Résultats des classifieurs
CLASSIFICATIONS = Counter(
    "profile_classifications_total",
    "Derived profile classifications",
    ["kind", "value"],
)


@metrics_router.get("/metrics")
def metrics():
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Le label `route` utilise le gabarit de route quand il est connu (évite l'explosion de
    cardinalité du proxy `/api/v2/{path}`).
    """

    async def dispatch(self, request: Request, call_next):
        """
        Traite une requête HTTP et collecte les métriques.

        Args:
            request: Requête HTTP entrante.
            call_next: Fonction pour appeler le middleware suivant.

        Returns:
            Response: Réponse HTTP avec métriques collectées.
        """
        start = time.perf_counter()
        response: Response = await call_next(request)
        route_obj = request.scope.get("route")
        route = getattr(route_obj, "path", None) or request.scope.get("path", "unknown")
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
