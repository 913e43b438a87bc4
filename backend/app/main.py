"""
Application principale FastAPI.

Ce module assemble les composants de l'application : middlewares, handlers d'erreurs, routes et
métriques du proxy astrologique.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (CORS, request id, métriques, timing)
- Enregistrer l'enveloppe d'erreur unique
- Monter les routers (santé, profil/graphique/insight, proxy, métriques)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.routes_astrology import router as astrology_router
from backend.api.routes_health import router as health_router
from backend.api.routes_proxy import router as proxy_router
from backend.apigw.errors import register_error_handlers
from backend.app.metrics import PrometheusMiddleware, metrics_router
from backend.core.container import container
from backend.core.logging import setup_logging
from backend.middlewares.request_id import RequestIDMiddleware
from backend.middlewares.timing import TimingMiddleware


def create_app() -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog)
    - Lit les paramètres d'exécution
    - Ajoute les middlewares (le dernier ajouté est le plus externe)
    - Publie les routes
    """
    settings = container.settings
    setup_logging(
        json_logs=settings.LOG_JSON,
        level=logging.DEBUG if settings.APP_DEBUG else logging.INFO,
    )
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.add_middleware(TimingMiddleware)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(o) for o in settings.CORS_ORIGINS],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(astrology_router)
    app.include_router(proxy_router)
    app.include_router(metrics_router)
    return app


app = create_app()
