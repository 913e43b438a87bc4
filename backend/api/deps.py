"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Centraliser l'accès aux instances du conteneur (orchestrateurs, settings) nécessaires aux
  endpoints.
- Offrir un point de substitution (`app.dependency_overrides`) pour les tests, sans modifier les
  routes.
"""

from backend.core.container import container
from backend.core.settings import Settings
from backend.domain.insight_orchestrator import InsightOrchestrator
from backend.services.profile_orchestrator import ProfileOrchestrator


def get_settings_dep() -> Settings:
    return container.settings


def get_orchestrator() -> ProfileOrchestrator:
    return container.orchestrator


def get_insight() -> InsightOrchestrator:
    return container.insight
