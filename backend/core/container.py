"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, cache de jetons, broker, client Prokerala,
orchestrateurs, LLM) et expose un singleton `container` utilisé par le reste de l'application.
"""

import os

from backend.core.settings import Settings, get_settings
from backend.domain.entities import Credentials
from backend.domain.insight_orchestrator import InsightOrchestrator
from backend.infra.http_clients import ProkeralaClient
from backend.infra.llm.gemini_client import GeminiLLM
from backend.infra.token_broker import TokenBroker, TokenCache
from backend.services.profile_orchestrator import ProfileOrchestrator


def _env_or_settings(key: str, settings: Settings) -> str:
    """Retourne d'abord l'env, sinon l'attribut dans settings, sinon chaîne vide.

    Ne loggue jamais la valeur du secret.
    """
    val = os.getenv(key)
    if val:
        return val
    return getattr(settings, key, "") or ""


class Container:
    def __init__(self, settings: Settings | None = None, transport=None):
        self.settings = settings or get_settings()
        s = self.settings
        self.credentials = Credentials(
            client_id=self.resolve_secret("CLIENT_ID"),
            client_secret=self.resolve_secret("CLIENT_SECRET"),
        )
        # Cache process-wide: un processus neuf démarre à froid
        self.token_cache = TokenCache()
        self.broker = TokenBroker(
            s.PROKERALA_API_HOST,
            self.token_cache,
            safety_margin_s=s.TOKEN_SAFETY_MARGIN_S,
            timeout_s=s.UPSTREAM_TIMEOUT_S,
            transport=transport,
        )
        self.prokerala = ProkeralaClient(timeout_s=s.UPSTREAM_TIMEOUT_S, transport=transport)
        self.orchestrator = ProfileOrchestrator(
            s.PROKERALA_API_HOST, self.broker, self.prokerala, self.credentials
        )
        self.llm = GeminiLLM(
            api_key=self.resolve_secret("GEMINI_API_KEY"),
            model=s.GEMINI_MODEL,
            api_host=s.GEMINI_API_HOST,
            timeout_s=s.UPSTREAM_TIMEOUT_S,
            transport=transport,
        )
        self.insight = InsightOrchestrator(self.llm)

    def resolve_secret(self, key: str) -> str:
        """Instance-level secret resolution: env → settings.

        Ne journalise jamais la valeur du secret.
        """
        return _env_or_settings(key, self.settings)


container = Container()
