"""
Endpoint de santé pour vérifier la disponibilité de l'API.

Expose `/health`: statut général, présence des identifiants Prokerala (jamais leur valeur) et
état du cache de jetons.
"""


from fastapi import APIRouter

from backend.core.container import container

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Vérifie la disponibilité de l'API et la configuration des secrets."""
    return {
        "status": "ok",
        "credentials_configured": container.credentials.complete,
        "token_cached": container.token_cache.has_token,
        "insight_configured": bool(container.llm.api_key),
    }
