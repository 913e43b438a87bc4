"""
Proxy générique vers l'API Prokerala.

Tout `GET /api/v2/...` est relayé vers `{PROKERALA_API_HOST}/v2/...` avec le jeton Bearer; statut,
corps et type de contenu amont sont renvoyés tels quels.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from backend.api.deps import get_orchestrator
from backend.core.http_constants import CONTENT_TYPE_JSON
from backend.services.profile_orchestrator import ProfileOrchestrator

router = APIRouter(prefix="/api", tags=["proxy"])
orchestrator_dep = Depends(get_orchestrator)


@router.get("/v2/{path:path}")
async def proxy_v2(path: str, request: Request, orch: ProfileOrchestrator = orchestrator_dep):
    """Relaye la requête (query string ré-encodée, `+` préservé)."""
    resp = await orch.forward(f"/v2/{path}", request.url.query)
    return Response(
        content=resp.content,
        status_code=resp.status_code,
        media_type=resp.headers.get("content-type", CONTENT_TYPE_JSON),
    )
