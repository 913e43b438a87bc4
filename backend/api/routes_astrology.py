"""
Routes astrologiques: profil fusionné, graphique SVG et insight IA.

Ce module regroupe les endpoints `/api` qui composent broker de jetons, orchestrateur de fan-out et
classifieurs. Les erreurs du domaine sont converties en enveloppe JSON par les handlers de
`backend.apigw.errors`.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from pydantic import ValidationError

from backend.api.deps import get_insight, get_orchestrator, get_settings_dep
from backend.api.schemas import BirthRequest, InsightRequest, InsightResponse, ProfileResponse
from backend.app.metrics import CLASSIFICATIONS
from backend.core.http_constants import CONTENT_TYPE_SVG
from backend.core.settings import Settings
from backend.domain.entities import DharmaType, MergedProfile
from backend.domain.insight_orchestrator import InsightOrchestrator
from backend.domain.profile_classifier import summarize_profile
from backend.domain.upstream_urls import parse_passthrough_query
from backend.services.profile_orchestrator import ProfileOrchestrator

router = APIRouter(prefix="/api", tags=["astrology"])
orchestrator_dep = Depends(get_orchestrator)
insight_dep = Depends(get_insight)
settings_dep = Depends(get_settings_dep)


def birth_from_query(request: Request) -> BirthRequest:
    """Lit la requête depuis la query string brute.

    Le décodage standard transformerait le `+` du décalage UTC en espace: on relit donc
    `request.url.query` avec `parse_passthrough_query`.
    """
    params: dict[str, Any] = dict(parse_passthrough_query(request.url.query))
    try:
        return BirthRequest.model_validate(params)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


def _classify(profile: MergedProfile) -> dict[str, Any]:
    summary = summarize_profile(profile)
    dharma = summary["dharma_type"]
    CLASSIFICATIONS.labels(
        kind="dharma", value=dharma.value if isinstance(dharma, DharmaType) else "inconclusive"
    ).inc()
    chakra = summary["chakra"]
    CLASSIFICATIONS.labels(
        kind="chakra", value=getattr(chakra, "chakra_name", "inconclusive")
    ).inc()
    return summary


async def _profile_response(
    payload: BirthRequest, orch: ProfileOrchestrator, settings: Settings
) -> ProfileResponse:
    profile = await orch.build_profile(
        payload.to_query(settings), include_chart=payload.include_chart
    )
    summary = _classify(profile)
    return ProfileResponse(
        profile=profile.model_dump(exclude_none=True),
        dharma_type=summary["dharma_type"],
        chakra=summary["chakra"],
    )


@router.post("/profile", response_model=ProfileResponse)
async def create_profile(
    payload: BirthRequest,
    orch: ProfileOrchestrator = orchestrator_dep,
    settings: Settings = settings_dep,
):
    """
    Construit le profil (kundli, dasha, positions natales) et ses classifications.

    Paramètres:
    - payload: `BirthRequest` (corps JSON).

    Retour: `ProfileResponse`.
    """
    return await _profile_response(payload, orch, settings)


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    request: Request,
    orch: ProfileOrchestrator = orchestrator_dep,
    settings: Settings = settings_dep,
):
    """Variante GET de `/api/profile` (paramètres en query string)."""
    return await _profile_response(birth_from_query(request), orch, settings)


async def _chart_response(
    payload: BirthRequest, orch: ProfileOrchestrator, settings: Settings
) -> Response:
    svg = await orch.build_chart(payload.to_query(settings))
    return Response(content=svg, media_type=CONTENT_TYPE_SVG)


@router.post("/chart", response_class=Response)
async def create_chart(
    payload: BirthRequest,
    orch: ProfileOrchestrator = orchestrator_dep,
    settings: Settings = settings_dep,
):
    """Retourne le graphique natal SVG tel que produit par Prokerala."""
    return await _chart_response(payload, orch, settings)


@router.get("/chart", response_class=Response)
async def get_chart(
    request: Request,
    orch: ProfileOrchestrator = orchestrator_dep,
    settings: Settings = settings_dep,
):
    return await _chart_response(birth_from_query(request), orch, settings)


@router.post("/insight", response_model=InsightResponse)
async def create_insight(
    payload: InsightRequest,
    orch: ProfileOrchestrator = orchestrator_dep,
    insight: InsightOrchestrator = insight_dep,
    settings: Settings = settings_dep,
):
    """
    Génère un insight de coaching à partir du profil classifié et d'une question libre.

    Le profil est construit d'abord; un échec amont interrompt la requête avant tout appel au LLM.
    """
    profile = await orch.build_profile(payload.to_query(settings))
    summary = _classify(profile)
    text = await insight.advise(
        profile, summary["dharma_type"], summary["chakra"], payload.question
    )
    return InsightResponse(
        insight=text, dharma_type=summary["dharma_type"], chakra=summary["chakra"]
    )
