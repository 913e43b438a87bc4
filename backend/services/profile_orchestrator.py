# ============================================================
# Module : backend/services/profile_orchestrator.py
# Objet  : Fan-out des appels Prokerala et fusion en un profil.
# Invariants :
#  - Les appels d'un même profil partent ensemble (gather) et sont tous attendus.
#  - Un seul échec annule la fusion: jamais de profil partiel.
#  - Les URL sont construites par `backend.domain.upstream_urls` (le `+` reste littéral).
# ============================================================
"""Orchestrateur de profil astrologique.

Assemble kundli, périodes de dasha et positions natales à partir d'appels amont concurrents, ou
renvoie le graphique SVG brut.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from backend.core.http_constants import (
    ENDPOINT_CHART,
    ENDPOINT_DASHA_PERIODS,
    ENDPOINT_KUNDLI,
    ENDPOINT_NATAL_PLANET_POSITION,
)
from backend.domain.entities import BirthQuery, Credentials, MergedProfile
from backend.domain.errors import UpstreamError, UpstreamErrorKind
from backend.domain.upstream_urls import (
    PROFILE_ENDPOINTS,
    build_url,
    endpoint_url,
    parse_passthrough_query,
)
from backend.infra.http_clients import ProkeralaClient, error_detail, is_image
from backend.infra.token_broker import TokenBroker

log = structlog.get_logger(__name__)


def merge_results(
    kundli: dict[str, Any],
    dasha: dict[str, Any],
    planet_positions: dict[str, Any],
    chart_svg: str | None = None,
) -> MergedProfile:
    """Fusionne les charges `data` des endpoints.

    Projette aussi `planet_positions.ascendant`/`planets` sur la kundli (`ascendant`,
    `planet_positions`), forme attendue par les classifieurs et le front-end.
    """
    merged_kundli = dict(kundli)
    merged_kundli["ascendant"] = planet_positions.get("ascendant")
    planets = planet_positions.get("planets")
    if planets is None:
        # forme native de l'endpoint natal-planet-position
        planets = planet_positions.get("planet_position")
    merged_kundli["planet_positions"] = planets
    return MergedProfile(
        kundli=merged_kundli,
        dasha=dict(dasha),
        planet_positions=dict(planet_positions),
        chart_svg=chart_svg,
    )


class ProfileOrchestrator:
    """Émet les appels amont nécessaires à un profil et fusionne leurs résultats."""

    def __init__(
        self,
        api_host: str,
        broker: TokenBroker,
        client: ProkeralaClient,
        credentials: Credentials,
    ) -> None:
        """Initialise l'orchestrateur avec ses collaborateurs injectés."""
        self.api_host = api_host.rstrip("/")
        self.broker = broker
        self.client = client
        self.credentials = credentials

    async def _token(self) -> str:
        return await self.broker.get_access_token(
            self.credentials.client_id, self.credentials.client_secret
        )

    async def _chart_svg(self, session: httpx.AsyncClient, query: BirthQuery, token: str) -> str:
        url = endpoint_url(self.api_host, ENDPOINT_CHART, query)
        resp = await self.client.get(session, ENDPOINT_CHART, url, token)
        if not is_image(resp):
            raise UpstreamError(
                ENDPOINT_CHART, UpstreamErrorKind.PARSE, error_detail(resp), resp.status_code
            )
        return resp.text

    async def build_profile(self, query: BirthQuery, include_chart: bool = False) -> MergedProfile:
        """Construit le profil fusionné.

        Raises:
            ConfigurationError, AuthenticationError: via le broker de jetons.
            UpstreamError: premier endpoint en échec (ordre de déclaration).
        """
        token = await self._token()
        endpoints: list[str] = list(PROFILE_ENDPOINTS)
        async with self.client.session() as session:
            calls = [
                self.client.get_data(session, ep, endpoint_url(self.api_host, ep, query), token)
                for ep in PROFILE_ENDPOINTS
            ]
            if include_chart:
                endpoints.append(ENDPOINT_CHART)
                calls.append(self._chart_svg(session, query, token))
            results = await asyncio.gather(*calls, return_exceptions=True)

        for endpoint, result in zip(endpoints, results, strict=True):
            if isinstance(result, BaseException):
                log.warning("profile_aborted", failed_endpoint=endpoint)
                raise result

        by_endpoint = dict(zip(endpoints, results, strict=True))
        profile = merge_results(
            by_endpoint[ENDPOINT_KUNDLI],
            by_endpoint[ENDPOINT_DASHA_PERIODS],
            by_endpoint[ENDPOINT_NATAL_PLANET_POSITION],
            chart_svg=by_endpoint.get(ENDPOINT_CHART),
        )
        log.info("profile_built", endpoints=endpoints)
        return profile

    async def build_chart(self, query: BirthQuery) -> str:
        """Retourne le SVG du graphique tel que reçu (aucun parsing JSON)."""
        token = await self._token()
        async with self.client.session() as session:
            return await self._chart_svg(session, query, token)

    async def forward(self, path: str, raw_query: str) -> httpx.Response:
        """Relaye un GET `/v2/...` tel quel (statut et corps amont conservés).

        La query entrante est décodée sans décodage formulaire puis ré-encodée, de sorte que
        `+` comme `%2B` arrivent en `+` littéral.
        """
        token = await self._token()
        url = build_url(self.api_host, path, parse_passthrough_query(raw_query))
        async with self.client.session() as session:
            return await self.client.get(session, "passthrough", url, token, check=False)
