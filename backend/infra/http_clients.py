"""Clients HTTP externes (API Prokerala).

Objectif du module
------------------
- Encapsuler les appels réseau authentifiés vers Prokerala.
- Normaliser toute erreur (réseau, statut HTTP, parsing) en `UpstreamError` à la frontière,
  avec le discriminant `kind`.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
import structlog

from backend.app.metrics import UPSTREAM_CALLS, UPSTREAM_LATENCY
from backend.core.http_constants import (
    DEFAULT_TIMEOUT,
    HTTP_GATEWAY_TIMEOUT,
    HTTP_MULTIPLE_CHOICES,
    HTTP_OK,
    MAX_ERROR_BODY_CHARS,
)
from backend.domain.errors import UpstreamError, UpstreamErrorKind

log = structlog.get_logger(__name__)


def is_success(status_code: int) -> bool:
    return HTTP_OK <= status_code < HTTP_MULTIPLE_CHOICES


def error_detail(resp: httpx.Response) -> str:
    """Message lisible d'une réponse en échec.

    Forme structurée Prokerala `{"errors": [{"detail": ...}]}` si possible, sinon statut + corps.
    """
    try:
        detail = resp.json()["errors"][0]["detail"]
    except (ValueError, KeyError, IndexError, TypeError):
        detail = None
    if isinstance(detail, str) and detail:
        return detail
    body = resp.text[:MAX_ERROR_BODY_CHARS].strip()
    return f"HTTP {resp.status_code}: {body}" if body else f"HTTP {resp.status_code}"


def is_image(resp: httpx.Response) -> bool:
    return resp.headers.get("content-type", "").lower().startswith("image/")


class ProkeralaClient:
    """Client GET authentifié (Bearer) vers l'API Prokerala."""

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialise le client.

        Args:
            timeout_s: Timeout par appel amont; un dépassement équivaut à un échec HTTP.
            transport: Transport httpx optionnel (tests: `httpx.MockTransport`).
        """
        self.timeout_s = timeout_s
        self._transport = transport

    def session(self) -> httpx.AsyncClient:
        """Ouvre un client httpx; à utiliser en `async with` le temps d'une requête entrante."""
        return httpx.AsyncClient(transport=self._transport, timeout=self.timeout_s)

    async def get(
        self,
        session: httpx.AsyncClient,
        endpoint: str,
        url: str,
        token: str,
        *,
        check: bool = True,
    ) -> httpx.Response:
        """Émet un GET et valide le statut (sauf `check=False`, utilisé par le proxy).

        Raises:
            UpstreamError: réseau/timeout (`network`) ou statut non-2xx (`http-status`).
        """
        start = time.perf_counter()
        try:
            resp = await session.get(url, headers={"Authorization": f"Bearer {token}"})
        except httpx.TimeoutException as exc:
            UPSTREAM_CALLS.labels(endpoint=endpoint, outcome="timeout").inc()
            log.warning("upstream_failed", endpoint=endpoint, kind="timeout")
            raise UpstreamError(
                endpoint,
                UpstreamErrorKind.NETWORK,
                f"timed out after {self.timeout_s}s",
                status_code=HTTP_GATEWAY_TIMEOUT,
            ) from exc
        except httpx.HTTPError as exc:
            UPSTREAM_CALLS.labels(endpoint=endpoint, outcome="network").inc()
            log.warning("upstream_failed", endpoint=endpoint, kind="network", error=str(exc))
            raise UpstreamError(
                endpoint, UpstreamErrorKind.NETWORK, str(exc) or "network error"
            ) from exc
        finally:
            UPSTREAM_LATENCY.labels(endpoint=endpoint).observe(time.perf_counter() - start)

        if check and not is_success(resp.status_code):
            detail = error_detail(resp)
            UPSTREAM_CALLS.labels(endpoint=endpoint, outcome="http_error").inc()
            log.warning(
                "upstream_failed",
                endpoint=endpoint,
                kind="http-status",
                status_code=resp.status_code,
            )
            raise UpstreamError(
                endpoint, UpstreamErrorKind.HTTP_STATUS, detail, status_code=resp.status_code
            )
        UPSTREAM_CALLS.labels(endpoint=endpoint, outcome="ok").inc()
        log.debug("upstream_call", endpoint=endpoint, status_code=resp.status_code)
        return resp

    async def get_data(
        self, session: httpx.AsyncClient, endpoint: str, url: str, token: str
    ) -> dict[str, Any]:
        """GET puis extraction du champ `data` de la réponse JSON.

        Raises:
            UpstreamError: en plus des cas de `get`, corps non-JSON ou sans `data` (`parse`).
        """
        resp = await self.get(session, endpoint, url, token)
        try:
            payload = resp.json()
        except ValueError as exc:
            raise UpstreamError(
                endpoint, UpstreamErrorKind.PARSE, "response is not JSON", resp.status_code
            ) from exc
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise UpstreamError(
                endpoint, UpstreamErrorKind.PARSE, "response has no data object", resp.status_code
            )
        return data
