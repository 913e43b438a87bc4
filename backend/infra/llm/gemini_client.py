"""
Client LLM basé sur l'API REST Gemini (`generateContent`).

Implémente l'interface LLM via httpx. La clé API est passée en paramètre de requête, comme
l'exige l'API; elle n'est jamais journalisée.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from backend.core.http_constants import CONTENT_TYPE_JSON, DEFAULT_TIMEOUT
from backend.domain.errors import ConfigurationError, UpstreamError, UpstreamErrorKind
from backend.infra.http_clients import error_detail, is_success
from backend.infra.llm.base import LLM

INSIGHT_ENDPOINT = "insight"

log = structlog.get_logger(__name__)


class GeminiLLM(LLM):
    """LLM Gemini (texte seul)."""

    def __init__(
        self,
        api_key: str | None,
        model: str = "gemini-pro",
        api_host: str = "https://generativelanguage.googleapis.com",
        timeout_s: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Gemini client; missing key is only reported at call time."""
        self.api_key = api_key
        self.model = model
        self.api_host = api_host.rstrip("/")
        self.timeout_s = timeout_s
        self._transport = transport

    async def generate(self, prompt: str) -> str:
        """Envoie le prompt et retourne le texte du premier candidat.

        Raises:
            ConfigurationError: clé absente.
            UpstreamError: erreur réseau, statut non-2xx ou réponse inexploitable.
        """
        if not self.api_key:
            raise ConfigurationError("Gemini API key is not configured.")
        url = f"{self.api_host}/v1beta/models/{self.model}:generateContent"
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self.timeout_s
            ) as client:
                resp = await client.post(
                    url,
                    params={"key": self.api_key},
                    json=payload,
                    headers={"Content-Type": CONTENT_TYPE_JSON},
                )
        except httpx.HTTPError as exc:
            log.warning("upstream_failed", endpoint=INSIGHT_ENDPOINT, kind="network")
            raise UpstreamError(
                INSIGHT_ENDPOINT, UpstreamErrorKind.NETWORK, type(exc).__name__
            ) from exc

        if not is_success(resp.status_code):
            log.warning("upstream_failed", endpoint=INSIGHT_ENDPOINT, status_code=resp.status_code)
            raise UpstreamError(
                INSIGHT_ENDPOINT,
                UpstreamErrorKind.HTTP_STATUS,
                error_detail(resp),
                status_code=resp.status_code,
            )
        return self._extract_text(resp)

    def _extract_text(self, resp: httpx.Response) -> str:
        try:
            body: Any = resp.json()
            text = body["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise UpstreamError(
                INSIGHT_ENDPOINT, UpstreamErrorKind.PARSE, "no candidate text in response"
            ) from exc
        return str(text)
