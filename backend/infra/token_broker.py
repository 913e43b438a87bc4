# ============================================================
# Module : backend/infra/token_broker.py
# Objet  : Jeton OAuth2 client-credentials Prokerala + cache mémoire.
# Invariants :
#  - Un seul jeton en cache par processus (slot unique, écrasé).
#  - `expires_at` stocke déjà la marge: la lecture compare seulement à now.
#  - Jamais de secret ni de jeton dans les logs.
# ============================================================
"""Broker de jetons d'accès Prokerala.

Deux requêtes concurrentes sur un cache froid peuvent chacune interroger `/token`: l'émission est
idempotente et le cache est en last-write-wins, on accepte donc cet appel en double plutôt que
d'ajouter un verrou.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import httpx
import structlog

from backend.app.metrics import TOKEN_FETCHES
from backend.core.http_constants import (
    CONTENT_TYPE_FORM,
    DEFAULT_TIMEOUT,
    DEFAULT_TOKEN_SAFETY_MARGIN,
    HTTP_MULTIPLE_CHOICES,
    HTTP_OK,
    MAX_ERROR_BODY_CHARS,
    TOKEN_PATH,
)
from backend.domain.entities import AccessToken
from backend.domain.errors import AuthenticationError, ConfigurationError

log = structlog.get_logger(__name__)


class TokenCache:
    """Slot unique de jeton, créé au premier usage et écrasé à chaque rafraîchissement."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._token: AccessToken | None = None

    def get(self) -> str | None:
        """Retourne la valeur du jeton s'il est encore valide, sinon None."""
        token = self._token
        if token is not None and token.is_valid(self._clock()):
            return token.value
        return None

    def put(self, value: str, lifetime_s: float, safety_margin_s: float) -> AccessToken:
        """Écrit le jeton avec `expires_at = now + lifetime - margin`."""
        self._token = AccessToken(
            value=value, expires_at=self._clock() + lifetime_s - safety_margin_s
        )
        return self._token

    def invalidate(self) -> None:
        self._token = None

    @property
    def has_token(self) -> bool:
        return self.get() is not None


class TokenBroker:
    """Fournit un jeton Bearer valide, depuis le cache ou via `POST /token`."""

    def __init__(
        self,
        api_host: str,
        cache: TokenCache,
        *,
        safety_margin_s: float = DEFAULT_TOKEN_SAFETY_MARGIN,
        timeout_s: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialise le broker.

        Args:
            api_host: Hôte Prokerala (ex: https://api.prokerala.com).
            cache: Cache injecté, partagé pour toute la durée du processus.
            safety_margin_s: Marge retranchée à `expires_in` à l'écriture.
            timeout_s: Timeout de l'appel `/token`.
            transport: Transport httpx optionnel (tests: `httpx.MockTransport`).
        """
        self.api_host = api_host.rstrip("/")
        self.cache = cache
        self.safety_margin_s = safety_margin_s
        self.timeout_s = timeout_s
        self._transport = transport

    async def get_access_token(self, client_id: str | None, client_secret: str | None) -> str:
        """Retourne un jeton valide.

        Raises:
            ConfigurationError: identifiant ou secret vide (aucun appel réseau).
            AuthenticationError: refus ou indisponibilité de l'endpoint de jeton.
        """
        if not client_id or not client_secret:
            log.error("token_credentials_missing")
            raise ConfigurationError("API credentials are not configured.")

        cached = self.cache.get()
        if cached is not None:
            log.debug("token_cache_hit")
            return cached

        payload = await self._fetch(client_id, client_secret)
        token = payload.get("access_token")
        expires_in = payload.get("expires_in")
        if not isinstance(token, str) or not token or not isinstance(expires_in, int | float):
            TOKEN_FETCHES.labels(outcome="invalid").inc()
            raise AuthenticationError(HTTP_OK, "token response missing access_token/expires_in")

        entry = self.cache.put(token, float(expires_in), self.safety_margin_s)
        TOKEN_FETCHES.labels(outcome="ok").inc()
        log.info("token_fetched", expires_in=expires_in, expires_at=entry.expires_at)
        return token

    async def _fetch(self, client_id: str, client_secret: str) -> dict:
        form = {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
        }
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self.timeout_s
            ) as client:
                resp = await client.post(
                    f"{self.api_host}{TOKEN_PATH}",
                    data=form,
                    headers={"Content-Type": CONTENT_TYPE_FORM},
                )
        except httpx.HTTPError as exc:
            TOKEN_FETCHES.labels(outcome="network").inc()
            log.error("token_fetch_failed", error=type(exc).__name__)
            raise AuthenticationError(None, str(exc)) from exc

        if not HTTP_OK <= resp.status_code < HTTP_MULTIPLE_CHOICES:
            body = resp.text[:MAX_ERROR_BODY_CHARS]
            TOKEN_FETCHES.labels(outcome="rejected").inc()
            log.error("token_fetch_failed", status_code=resp.status_code)
            raise AuthenticationError(resp.status_code, body)

        try:
            data = resp.json()
        except ValueError as exc:
            TOKEN_FETCHES.labels(outcome="invalid").inc()
            raise AuthenticationError(resp.status_code, "token response is not JSON") from exc
        if not isinstance(data, dict):
            TOKEN_FETCHES.labels(outcome="invalid").inc()
            raise AuthenticationError(resp.status_code, "token response is not an object")
        return data
