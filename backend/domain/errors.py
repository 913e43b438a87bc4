"""Taxonomie des erreurs du domaine.

- `ConfigurationError`: identifiants ou clés absents (fatal, jamais retenté).
- `AuthenticationError`: l'endpoint de jeton a refusé les identifiants ou est injoignable.
- `UpstreamError`: un appel amont a échoué; variante unique étiquetée par `kind`.

Les données incomplètes côté classifieur ne sont pas une erreur (voir `InconclusiveData`).
"""

from __future__ import annotations

from enum import Enum


class ConfigurationError(RuntimeError):
    """Configuration manquante (identifiants Prokerala, clé Gemini)."""


class AuthenticationError(RuntimeError):
    """Échec d'obtention du jeton OAuth2."""

    def __init__(self, status_code: int | None, body: str = "") -> None:
        """Conserve le statut et le corps amont (le corps ne contient jamais nos secrets)."""
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = "token endpoint unreachable"
        else:
            message = f"token endpoint returned {status_code}"
        if body:
            message = f"{message}: {body}"
        super().__init__(message)


class UpstreamErrorKind(str, Enum):
    """Discriminant des échecs amont."""

    NETWORK = "network"
    HTTP_STATUS = "http-status"
    PARSE = "parse"


class UpstreamError(RuntimeError):
    """Échec d'un appel amont, normalisé à la frontière du client HTTP."""

    def __init__(
        self,
        endpoint: str,
        kind: UpstreamErrorKind,
        detail: str,
        status_code: int | None = None,
    ) -> None:
        """Initialise l'erreur avec l'endpoint fautif et un message lisible."""
        self.endpoint = endpoint
        self.kind = kind
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"{endpoint}: {detail}")
