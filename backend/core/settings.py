"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
- Exposer les identifiants Prokerala (CLIENT_ID/CLIENT_SECRET) sans jamais les journaliser
"""

import os
from pathlib import Path

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    else:
        _ENV_FILE_PATH = _candidate_default


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )
    APP_NAME: str = "vedic-profile-backend"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True
    LOG_JSON: bool = False

    # Le front-end d'origine est servi depuis un autre domaine: '*' par défaut
    CORS_ORIGINS: list[AnyHttpUrl] | list[str] = ["*"]

    # Prokerala (OAuth2 client-credentials)
    PROKERALA_API_HOST: str = "https://api.prokerala.com"
    CLIENT_ID: str | None = None
    CLIENT_SECRET: str | None = None
    TOKEN_SAFETY_MARGIN_S: int = 300
    UPSTREAM_TIMEOUT_S: float = 15.0

    # Valeurs par défaut des paramètres de naissance
    DEFAULT_AYANAMSA: int = 1
    DEFAULT_CHART_TYPE: str = "rasi"
    DEFAULT_CHART_STYLE: str = "north-indian"

    # IA générative (insight)
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-pro"
    GEMINI_API_HOST: str = "https://generativelanguage.googleapis.com"


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
