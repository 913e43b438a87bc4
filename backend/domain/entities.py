"""
Entités du domaine métier.

Ce module définit les modèles de données principaux: requête de naissance, jeton d'accès,
profil fusionné issu des appels amont et profils dérivés (Dharma, Chakra).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BirthQuery(BaseModel):
    """Données de naissance transmises aux endpoints Prokerala.

    `datetime` garde son décalage UTC explicite (ex: `2024-01-15T10:30:00+05:30`) et
    `coordinates` est la chaîne brute `"lat,lon"`. L'objet est figé après construction.
    """

    model_config = ConfigDict(frozen=True)

    datetime: str = Field(min_length=1)
    coordinates: str = Field(min_length=1)
    ayanamsa: int = 1
    chart_type: str = "rasi"
    chart_style: str = "north-indian"


@dataclass
class AccessToken:
    """Jeton OAuth2 en cache; `expires_at` inclut déjà la marge de sécurité."""

    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return bool(self.value) and self.expires_at > now


@dataclass(frozen=True)
class Credentials:
    """Paire client_id/client_secret. Le repr masque le secret."""

    client_id: str
    client_secret: str

    def __repr__(self) -> str:
        return f"Credentials(client_id={self.client_id!r}, client_secret='***')"

    @property
    def complete(self) -> bool:
        return bool(self.client_id) and bool(self.client_secret)


class MergedProfile(BaseModel):
    """Union des réponses amont, indexée par nom logique."""

    kundli: dict[str, Any]
    dasha: dict[str, Any]
    planet_positions: dict[str, Any]
    chart_svg: str | None = None


class DharmaType(str, Enum):
    """Chemin de vocation; l'ordre de déclaration sert à départager les égalités."""

    EDUCATOR = "Educator"
    WARRIOR = "Warrior"
    MERCHANT = "Merchant"
    LABORER = "Laborer"
    OUTSIDER = "Outsider"


class ChakraProfile(BaseModel):
    """Chakra actif déduit du seigneur de la dasha courante."""

    lord_planet: str
    chakra_name: str
    description: str


class InconclusiveData(BaseModel):
    """Marqueur de données dégradées renvoyé par les classifieurs (jamais levé)."""

    inconclusive: bool = True
    reason: str
