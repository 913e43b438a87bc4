"""
Construction des URL amont (fonctions pures, testables sans réseau).

Règle centrale: le `+` d'un décalage UTC (`2024-01-15T10:30:00+05:30`) doit arriver tel quel chez
Prokerala, ni `%2B` ni espace. On construit donc la query string nous-mêmes au lieu de laisser
`httpx` encoder un dict `params` (qui produirait `%2B`), et on décode les query strings entrantes
sans décodage "formulaire" (qui transformerait `+` en espace).

Asymétrie figée côté amont: `natal-planet-position` attend `profile[datetime]` et
`profile[coordinates]`, les autres endpoints des noms à plat.
"""

from __future__ import annotations

from urllib.parse import quote, unquote

from backend.core.http_constants import (
    ASTROLOGY_PREFIX,
    ENDPOINT_CHART,
    ENDPOINT_DASHA_PERIODS,
    ENDPOINT_KUNDLI,
    ENDPOINT_NATAL_PLANET_POSITION,
)
from backend.domain.entities import BirthQuery

QueryPairs = list[tuple[str, str]]

# '+' et ':' restent littéraux (datetime), ',' aussi (coordinates "lat,lon")
_VALUE_SAFE = ":+,"
_KEY_SAFE = "[]"

PROFILE_ENDPOINTS = (ENDPOINT_KUNDLI, ENDPOINT_DASHA_PERIODS, ENDPOINT_NATAL_PLANET_POSITION)


def encode_query(pairs: QueryPairs) -> str:
    """Encode des paires clé/valeur en query string en préservant `+`, `:` et `,`."""
    return "&".join(
        f"{quote(key, safe=_KEY_SAFE)}={quote(value, safe=_VALUE_SAFE)}" for key, value in pairs
    )


def build_url(api_host: str, path: str, pairs: QueryPairs | None = None) -> str:
    """Assemble `api_host + path` et la query string encodée."""
    base = api_host.rstrip("/") + "/" + path.lstrip("/")
    if not pairs:
        return base
    return f"{base}?{encode_query(pairs)}"


def astrology_path(endpoint: str) -> str:
    return f"{ASTROLOGY_PREFIX}/{endpoint}"


def flat_params(query: BirthQuery) -> QueryPairs:
    """Paramètres à plat (kundli, dasha-periods)."""
    return [
        ("datetime", query.datetime),
        ("coordinates", query.coordinates),
        ("ayanamsa", str(query.ayanamsa)),
    ]


def natal_planet_params(query: BirthQuery) -> QueryPairs:
    """Paramètres imbriqués `profile[...]` de natal-planet-position."""
    return [
        ("profile[datetime]", query.datetime),
        ("profile[coordinates]", query.coordinates),
        ("ayanamsa", str(query.ayanamsa)),
    ]


def chart_params(query: BirthQuery) -> QueryPairs:
    return flat_params(query) + [
        ("chart_type", query.chart_type),
        ("chart_style", query.chart_style),
    ]


def endpoint_params(endpoint: str, query: BirthQuery) -> QueryPairs:
    """Retourne le jeu de paramètres propre à un endpoint.

    Raises:
        ValueError: endpoint inconnu.
    """
    if endpoint in (ENDPOINT_KUNDLI, ENDPOINT_DASHA_PERIODS):
        return flat_params(query)
    if endpoint == ENDPOINT_NATAL_PLANET_POSITION:
        return natal_planet_params(query)
    if endpoint == ENDPOINT_CHART:
        return chart_params(query)
    raise ValueError(f"unknown endpoint: {endpoint}")


def endpoint_url(api_host: str, endpoint: str, query: BirthQuery) -> str:
    return build_url(api_host, astrology_path(endpoint), endpoint_params(endpoint, query))


def parse_passthrough_query(raw_query: str) -> QueryPairs:
    """Décode une query string entrante sans transformer `+` en espace.

    `%2B` et `+` littéral donnent tous deux `+`; les paires vides sont ignorées.
    """
    pairs: QueryPairs = []
    for chunk in (raw_query or "").lstrip("?").split("&"):
        if not chunk:
            continue
        key, _, value = chunk.partition("=")
        pairs.append((unquote(key), unquote(value)))
    return pairs
