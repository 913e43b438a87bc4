"""
Classifieurs déterministes Dharma/Chakra.

Objectif: à partir du profil fusionné (positions planétaires, périodes de dasha),
déduire un type de Dharma par score de significateurs et un profil de Chakra par
simple table de correspondance. Fonctions pures, sans I/O; elles ne lèvent jamais
et renvoient `InconclusiveData` quand l'entrée est inexploitable.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from backend.domain.entities import ChakraProfile, DharmaType, InconclusiveData, MergedProfile

# Planète → types de Dharma dont elle est significatrice
SIGNIFICATORS: dict[str, tuple[DharmaType, ...]] = {
    "Jupiter": (DharmaType.EDUCATOR,),
    "Mercury": (DharmaType.EDUCATOR, DharmaType.MERCHANT),
    "Mars": (DharmaType.WARRIOR,),
    "Sun": (DharmaType.WARRIOR,),
    "Venus": (DharmaType.MERCHANT,),
    "Moon": (DharmaType.LABORER,),
    "Saturn": (DharmaType.LABORER,),
    "Rahu": (DharmaType.OUTSIDER,),
    "Ketu": (DharmaType.OUTSIDER,),
}

# Indexé par planète et non par chakra: Sun et Mars partagent "Solar Plexus"
CHAKRA_BY_PLANET: dict[str, tuple[str, str]] = {
    "Sun": ("Solar Plexus", "identity, authority and the courage to lead"),
    "Moon": ("Sacral", "emotional flow, nurturing and receptivity"),
    "Mars": ("Solar Plexus", "willpower, drive and decisive action"),
    "Mercury": ("Throat", "communication, learning and self-expression"),
    "Jupiter": ("Heart", "wisdom, generosity and compassion"),
    "Venus": ("Sacral", "pleasure, creativity and relationships"),
    "Saturn": ("Root", "discipline, security and endurance"),
    "Rahu": ("Third Eye", "ambition, vision and unconventional insight"),
    "Ketu": ("Crown", "detachment, spirituality and letting go"),
}

_DESCRIPTION = (
    "Your current life chapter (Dasha) is ruled by {planet}, highlighting themes related to "
    "the {chakra} Chakra: {theme}."
)

_START_KEYS = ("start", "start_date", "startDate")
_END_KEYS = ("end", "end_date", "endDate")


def _planet_name(raw: Any) -> str | None:
    if not isinstance(raw, str) or not raw.strip():
        return None
    return raw.strip().capitalize()


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, str | bytes)


def dharma_scores(planets: Sequence[Mapping[str, Any]]) -> dict[DharmaType, int]:
    """Score par type, dans l'ordre de déclaration de `DharmaType`.

    Les entrées non-mappings ou de nom inconnu (ex: Ascendant) sont ignorées.
    """
    scores = {dharma: 0 for dharma in DharmaType}
    for planet in planets:
        if not isinstance(planet, Mapping):
            continue
        for dharma in SIGNIFICATORS.get(_planet_name(planet.get("name")) or "", ()):
            scores[dharma] += 1
    return scores


def classify_dharma_type(planets: Any) -> DharmaType | InconclusiveData:
    """Type de Dharma au score strictement le plus élevé.

    Égalités: le premier type déclaré l'emporte (une liste vide donne donc Educator).
    """
    if not _is_sequence(planets):
        return InconclusiveData(reason="planet positions missing or not a list")
    scores = dharma_scores(planets)
    best = DharmaType.EDUCATOR
    for dharma, score in scores.items():
        if score > scores[best]:
            best = dharma
    return best


def _parse_instant(raw: Any) -> datetime | None:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _bound(period: Mapping[str, Any], keys: tuple[str, ...]) -> datetime | None:
    for key in keys:
        if key in period:
            return _parse_instant(period[key])
    return None


def select_current_period(
    periods: Sequence[Mapping[str, Any]], now: datetime
) -> Mapping[str, Any] | None:
    """Période contenant `now` (bornes incluses), sinon la première; None si liste vide."""
    for period in periods:
        if not isinstance(period, Mapping):
            continue
        start, end = _bound(period, _START_KEYS), _bound(period, _END_KEYS)
        if start is not None and end is not None and start <= now <= end:
            return period
    first = periods[0] if periods else None
    return first if isinstance(first, Mapping) else None


def classify_chakra(
    dasha_periods: Any, now: datetime | None = None
) -> ChakraProfile | InconclusiveData:
    """Profil de Chakra du seigneur de la dasha courante (lookup direct)."""
    if not _is_sequence(dasha_periods) or not dasha_periods:
        return InconclusiveData(reason="no dasha periods")
    current = now or datetime.now(UTC)
    if current.tzinfo is None:
        current = current.replace(tzinfo=UTC)
    period = select_current_period(dasha_periods, current)
    lord = _planet_name(period.get("name")) if period is not None else None
    if lord not in CHAKRA_BY_PLANET:
        return InconclusiveData(reason=f"unknown dasha lord: {lord}")
    chakra, theme = CHAKRA_BY_PLANET[lord]
    return ChakraProfile(
        lord_planet=lord,
        chakra_name=chakra,
        description=_DESCRIPTION.format(planet=lord, chakra=chakra, theme=theme),
    )


def summarize_profile(profile: MergedProfile, now: datetime | None = None) -> dict[str, Any]:
    """Applique les deux classifieurs au profil fusionné."""
    dharma = classify_dharma_type(profile.kundli.get("planet_positions"))
    chakra = classify_chakra(profile.dasha.get("dasha_periods"), now=now)
    return {"dharma_type": dharma, "chakra": chakra}
