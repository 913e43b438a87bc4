"""Orchestrateur d'insight IA.

Ce module construit le prompt de coaching (Dharma, Chakra, dasha active, ascendant, question) et
délègue la génération au LLM injecté.
"""

from __future__ import annotations

from typing import Any

from backend.domain.entities import ChakraProfile, DharmaType, InconclusiveData, MergedProfile
from backend.infra.llm.base import LLM

SYSTEM = (
    "You are JyotishTherapist, an expert Vedic astrologer and a compassionate coach trained in "
    "Acceptance and Commitment Therapy (ACT) and Relational Frame Theory (RFT). Use the "
    "astrological data as context only; do not just give predictions. Guide the user with "
    "evocative, RFT-based questions toward clarifying their values and one small, concrete "
    "committed action."
)

UNKNOWN = "unknown"


def _ascendant_label(ascendant: Any) -> str:
    if isinstance(ascendant, dict):
        for key in ("name", "rasi", "sign"):
            value = ascendant.get(key)
            if isinstance(value, dict):
                value = value.get("name")
            if isinstance(value, str) and value:
                return value
        return UNKNOWN
    return str(ascendant) if ascendant else UNKNOWN


def build_prompt(
    profile: MergedProfile,
    dharma: DharmaType | InconclusiveData,
    chakra: ChakraProfile | InconclusiveData,
    question: str,
) -> str:
    """Assemble le prompt envoyé au LLM; les profils non concluants sont signalés comme tels."""
    dharma_label = dharma.value if isinstance(dharma, DharmaType) else UNKNOWN
    if isinstance(chakra, ChakraProfile):
        chakra_line = f"{chakra.chakra_name} (driven by their current {chakra.lord_planet} Dasha)"
    else:
        chakra_line = UNKNOWN
    lines = [
        SYSTEM,
        "",
        "User's data:",
        f"- Dharma Type: {dharma_label}",
        f"- Active Chakra Theme: {chakra_line}",
        f"- Ascendant: {_ascendant_label(profile.kundli.get('ascendant'))}",
        "",
        f'Begin the coaching conversation. The user\'s presenting problem is: "{question}"',
    ]
    return "\n".join(lines)


class InsightOrchestrator:
    """Génère un insight texte à partir d'un profil classifié."""

    def __init__(self, llm: LLM):
        """Initialise l'orchestrateur avec le LLM à utiliser."""
        self.llm = llm

    async def advise(
        self,
        profile: MergedProfile,
        dharma: DharmaType | InconclusiveData,
        chakra: ChakraProfile | InconclusiveData,
        question: str,
    ) -> str:
        return await self.llm.generate(build_prompt(profile, dharma, chakra, question))
