"""Interface de base pour les modèles de langage."""

from __future__ import annotations

from abc import ABC, abstractmethod


class LLM(ABC):
    """Interface abstraite pour les modèles de langage."""

    model: str = "unknown"

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Génère un texte à partir d'un prompt unique."""
        ...
