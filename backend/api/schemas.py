# Schémas Pydantic exposés par l'API (requêtes et réponses).

from datetime import datetime as _datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from backend.core.settings import Settings
from backend.domain.entities import BirthQuery, ChakraProfile, DharmaType, InconclusiveData


class BirthRequest(BaseModel):
    """Modèle de requête des endpoints profil/graphique.

    Champs:
    - datetime: str (ISO-8601 avec décalage UTC explicite, ex: 2024-01-15T10:30:00+05:30)
    - coordinates: str ("lat,lon")
    - ayanamsa: int | None (défaut: DEFAULT_AYANAMSA)
    - chart_type / chart_style: str | None (défauts: settings)
    - include_chart: inclure le SVG dans le profil
    """

    datetime: str
    coordinates: str
    ayanamsa: int | None = None
    chart_type: str | None = None
    chart_style: str | None = None
    include_chart: bool = False

    @field_validator("datetime")
    @classmethod
    def _explicit_offset(cls, value: str) -> str:
        try:
            parsed = _datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError("datetime must be ISO-8601") from exc
        if parsed.tzinfo is None:
            raise ValueError("datetime must carry an explicit UTC offset")
        return value

    @field_validator("coordinates")
    @classmethod
    def _lat_lon(cls, value: str) -> str:
        parts = value.split(",")
        if len(parts) != 2:  # noqa: PLR2004
            raise ValueError("coordinates must be 'lat,lon'")
        try:
            for part in parts:
                float(part)
        except ValueError as exc:
            raise ValueError("coordinates must be numeric 'lat,lon'") from exc
        return value.replace(" ", "")

    def to_query(self, settings: Settings) -> BirthQuery:
        """Construit la `BirthQuery` figée en complétant les valeurs par défaut."""
        return BirthQuery(
            datetime=self.datetime,
            coordinates=self.coordinates,
            ayanamsa=self.ayanamsa if self.ayanamsa is not None else settings.DEFAULT_AYANAMSA,
            chart_type=self.chart_type or settings.DEFAULT_CHART_TYPE,
            chart_style=self.chart_style or settings.DEFAULT_CHART_STYLE,
        )


class InsightRequest(BirthRequest):
    """Requête d'insight IA: données de naissance + question libre."""

    question: str = Field(min_length=1, max_length=2000)


class ProfileResponse(BaseModel):
    """Profil fusionné et classifications dérivées.

    Champs:
    - profile: dict (kundli, dasha, planet_positions, chart_svg?)
    - dharma_type: DharmaType ou marqueur non concluant
    - chakra: ChakraProfile ou marqueur non concluant
    """

    profile: dict[str, Any]
    dharma_type: DharmaType | InconclusiveData
    chakra: ChakraProfile | InconclusiveData


class InsightResponse(BaseModel):
    insight: str
    dharma_type: DharmaType | InconclusiveData
    chakra: ChakraProfile | InconclusiveData


class ErrorResponse(BaseModel):
    """Enveloppe d'erreur unique: `detail` est toujours lisible par un humain."""

    code: str
    detail: str
    trace_id: str | None = None
