"""
Risk Prediction Models

Typed inputs and outputs of the heuristic risk aggregator.
"""

import math
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Hazard(str, Enum):
    """The six tracked disaster categories, in declaration order"""

    FLOOD = "flood"
    CYCLONE = "cyclone"
    FIRE = "fire"
    EARTHQUAKE = "earthquake"
    LANDSLIDE = "landslide"
    HEAT_WAVE = "heat_wave"

    @property
    def wire_key(self) -> str:
        return f"{self.value}_risk"

    @classmethod
    def from_wire_key(cls, key: str) -> "Hazard":
        """Accept either ``flood`` or ``flood_risk``"""
        name = key[:-5] if key.endswith("_risk") else key
        return cls(name)


HAZARD_WIRE_KEYS = [hazard.wire_key for hazard in Hazard]


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class HazardFeatures(BaseModel):
    """
    Optional environmental observations for a location

    Every field may be missing. Values that are not finite numbers are
    treated as absent so no override is applied for them. Unknown fields
    are kept but ignored by the heuristic.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    precipitation_7d: Optional[float] = Field(
        None, validation_alias=AliasChoices("precipitation_7d", "precipitation7d")
    )
    max_wind_speed: Optional[float] = Field(
        None, validation_alias=AliasChoices("max_wind_speed", "wind_speed_max", "maxWindSpeed")
    )
    max_temperature: Optional[float] = Field(
        None, validation_alias=AliasChoices("max_temperature", "temperature_max", "maxTemperature")
    )
    sea_surface_temperature: Optional[float] = Field(
        None,
        validation_alias=AliasChoices(
            "sea_surface_temperature", "sea_surface_temp", "seaSurfaceTemperature"
        ),
    )

    @field_validator(
        "precipitation_7d", "max_wind_speed", "max_temperature", "sea_surface_temperature",
        mode="before",
    )
    @classmethod
    def _finite_or_none(cls, value: Any) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return number if math.isfinite(number) else None

    @classmethod
    def from_mapping(cls, data: Any) -> "HazardFeatures":
        """Build features from a loosely shaped payload; anything unusable is absent"""
        if isinstance(data, HazardFeatures):
            return data
        if not isinstance(data, Mapping):
            return cls()
        return cls.model_validate({str(k): v for k, v in data.items()})


class HazardRisks(BaseModel):
    """Per-hazard probabilities, one fixed field per hazard"""

    model_config = ConfigDict(frozen=True)

    flood: float
    cyclone: float
    fire: float
    earthquake: float
    landslide: float
    heat_wave: float

    def get(self, hazard: Hazard) -> float:
        return getattr(self, hazard.value)

    def max(self) -> float:
        return max(self.get(hazard) for hazard in Hazard)

    def dominant(self) -> Hazard:
        # first hazard wins ties
        return max(Hazard, key=self.get)

    def to_dict(self) -> Dict[str, float]:
        return {hazard.wire_key: round(self.get(hazard), 2) for hazard in Hazard}


class RiskPrediction(BaseModel):
    model_config = ConfigDict(frozen=True)

    risks: HazardRisks
    confidence: float
    risk_level: RiskLevel
    recommended_actions: Tuple[str, ...]
    forecast_hours: int
    model_version: str
    source: str

    def to_dict(self) -> Dict[str, Any]:
        """Serialized form consumed by the grid API and dashboard"""
        return {
            "predictions": self.risks.to_dict(),
            "confidence": self.confidence,
            "risk_level": self.risk_level.value,
            "recommended_actions": list(self.recommended_actions),
            "forecast_hours": self.forecast_hours,
            "model_version": self.model_version,
            "source": self.source,
        }
