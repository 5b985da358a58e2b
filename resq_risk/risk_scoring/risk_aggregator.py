"""
Risk Aggregation Module

Turns a location, the calendar month and optional weather features into
per-hazard probabilities, an overall risk level and recommended actions.
This is the deterministic heuristic used when no trained model is available.
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Tuple
import logging

import numpy as np

from .models import Hazard, HazardFeatures, HazardRisks, Location, RiskLevel, RiskPrediction

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

HEURISTIC_SOURCE = "heuristic_fallback"
FALLBACK_ACTION = "Stay alert and monitor official announcements"


def classify_risk_level(max_risk: float) -> RiskLevel:
    """Bucket the highest hazard probability; every boundary is exclusive"""
    if max_risk > 0.8:
        return RiskLevel.CRITICAL
    if max_risk > 0.6:
        return RiskLevel.HIGH
    if max_risk > 0.3:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class RiskAggregator:
    """Rule-based multi-hazard risk predictor for Odisha grid points"""

    CONFIDENCE = 0.65
    FORECAST_HOURS = 48
    MODEL_VERSION = "heuristic-v1.0"

    BASE_RISKS = {
        Hazard.FLOOD: 0.10,
        Hazard.CYCLONE: 0.05,
        Hazard.FIRE: 0.05,
        Hazard.EARTHQUAKE: 0.02,
        Hazard.LANDSLIDE: 0.03,
        Hazard.HEAT_WAVE: 0.05,
    }

    # (hazard, threshold, actions) in the order actions are listed
    ACTION_RULES: List[Tuple[Hazard, float, Tuple[str, ...]]] = [
        (Hazard.FLOOD, 0.6, ("Move to higher ground immediately", "Avoid river banks and low-lying areas")),
        (Hazard.CYCLONE, 0.6, ("Secure loose objects outdoors", "Move to designated cyclone shelters")),
        (Hazard.FIRE, 0.5, ("Clear dry vegetation around structures", "Keep emergency water supply ready")),
        (Hazard.HEAT_WAVE, 0.5, ("Stay indoors during peak hours", "Stay hydrated")),
    ]

    def predict(
        self,
        location: Location,
        features: Optional[HazardFeatures] = None,
        as_of: Optional[date] = None,
    ) -> RiskPrediction:
        """
        Predict hazard risks for a location

        Args:
            location: Point to assess
            features: Optional weather observations; missing fields add nothing
            as_of: Date whose calendar month drives seasonal risk. Defaults to now.

        Returns:
            Fresh RiskPrediction
        """
        features = HazardFeatures.from_mapping(features)
        month = (as_of or datetime.now()).month

        risks = dict(self.BASE_RISKS)
        self._apply_geography_and_season(risks, location, month)
        self._apply_features(risks, features)

        clamped = HazardRisks(
            **{hazard.value: float(np.clip(value, 0.0, 1.0)) for hazard, value in risks.items()}
        )
        risk_level = classify_risk_level(clamped.max())

        return RiskPrediction(
            risks=clamped,
            confidence=self.CONFIDENCE,
            risk_level=risk_level,
            recommended_actions=self.recommend_actions(clamped),
            forecast_hours=self.FORECAST_HOURS,
            model_version=self.MODEL_VERSION,
            source=HEURISTIC_SOURCE,
        )

    @staticmethod
    def _apply_geography_and_season(risks: Dict[Hazard, float], location: Location, month: int):
        lat, lng = location.latitude, location.longitude

        # Coarse lat/lng boxes over Odisha, not region polygons
        is_coastal = lng > 85.5 or lat < 20
        is_river_delta = 20 < lat < 21 and 85 < lng < 87
        is_forested = lat > 21.5 and 85.5 < lng < 87
        is_western = lng < 84

        is_monsoon = 6 <= month <= 10
        is_cyclone_season = 10 <= month <= 12
        is_summer = 3 <= month <= 5

        if is_monsoon:
            risks[Hazard.FLOOD] += 0.5
        if is_river_delta:
            risks[Hazard.FLOOD] += 0.3
        if is_coastal:
            risks[Hazard.FLOOD] += 0.15
            risks[Hazard.CYCLONE] += 0.2
        if is_cyclone_season and is_coastal:
            risks[Hazard.CYCLONE] += 0.4
        if is_forested and is_summer:
            risks[Hazard.FIRE] += 0.35
        if is_summer:
            risks[Hazard.HEAT_WAVE] += 0.4
        if is_western:
            risks[Hazard.LANDSLIDE] += 0.1

    @staticmethod
    def _apply_features(risks: Dict[Hazard, float], features: HazardFeatures):
        if features.precipitation_7d is not None and features.precipitation_7d > 100:
            risks[Hazard.FLOOD] += 0.3
        if features.max_wind_speed is not None and features.max_wind_speed > 80:
            risks[Hazard.CYCLONE] += 0.4
        if features.max_temperature is not None and features.max_temperature > 42:
            risks[Hazard.FIRE] += 0.2
            risks[Hazard.HEAT_WAVE] += 0.3
        if features.sea_surface_temperature is not None and features.sea_surface_temperature > 27:
            risks[Hazard.CYCLONE] += 0.15

    def recommend_actions(self, risks: HazardRisks) -> Tuple[str, ...]:
        actions: List[str] = []
        for hazard, threshold, hazard_actions in self.ACTION_RULES:
            if risks.get(hazard) > threshold:
                actions.extend(hazard_actions)

        if not actions:
            return (FALLBACK_ACTION,)
        return tuple(dict.fromkeys(actions))


if __name__ == "__main__":
    aggregator = RiskAggregator()

    print("\n" + "=" * 60)
    print("RISK AGGREGATOR SMOKE RUN")
    print("=" * 60 + "\n")

    scenarios = [
        ("Monsoon river delta", Location(latitude=20.5, longitude=86.0), None, date(2026, 7, 15)),
        ("Dry winter inland", Location(latitude=21.0, longitude=83.0), None, date(2026, 1, 15)),
        (
            "Cyclone season coast",
            Location(latitude=19.5, longitude=86.0),
            HazardFeatures(max_wind_speed=95),
            date(2026, 11, 15),
        ),
    ]

    for name, location, features, as_of in scenarios:
        prediction = aggregator.predict(location, features, as_of=as_of)
        print(f"{name}: {prediction.risk_level.value}")
        for key, value in prediction.risks.to_dict().items():
            print(f"  {key:<16} {value:.2f}")
        print(f"  actions: {', '.join(prediction.recommended_actions)}\n")
