"""
Risk Scoring Module

Heuristic multi-hazard risk prediction and monitoring grid sweeps.
"""

from .models import Hazard, HazardFeatures, HazardRisks, Location, RiskLevel, RiskPrediction
from .risk_aggregator import RiskAggregator, classify_risk_level
from .grid import PREDICTION_GRID, GridPoint, detect_trends, rising_trends, sweep

__all__ = [
    "Hazard",
    "HazardFeatures",
    "HazardRisks",
    "Location",
    "RiskLevel",
    "RiskPrediction",
    "RiskAggregator",
    "classify_risk_level",
    "PREDICTION_GRID",
    "GridPoint",
    "detect_trends",
    "rising_trends",
    "sweep",
]
