"""
Monitoring Grid

Runs the risk aggregator over a fixed set of named points, ranks and filters
the results, and compares successive sweeps to find material changes.
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
import logging

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict

from .models import HAZARD_WIRE_KEYS, Hazard, HazardFeatures, Location
from .risk_aggregator import RiskAggregator, classify_risk_level

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Deltas at or below this are noise between two sweeps
NOISE_THRESHOLD = 0.02
HAZARD_FILTER_THRESHOLD = 0.2
TREND_COLUMNS = ["label", "hazard", "previous", "current", "delta", "direction"]


class GridPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    label: Optional[str] = None

    @property
    def location(self) -> Location:
        return Location(latitude=self.latitude, longitude=self.longitude)


PREDICTION_GRID = [
    GridPoint(latitude=19.81, longitude=85.83, label="Puri Coast"),
    GridPoint(latitude=20.46, longitude=85.88, label="Cuttack"),
    GridPoint(latitude=20.30, longitude=85.82, label="Bhubaneswar"),
    GridPoint(latitude=20.50, longitude=86.42, label="Kendrapara"),
    GridPoint(latitude=20.84, longitude=86.33, label="Jajpur"),
    GridPoint(latitude=21.49, longitude=86.94, label="Balasore"),
    GridPoint(latitude=21.94, longitude=86.74, label="Mayurbhanj"),
    GridPoint(latitude=20.32, longitude=86.61, label="Paradip"),
    GridPoint(latitude=20.72, longitude=83.48, label="Balangir"),
    GridPoint(latitude=21.47, longitude=83.97, label="Sambalpur"),
    GridPoint(latitude=22.26, longitude=84.85, label="Rourkela"),
    GridPoint(latitude=19.31, longitude=84.79, label="Berhampur"),
    GridPoint(latitude=18.81, longitude=82.56, label="Koraput"),
    GridPoint(latitude=20.58, longitude=84.32, label="Boudh"),
    GridPoint(latitude=21.21, longitude=85.10, label="Dhenkanal"),
]


def point_key(record: Mapping[str, Any]) -> str:
    """Label of a grid record, or its coordinates when unlabelled"""
    label = record.get("label")
    if label:
        return str(label)
    return f"{record.get('latitude')},{record.get('longitude')}"


def sweep(
    points: Iterable[GridPoint] = PREDICTION_GRID,
    aggregator: Optional[RiskAggregator] = None,
    features_by_label: Optional[Mapping[str, Any]] = None,
    as_of: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """
    Predict every grid point independently

    Args:
        points: Grid points to evaluate
        aggregator: Predictor to use. Defaults to the heuristic RiskAggregator.
        features_by_label: Optional weather features keyed by point label
        as_of: Date whose month drives seasonal risk

    Returns:
        One serialized prediction per point, in input order
    """
    aggregator = aggregator or RiskAggregator()
    features_by_label = features_by_label or {}

    records = []
    for point in points:
        features = HazardFeatures.from_mapping(features_by_label.get(point.label))
        prediction = aggregator.predict(point.location, features, as_of=as_of)
        records.append({
            "latitude": point.latitude,
            "longitude": point.longitude,
            "label": point.label,
            **prediction.to_dict(),
        })

    logger.info(f"Swept {len(records)} grid points")
    return records


def max_risk(record: Mapping[str, Any]) -> float:
    predictions = record.get("predictions") or {}
    return max((float(predictions.get(key, 0.0)) for key in HAZARD_WIRE_KEYS), default=0.0)


def dominant_hazard(record: Mapping[str, Any]) -> str:
    """Wire key of the record's highest hazard; earlier hazards win ties"""
    predictions = record.get("predictions") or {}
    return max(HAZARD_WIRE_KEYS, key=lambda key: float(predictions.get(key, 0.0)))


def rank_by_severity(records: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Most severe point first; equal points keep their input order"""
    return sorted(records, key=max_risk, reverse=True)


def filter_by_hazard(
    records: Iterable[Mapping[str, Any]],
    hazard: Union[Hazard, str],
    threshold: float = HAZARD_FILTER_THRESHOLD,
) -> List[Mapping[str, Any]]:
    if not isinstance(hazard, Hazard):
        hazard = Hazard.from_wire_key(hazard)
    key = hazard.wire_key
    return [r for r in records if float((r.get("predictions") or {}).get(key, 0.0)) > threshold]


def summarize(records: List[Mapping[str, Any]]) -> Dict[str, Any]:
    """Overall level and elevated-point count across a sweep"""
    global_max = max((max_risk(r) for r in records), default=0.0)
    elevated = sum(1 for r in records if r.get("risk_level") in ("HIGH", "CRITICAL"))
    return {
        "overall_level": classify_risk_level(global_max).value,
        "max_risk": global_max,
        "elevated_count": elevated,
        "grid_count": len(records),
    }


def predictions_frame(records: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """Flatten grid records into one row per point, indexed by point key"""
    rows = []
    for record in records:
        predictions = record.get("predictions") or {}
        row = {
            "label": point_key(record),
            "latitude": record.get("latitude"),
            "longitude": record.get("longitude"),
            "risk_level": record.get("risk_level"),
            "dominant_hazard": dominant_hazard(record),
        }
        row.update({key: float(predictions.get(key, 0.0)) for key in HAZARD_WIRE_KEYS})
        rows.append(row)

    columns = ["label", "latitude", "longitude", "risk_level", "dominant_hazard"] + HAZARD_WIRE_KEYS
    df = pd.DataFrame(rows, columns=columns)

    duplicated = df["label"].duplicated(keep="last")
    if duplicated.any():
        dropped = sorted(set(df.loc[duplicated, "label"]))
        logger.warning(f"Duplicate grid labels, keeping the last point for: {dropped}")
    return df[~duplicated].set_index("label")


def detect_trends(
    previous: Iterable[Mapping[str, Any]],
    current: Iterable[Mapping[str, Any]],
    threshold: float = NOISE_THRESHOLD,
) -> pd.DataFrame:
    """
    Compare two sweeps point by point and hazard by hazard

    Only points present in both sweeps are compared. A change is material
    when its magnitude exceeds ``threshold``; smaller deltas are dropped.

    Returns:
        DataFrame with columns label, hazard, previous, current, delta and
        direction ("rising" or "falling")
    """
    prev_df = predictions_frame(previous)[HAZARD_WIRE_KEYS]
    curr_df = predictions_frame(current)[HAZARD_WIRE_KEYS]

    if prev_df.empty or curr_df.empty:
        return pd.DataFrame(columns=TREND_COLUMNS)

    paired = pd.merge(
        prev_df.reset_index().melt(id_vars="label", var_name="hazard", value_name="previous"),
        curr_df.reset_index().melt(id_vars="label", var_name="hazard", value_name="current"),
        on=["label", "hazard"],
        how="inner",
    )
    # 2-decimal inputs; drop float noise so an exact 0.02 step is never material
    paired["delta"] = (paired["current"] - paired["previous"]).round(9)

    material = paired[paired["delta"].abs() > threshold].copy()
    material["direction"] = np.where(material["delta"] > 0, "rising", "falling")

    logger.info(f"{len(material)} material changes across {len(paired)} hazard readings")
    return material[TREND_COLUMNS].reset_index(drop=True)


def rising_trends(
    previous: Iterable[Mapping[str, Any]],
    current: Iterable[Mapping[str, Any]],
    threshold: float = NOISE_THRESHOLD,
) -> pd.DataFrame:
    trends = detect_trends(previous, current, threshold)
    return trends[trends["direction"] == "rising"].reset_index(drop=True)
