"""
FastAPI REST API for the ResQ risk platform

Provides RESTful endpoints for heuristic risk predictions over Odisha.
"""

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging
import sys
import os

# Add parent directory to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from resq_risk.api_connectors import OpenMeteoConnector
from resq_risk.risk_scoring import GridPoint, Hazard, PREDICTION_GRID, RiskAggregator
from resq_risk.risk_scoring.grid import (
    detect_trends,
    filter_by_hazard,
    rank_by_severity,
    summarize,
    sweep,
)
from resq_risk.risk_scoring.risk_aggregator import HEURISTIC_SOURCE

logger = logging.getLogger(__name__)

DEFAULT_LATITUDE = 20.9517
DEFAULT_LONGITUDE = 85.0985

app = FastAPI(
    title="ResQ Risk Prediction API",
    description="Multi-hazard risk predictions for the Odisha monitoring grid",
    version="1.0.0"
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

aggregator = RiskAggregator()
weather_connector = OpenMeteoConnector()


# Pydantic models
class PointInput(BaseModel):
    latitude: float = Field(..., ge=-90, le=90, description="Latitude (-90 to 90)")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude (-180 to 180)")
    label: Optional[str] = None
    features: Optional[Dict[str, Any]] = None


class PredictRequest(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    features: Optional[Dict[str, Any]] = None
    points: Optional[List[PointInput]] = None


class PredictResponse(BaseModel):
    predictions: List[Dict[str, Any]]
    grid_count: int
    model_source: str
    note: Optional[str] = None
    timestamp: datetime


class GridResponse(BaseModel):
    predictions: List[Dict[str, Any]]
    summary: Dict[str, Any]
    hazard: Optional[str] = None
    timestamp: datetime


class TrendRequest(BaseModel):
    previous: List[Dict[str, Any]]
    current: List[Dict[str, Any]]


class TrendResponse(BaseModel):
    changes: List[Dict[str, Any]]
    rising_count: int
    timestamp: datetime


# API Endpoints

@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "message": "ResQ Risk Prediction API",
        "version": "1.0.0",
        "endpoints": {
            "health": "/health",
            "predict": "/api/v1/risk/predict",
            "grid": "/api/v1/risk/grid",
            "trends": "/api/v1/risk/trends"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "risk_model": HEURISTIC_SOURCE
        }
    }


@app.post("/api/v1/risk/predict", response_model=PredictResponse)
async def predict_risk(request: PredictRequest):
    """
    Predict hazard risks for one point or a list of points

    A body without ``points`` is a single point; missing coordinates fall
    back to the centre of Odisha.
    """
    try:
        if request.points is not None:
            points = request.points
        else:
            points = [PointInput(
                latitude=request.latitude if request.latitude is not None else DEFAULT_LATITUDE,
                longitude=request.longitude if request.longitude is not None else DEFAULT_LONGITUDE,
                features=request.features
            )]

        features_by_label = {}
        grid_points = []
        for idx, point in enumerate(points):
            key = f"point-{idx}"
            grid_points.append(GridPoint(latitude=point.latitude, longitude=point.longitude, label=key))
            features_by_label[key] = point.features

        records = sweep(grid_points, aggregator=aggregator, features_by_label=features_by_label)
        # restore caller labels
        for point, record in zip(points, records):
            record["label"] = point.label

        return PredictResponse(
            predictions=records,
            grid_count=len(records),
            model_source=HEURISTIC_SOURCE,
            note="Using heuristic model.",
            timestamp=datetime.now(timezone.utc)
        )

    except Exception as e:
        logger.error(f"predict-risk failed: {e}")
        raise HTTPException(status_code=500, detail=f"Error predicting risk: {str(e)}")


@app.get("/api/v1/risk/grid", response_model=GridResponse)
def get_grid_predictions(
    hazard: Optional[str] = Query(None, description="Hazard key, e.g. flood_risk"),
    live_features: bool = Query(False, description="Fetch Open-Meteo features for each point")
):
    """Sweep the Odisha monitoring grid, most severe points first"""
    selected = None
    if hazard:
        try:
            selected = Hazard.from_wire_key(hazard)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown hazard: {hazard}")

    try:
        features_by_label = {}
        if live_features:
            for point in PREDICTION_GRID:
                features_by_label[point.label] = weather_connector.get_hazard_features(
                    point.latitude, point.longitude
                )

        records = rank_by_severity(
            sweep(PREDICTION_GRID, aggregator=aggregator, features_by_label=features_by_label)
        )
        summary = summarize(records)

        if selected is not None:
            records = filter_by_hazard(records, selected)

        return GridResponse(
            predictions=records,
            summary=summary,
            hazard=selected.wire_key if selected else None,
            timestamp=datetime.now(timezone.utc)
        )

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error sweeping grid: {str(e)}")


@app.post("/api/v1/risk/trends", response_model=TrendResponse)
async def get_trends(request: TrendRequest):
    """Material per-hazard changes between two grid sweeps"""
    try:
        trends = detect_trends(request.previous, request.current)
        changes = trends.to_dict(orient="records")

        return TrendResponse(
            changes=changes,
            rising_count=sum(1 for c in changes if c["direction"] == "rising"),
            timestamp=datetime.now(timezone.utc)
        )

    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error detecting trends: {str(e)}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
