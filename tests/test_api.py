import inspect
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

import api.main as main
from resq_risk.risk_scoring import HazardFeatures


@pytest.fixture
def client():
    return TestClient(main.app)


def test_root_and_health(client):
    assert client.get("/").json()["endpoints"]["grid"] == "/api/v1/risk/grid"

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["services"]["risk_model"] == "heuristic_fallback"


def test_predict_single_point(client):
    response = client.post(
        "/api/v1/risk/predict",
        json={"latitude": 19.5, "longitude": 86.0, "features": {"wind_speed_max": 95}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["grid_count"] == 1
    assert body["model_source"] == "heuristic_fallback"

    record = body["predictions"][0]
    assert record["latitude"] == 19.5
    assert record["label"] is None
    assert record["source"] == "heuristic_fallback"
    # coastal + high wind clears the cyclone action threshold in any month
    assert record["predictions"]["cyclone_risk"] >= 0.65
    assert "Secure loose objects outdoors" in record["recommended_actions"]


def test_predict_defaults_to_odisha_centre(client):
    record = client.post("/api/v1/risk/predict", json={}).json()["predictions"][0]

    assert record["latitude"] == main.DEFAULT_LATITUDE
    assert record["longitude"] == main.DEFAULT_LONGITUDE


def test_predict_points_keep_order_and_labels(client):
    response = client.post(
        "/api/v1/risk/predict",
        json={"points": [
            {"latitude": 20.32, "longitude": 86.61, "label": "Paradip"},
            {"latitude": 18.81, "longitude": 82.56, "label": "Paradip", "features": {"max_wind_speed": 95}},
            {"latitude": 21.21, "longitude": 85.10},
        ]},
    )

    body = response.json()
    assert body["grid_count"] == 3
    assert [p["label"] for p in body["predictions"]] == ["Paradip", "Paradip", None]
    assert [p["longitude"] for p in body["predictions"]] == [86.61, 82.56, 85.10]
    assert body["predictions"][1]["predictions"]["cyclone_risk"] >= 0.65


def test_predict_rejects_out_of_range_latitude(client):
    response = client.post("/api/v1/risk/predict", json={"latitude": 95, "longitude": 85})

    assert response.status_code == 422


def test_grid_is_ranked_with_summary(client):
    body = client.get("/api/v1/risk/grid").json()

    assert body["summary"]["grid_count"] == 15
    assert len(body["predictions"]) == 15
    maxima = [max(p["predictions"].values()) for p in body["predictions"]]
    assert maxima == sorted(maxima, reverse=True)
    assert body["hazard"] is None


def test_grid_hazard_filter(client):
    body = client.get("/api/v1/risk/grid", params={"hazard": "flood_risk"}).json()

    assert body["hazard"] == "flood_risk"
    assert all(p["predictions"]["flood_risk"] > 0.2 for p in body["predictions"])
    assert body["summary"]["grid_count"] == 15


def test_grid_unknown_hazard(client):
    response = client.get("/api/v1/risk/grid", params={"hazard": "tsunami"})

    assert response.status_code == 400


def test_grid_live_features(client, monkeypatch):
    calls = []

    def fake_features(latitude, longitude):
        calls.append((latitude, longitude))
        return HazardFeatures(precipitation_7d=150)

    monkeypatch.setattr(main.weather_connector, "get_hazard_features", fake_features)

    body = client.get("/api/v1/risk/grid", params={"live_features": "true"}).json()

    assert len(calls) == 15
    # heavy rain lifts every point's flood risk above its base value
    assert all(p["predictions"]["flood_risk"] >= 0.4 for p in body["predictions"])


def test_trends_endpoint(client):
    previous = client.post(
        "/api/v1/risk/predict",
        json={"points": [{"latitude": 21.0, "longitude": 83.0, "label": "Inland"}]},
    ).json()["predictions"]
    current = client.post(
        "/api/v1/risk/predict",
        json={"points": [
            {"latitude": 21.0, "longitude": 83.0, "label": "Inland", "features": {"precipitation_7d": 150}},
        ]},
    ).json()["predictions"]

    body = client.post("/api/v1/risk/trends", json={"previous": previous, "current": current}).json()

    assert body["rising_count"] == 1
    assert body["changes"][0]["label"] == "Inland"
    assert body["changes"][0]["hazard"] == "flood_risk"
    assert body["changes"][0]["delta"] == pytest.approx(0.3)


def test_predict_empty_points_returns_no_predictions(client):
    body = client.post("/api/v1/risk/predict", json={"points": []}).json()

    assert body["grid_count"] == 0
    assert body["predictions"] == []


def test_grid_live_features_survive_malformed_weather(client, monkeypatch):
    session = MagicMock()
    response = MagicMock()
    response.json.return_value = []
    session.get.return_value = response
    monkeypatch.setattr(main.weather_connector, "session", session)

    live = client.get("/api/v1/risk/grid", params={"live_features": "true"})
    plain = client.get("/api/v1/risk/grid")

    assert live.status_code == 200
    assert live.json()["predictions"] == plain.json()["predictions"]


def test_grid_endpoint_runs_in_threadpool():
    # live weather fetches are blocking requests calls
    assert not inspect.iscoroutinefunction(main.get_grid_predictions)
