from datetime import date

import pytest

from resq_risk.risk_scoring import Hazard, HazardFeatures, PREDICTION_GRID, detect_trends, rising_trends, sweep
from resq_risk.risk_scoring.grid import (
    dominant_hazard,
    filter_by_hazard,
    max_risk,
    predictions_frame,
    rank_by_severity,
    summarize,
)

JANUARY = date(2026, 1, 15)
JULY = date(2026, 7, 15)


def make_record(label, risk_level="LOW", **risks):
    predictions = {
        "flood_risk": 0.1,
        "cyclone_risk": 0.05,
        "fire_risk": 0.05,
        "earthquake_risk": 0.02,
        "landslide_risk": 0.03,
        "heat_wave_risk": 0.05,
    }
    predictions.update(risks)
    return {
        "latitude": 20.0,
        "longitude": 85.0,
        "label": label,
        "predictions": predictions,
        "risk_level": risk_level,
    }


def test_sweep_covers_every_grid_point_in_order():
    records = sweep(as_of=JULY)

    assert len(records) == len(PREDICTION_GRID) == 15
    assert [r["label"] for r in records] == [p.label for p in PREDICTION_GRID]
    for record in records:
        assert record["source"] == "heuristic_fallback"
        assert record["forecast_hours"] == 48
        assert record["recommended_actions"]


def test_sweep_applies_features_by_label():
    plain = {r["label"]: r for r in sweep(as_of=JANUARY)}
    windy = {
        r["label"]: r
        for r in sweep(as_of=JANUARY, features_by_label={"Koraput": HazardFeatures(max_wind_speed=95)})
    }

    assert plain["Koraput"]["risk_level"] == "LOW"
    assert windy["Koraput"]["predictions"]["cyclone_risk"] == 0.65
    assert windy["Koraput"]["risk_level"] == "HIGH"
    assert "Move to designated cyclone shelters" in windy["Koraput"]["recommended_actions"]
    assert windy["Cuttack"] == plain["Cuttack"]


def test_rank_by_severity_is_descending_and_stable():
    records = [
        make_record("a", flood_risk=0.4),
        make_record("b", cyclone_risk=0.9),
        make_record("c", fire_risk=0.4),
        make_record("d", heat_wave_risk=0.7),
    ]

    ranked = rank_by_severity(records)

    assert [r["label"] for r in ranked] == ["b", "d", "a", "c"]


def test_rank_real_sweep_is_non_increasing():
    ranked = rank_by_severity(sweep(as_of=JULY))
    maxima = [max_risk(r) for r in ranked]

    assert maxima == sorted(maxima, reverse=True)


@pytest.mark.parametrize("hazard", [Hazard.FLOOD, "flood", "flood_risk"])
def test_filter_by_hazard_threshold_is_exclusive(hazard):
    records = [
        make_record("at", flood_risk=0.2),
        make_record("above", flood_risk=0.21),
        make_record("below", flood_risk=0.1),
    ]

    assert [r["label"] for r in filter_by_hazard(records, hazard)] == ["above"]


def test_filter_by_unknown_hazard_raises():
    with pytest.raises(ValueError):
        filter_by_hazard([make_record("a")], "tsunami_risk")


def test_dominant_hazard():
    assert dominant_hazard(make_record("a", fire_risk=0.7)) == "fire_risk"
    assert dominant_hazard(make_record("b", flood_risk=0.5, cyclone_risk=0.5)) == "flood_risk"


def test_summarize():
    records = [
        make_record("a", risk_level="CRITICAL", flood_risk=0.95),
        make_record("b", risk_level="HIGH", cyclone_risk=0.7),
        make_record("c", risk_level="MEDIUM", fire_risk=0.4),
    ]

    summary = summarize(records)

    assert summary == {
        "overall_level": "CRITICAL",
        "max_risk": 0.95,
        "elevated_count": 2,
        "grid_count": 3,
    }


def test_summarize_empty_sweep():
    assert summarize([])["overall_level"] == "LOW"


def test_predictions_frame_indexed_by_label():
    df = predictions_frame([make_record("Puri Coast", flood_risk=0.8), make_record(None)])

    assert list(df.index) == ["Puri Coast", "20.0,85.0"]
    assert df.loc["Puri Coast", "flood_risk"] == 0.8
    assert df.loc["Puri Coast", "dominant_hazard"] == "flood_risk"


def test_small_delta_is_noise():
    previous = [make_record("Paradip", flood_risk=0.5)]
    current = [make_record("Paradip", flood_risk=0.515)]

    assert detect_trends(previous, current).empty
    assert rising_trends(previous, current).empty


def test_material_rise_is_flagged():
    previous = [make_record("Paradip", flood_risk=0.5)]
    current = [make_record("Paradip", flood_risk=0.525)]

    trends = rising_trends(previous, current)

    assert len(trends) == 1
    row = trends.iloc[0]
    assert row["label"] == "Paradip"
    assert row["hazard"] == "flood_risk"
    assert row["delta"] == pytest.approx(0.025)
    assert row["direction"] == "rising"


def test_falls_are_material_but_not_rising():
    previous = [make_record("Puri Coast", cyclone_risk=0.9), make_record("Cuttack")]
    current = [make_record("Puri Coast", cyclone_risk=0.6), make_record("Boudh", flood_risk=0.9)]

    trends = detect_trends(previous, current)

    assert trends[["label", "hazard", "direction"]].values.tolist() == [
        ["Puri Coast", "cyclone_risk", "falling"],
    ]
    assert rising_trends(previous, current).empty


def test_trends_with_empty_sweep():
    assert detect_trends([], [make_record("a")]).empty


@pytest.mark.parametrize("before, after", [(0.50, 0.52), (0.33, 0.35), (0.52, 0.50), (0.35, 0.33)])
def test_exact_threshold_step_is_noise(before, after):
    previous = [make_record("Jajpur", flood_risk=before)]
    current = [make_record("Jajpur", flood_risk=after)]

    assert detect_trends(previous, current).empty


def test_just_over_threshold_is_material():
    previous = [make_record("Jajpur", flood_risk=0.33)]
    current = [make_record("Jajpur", flood_risk=0.36)]

    trends = detect_trends(previous, current)

    assert trends["delta"].tolist() == [pytest.approx(0.03)]


def test_duplicate_labels_keep_last_and_warn(caplog):
    records = [
        make_record("Paradip", flood_risk=0.3),
        make_record("Paradip", flood_risk=0.7),
    ]

    with caplog.at_level("WARNING"):
        df = predictions_frame(records)

    assert len(df) == 1
    assert df.loc["Paradip", "flood_risk"] == 0.7
    assert "Paradip" in caplog.text
