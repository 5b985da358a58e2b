"""
Streamlit Dashboard for the ResQ risk platform

Interactive view of the Odisha monitoring grid predictions.
"""

import streamlit as st
import plotly.express as px
from datetime import datetime
import sys
import os

# Add parent directory to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from resq_risk.api_connectors import OpenMeteoConnector
from resq_risk.risk_scoring import PREDICTION_GRID, RiskAggregator
from resq_risk.risk_scoring.grid import (
    HAZARD_WIRE_KEYS,
    detect_trends,
    filter_by_hazard,
    predictions_frame,
    rank_by_severity,
    summarize,
    sweep,
)

RISK_LABELS = {
    "flood_risk": "Flood",
    "cyclone_risk": "Cyclone",
    "fire_risk": "Wildfire",
    "earthquake_risk": "Earthquake",
    "landslide_risk": "Landslide",
    "heat_wave_risk": "Heat Wave",
}

RISK_COLORS = {
    "flood_risk": "#3b82f6",
    "cyclone_risk": "#a855f7",
    "fire_risk": "#ef4444",
    "earthquake_risk": "#f97316",
    "landslide_risk": "#84cc16",
    "heat_wave_risk": "#eab308",
}

LEVEL_COLORS = {
    "CRITICAL": "#dc2626",
    "HIGH": "#f59e0b",
    "MEDIUM": "#3b82f6",
    "LOW": "#16a34a",
}

# Page configuration
st.set_page_config(
    page_title="ResQ Risk Predictions",
    page_icon="🌀",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_services():
    return {
        "aggregator": RiskAggregator(),
        "weather": OpenMeteoConnector(),
    }


services = get_services()

st.title("ResQ Multi-Hazard Risk Predictions")
st.markdown("**48-hour heuristic forecast across the Odisha monitoring grid**")

# Sidebar
st.sidebar.header("Configuration")
live_features = st.sidebar.checkbox("Use live Open-Meteo features", value=False)
hazard_choice = st.sidebar.selectbox(
    "Hazard filter",
    ["all"] + HAZARD_WIRE_KEYS,
    format_func=lambda key: "All" if key == "all" else RISK_LABELS[key]
)

if st.sidebar.button("Refresh Predictions", type="primary"):
    with st.spinner("Sweeping grid points..."):
        features_by_label = {}
        if live_features:
            for point in PREDICTION_GRID:
                features_by_label[point.label] = services["weather"].get_hazard_features(
                    point.latitude, point.longitude
                )

        records = sweep(PREDICTION_GRID, aggregator=services["aggregator"], features_by_label=features_by_label)

        # Keep the last sweep around for trend detection
        st.session_state.previous_records = st.session_state.get("records")
        st.session_state.records = rank_by_severity(records)
        st.session_state.refreshed_at = datetime.now()

if st.session_state.get("records"):
    records = st.session_state.records
    summary = summarize(records)

    overall = summary["overall_level"]
    banner = f"**Overall: {overall}** - {summary['elevated_count']} of {summary['grid_count']} points at elevated risk"
    if overall == "CRITICAL":
        st.error(banner)
    elif overall == "HIGH":
        st.warning(banner)
    elif overall == "MEDIUM":
        st.info(banner)
    else:
        st.success(banner)
    st.caption(f"Updated {st.session_state.refreshed_at:%H:%M:%S}")

    shown = records if hazard_choice == "all" else filter_by_hazard(records, hazard_choice)
    df = predictions_frame(shown).reset_index()

    tab1, tab2, tab3 = st.tabs(["🗺️ Map", "📊 Hazards", "📈 Trends"])

    with tab1:
        if df.empty:
            st.info("No grid points above the filter threshold.")
        else:
            df["max_risk"] = df[HAZARD_WIRE_KEYS].max(axis=1)
            fig = px.scatter_geo(
                df,
                lat="latitude",
                lon="longitude",
                color="risk_level",
                size="max_risk",
                hover_name="label",
                hover_data={key: ":.2f" for key in HAZARD_WIRE_KEYS},
                color_discrete_map=LEVEL_COLORS,
                title="Grid Point Risk Levels"
            )
            fig.update_geos(fitbounds="locations", showcountries=True)
            st.plotly_chart(fig, use_container_width=True)

    with tab2:
        if not df.empty:
            long_df = df.melt(
                id_vars="label",
                value_vars=HAZARD_WIRE_KEYS,
                var_name="hazard",
                value_name="probability"
            )
            long_df["hazard"] = long_df["hazard"].map(RISK_LABELS)
            fig = px.bar(
                long_df,
                x="label",
                y="probability",
                color="hazard",
                barmode="group",
                range_y=[0, 1],
                color_discrete_map={RISK_LABELS[k]: v for k, v in RISK_COLORS.items()},
                labels={"label": "Grid Point", "probability": "Probability"},
                title="Per-Hazard Probabilities"
            )
            st.plotly_chart(fig, use_container_width=True)

        for record in shown:
            with st.expander(f"{record['label']} - {record['risk_level']}"):
                for action in record["recommended_actions"]:
                    st.write(f"- {action}")
                st.caption(f"Confidence {record['confidence']:.0%} · {record['model_version']}")

    with tab3:
        previous = st.session_state.get("previous_records")
        if not previous:
            st.info("Refresh again to compare against this sweep.")
        else:
            trends = detect_trends(previous, records)
            if trends.empty:
                st.success("No material changes since the previous sweep.")
            else:
                trends["hazard"] = trends["hazard"].map(RISK_LABELS)
                st.dataframe(trends, use_container_width=True)

else:
    st.info("👈 Click **Refresh Predictions** to sweep the monitoring grid.")

    st.markdown("""
    ### About This Dashboard

    Each of the 15 grid points across Odisha is scored for flood, cyclone,
    wildfire, earthquake, landslide and heat-wave risk using a seasonal and
    geographic heuristic, optionally adjusted with live Open-Meteo weather.
    """)

# Footer
st.sidebar.markdown("---")
st.sidebar.markdown("""
**ResQ Risk Platform**
Version 1.0.0
Data Sources: Open-Meteo
""")
