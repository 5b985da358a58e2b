"""
API Connectors for the ResQ risk platform

This package contains connectors for external weather data sources:
- Open-Meteo: daily forecast and marine data used as hazard features
"""

from .open_meteo_connector import OpenMeteoConnector

__all__ = [
    "OpenMeteoConnector",
]
