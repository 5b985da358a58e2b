"""
Open-Meteo Weather API Connector

Fetches daily weather and marine data and derives the hazard features used by
the risk aggregator.
API Documentation: https://open-meteo.com/en/docs
"""

import requests
import pandas as pd
from datetime import date
from typing import Optional
import logging
import math
import os

from ..risk_scoring.models import HazardFeatures

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class OpenMeteoConnector:
    """Connector for the Open-Meteo forecast and marine APIs"""

    DAILY_VARIABLES = ["precipitation_sum", "temperature_2m_max", "windspeed_10m_max"]

    def __init__(self, session: Optional[requests.Session] = None):
        self.forecast_url = os.getenv("OPEN_METEO_URL", "https://api.open-meteo.com/v1/forecast")
        self.marine_url = os.getenv("OPEN_METEO_MARINE_URL", "https://marine-api.open-meteo.com/v1/marine")
        self.timezone = os.getenv("OPEN_METEO_TIMEZONE", "Asia/Kolkata")
        self.session = session or requests.Session()

    def get_daily_weather(
        self,
        latitude: float,
        longitude: float,
        past_days: int = 7,
        forecast_days: int = 2
    ) -> pd.DataFrame:
        """
        Get daily precipitation, max temperature and max wind speed

        Args:
            latitude: Point latitude
            longitude: Point longitude
            past_days: Observed days before today
            forecast_days: Forecast days from today (inclusive)

        Returns:
            DataFrame with one row per day, empty on failure
        """
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "daily": ",".join(self.DAILY_VARIABLES),
            "timezone": self.timezone,
            "past_days": past_days,
            "forecast_days": forecast_days,
        }

        try:
            logger.info(f"Fetching daily weather for ({latitude}, {longitude})")
            response = self.session.get(self.forecast_url, params=params, timeout=30)
            response.raise_for_status()

            payload = response.json()
            if not isinstance(payload, dict):
                raise ValueError(f"expected a JSON object, got {type(payload).__name__}")

            daily = payload.get("daily") or {}
            if not isinstance(daily, dict):
                raise ValueError("daily block is not an object")
            if not daily.get("time"):
                logger.info("No daily weather returned")
                return pd.DataFrame()

            days = len(daily["time"])
            df = pd.DataFrame({"date": pd.to_datetime(daily["time"])})
            for var in self.DAILY_VARIABLES:
                column = pd.Series(daily.get(var) or [None] * days, dtype="object")
                df[var] = pd.to_numeric(column, errors="coerce").astype(float)
            logger.info(f"Retrieved {len(df)} days of weather")
            return df

        except requests.exceptions.RequestException as e:
            logger.error(f"Error fetching daily weather: {e}")
            return pd.DataFrame()
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed daily weather payload: {e}")
            return pd.DataFrame()

    def get_sea_surface_temperature(
        self,
        latitude: float,
        longitude: float,
        forecast_days: int = 2
    ) -> Optional[float]:
        """Highest hourly sea surface temperature over the forecast window"""
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "hourly": "sea_surface_temperature",
            "timezone": self.timezone,
            "forecast_days": forecast_days,
        }

        try:
            response = self.session.get(self.marine_url, params=params, timeout=30)
            response.raise_for_status()

            payload = response.json()
            if not isinstance(payload, dict):
                raise ValueError(f"expected a JSON object, got {type(payload).__name__}")

            hourly = payload.get("hourly") or {}
            if not isinstance(hourly, dict):
                raise ValueError("hourly block is not an object")
            values = hourly.get("sea_surface_temperature") or []
            series = pd.to_numeric(pd.Series(values, dtype="object"), errors="coerce").dropna()
            if series.empty:
                return None
            return float(series.max())

        except requests.exceptions.RequestException as e:
            logger.error(f"Error fetching sea surface temperature: {e}")
            return None
        except (TypeError, ValueError) as e:
            logger.error(f"Malformed marine payload: {e}")
            return None

    def get_hazard_features(
        self,
        latitude: float,
        longitude: float,
        today: Optional[date] = None,
        include_marine: bool = True
    ) -> HazardFeatures:
        """
        Derive aggregator features for a point

        Rainfall is summed over the last seven observed days; temperature and
        wind are the maxima over the forecast days. Anything that cannot be
        fetched is left absent.
        """
        today = pd.Timestamp(today or date.today())
        weather = self.get_daily_weather(latitude, longitude)

        values = {}
        if not weather.empty:
            observed = weather[weather["date"] < today].tail(7)
            upcoming = weather[weather["date"] >= today]

            if not observed.empty:
                values["precipitation_7d"] = observed["precipitation_sum"].sum(min_count=1)
            if not upcoming.empty:
                values["max_temperature"] = upcoming["temperature_2m_max"].max()
                values["max_wind_speed"] = upcoming["windspeed_10m_max"].max()

        if include_marine:
            values["sea_surface_temperature"] = self.get_sea_surface_temperature(latitude, longitude)

        features = HazardFeatures.from_mapping(
            {k: float(v) for k, v in values.items() if v is not None and not math.isnan(float(v))}
        )
        logger.info(f"Features for ({latitude}, {longitude}): {features.model_dump(exclude_none=True)}")
        return features


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("OPEN-METEO CONNECTOR TEST")
    print("=" * 60 + "\n")

    connector = OpenMeteoConnector()

    print("Fetching hazard features for Puri, Odisha...")
    features = connector.get_hazard_features(19.81, 85.83)
    print(features.model_dump(exclude_none=True))
