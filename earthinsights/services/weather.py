# earthinsights/services/weather.py
import math
from datetime import date
from types import MappingProxyType
from typing import Any, Dict, List, Optional

import numpy as np

from ..core.config import Settings, settings
from ..utils.http import get_json
from ..utils.time import iso

# WMO weather interpretation codes used by Open-Meteo
WEATHER_CODES = MappingProxyType({
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
})

NO_DATA = "No weather data available"

DAY_FIELDS = "temperature_2m_max,temperature_2m_min,weathercode,uv_index_max"
RANGE_FIELDS = "temperature_2m_max,temperature_2m_min,precipitation_sum,windspeed_10m_max"


def describe_code(code) -> str:
    return WEATHER_CODES.get(code, "Unknown weather")


def _round(v) -> str:
    # half up, not banker's rounding
    return "n/a" if v is None else str(int(math.floor(float(v) + 0.5)))


def _first(daily: Dict[str, Any], key: str):
    vals = daily.get(key) or []
    return vals[0] if vals else None


def format_daily(daily: Dict[str, Any]) -> str:
    """'High: 22°C, Low: 14°C, Mainly clear, UV Index 5' from an Open-Meteo daily block."""
    if not daily or all(_first(daily, k) is None for k in DAY_FIELDS.split(",")):
        return NO_DATA
    return (f"High: {_round(_first(daily, 'temperature_2m_max'))}°C, "
            f"Low: {_round(_first(daily, 'temperature_2m_min'))}°C, "
            f"{describe_code(_first(daily, 'weathercode'))}, "
            f"UV Index {_round(_first(daily, 'uv_index_max'))}")


def _mean(values: List[Optional[float]]) -> Optional[float]:
    clean = [v for v in values or [] if v is not None]
    if not clean:
        return None
    return round(float(np.mean(np.array(clean, dtype=float))), 2)


def summarize_range(daily: Dict[str, Any]) -> Dict[str, Any]:
    precipitation = [p for p in daily.get("precipitation_sum") or [] if p is not None]
    return {
        "avgMaxTemp": _mean(daily.get("temperature_2m_max")),
        "avgMinTemp": _mean(daily.get("temperature_2m_min")),
        "totalPrecipitation": round(float(np.sum(np.array(precipitation, dtype=float))), 2) if precipitation else 0.0,
        "avgWindSpeed": _mean(daily.get("windspeed_10m_max")),
        "dataPoints": len(daily.get("time") or []),
    }


async def fetch_daily(lat: float, lon: float, start: date, end: date, fields: str,
                      timeout: float = 15.0, cfg: Settings = settings) -> Dict[str, Any]:
    params = {
        "latitude": lat,
        "longitude": lon,
        "start_date": iso(start),
        "end_date": iso(end),
        "daily": fields,
        "timezone": "auto",
    }
    return await get_json(cfg.open_meteo_archive, params=params, timeout=timeout)


async def historical_weather(lat: float, lon: float, day: date, timeout: float = 15.0, cfg: Settings = settings) -> str:
    """Formatted weather for a single day at a point."""
    data = await fetch_daily(lat, lon, day, day, DAY_FIELDS, timeout=timeout, cfg=cfg)
    return format_daily(data.get("daily") or {})
