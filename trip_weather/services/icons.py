"""Shared weather icon vocabulary and provider lookup tables.

Every record carries an OpenWeather-style condition code (``01d`` .. ``50n``).
Providers with their own codes are translated here so the tables can be
checked without any network access.
"""
from __future__ import annotations

from typing import Dict, FrozenSet, Optional

CLEAR = "01d"
PARTLY_CLOUDY = "02d"
CLOUDY = "03d"
OVERCAST = "04d"
SHOWERS = "09d"
RAIN = "10d"
THUNDERSTORM = "11d"
SNOW = "13d"
FOG = "50d"

ICON_CODES: FrozenSet[str] = frozenset(
    f"{code}{suffix}"
    for code in ("01", "02", "03", "04", "09", "10", "11", "13", "50")
    for suffix in ("d", "n")
)

# AccuWeather icon number -> shared code
ACCUWEATHER_ICONS: Dict[int, str] = {
    1: CLEAR,  # Sunny
    2: CLEAR,  # Mostly sunny
    3: PARTLY_CLOUDY,  # Partly sunny
    4: CLOUDY,  # Intermittent clouds
    5: OVERCAST,  # Hazy sunshine
    6: OVERCAST,  # Mostly cloudy
    7: OVERCAST,  # Cloudy
    8: OVERCAST,  # Dreary
    11: FOG,
    12: SHOWERS,
    13: RAIN,  # Mostly cloudy w/ showers
    14: RAIN,  # Partly sunny w/ showers
    15: THUNDERSTORM,
    16: THUNDERSTORM,
    17: THUNDERSTORM,
    18: RAIN,
    19: SNOW,  # Flurries
    20: SNOW,
    21: SNOW,
    22: SNOW,
    23: SNOW,
    24: SHOWERS,  # Ice
    25: SHOWERS,  # Sleet
    26: SHOWERS,  # Freezing rain
    29: RAIN,  # Rain and snow
    30: CLEAR,  # Hot
    31: CLEAR,  # Cold
    32: FOG,  # Windy
}

SOURCE_LABELS: Dict[str, str] = {
    "openweather": "Forecast",
    "accuweather": "Extended",
    "openweather18m": "Long-term",
    "climateNormals": "Seasonal Avg",
}


def accuweather_icon(code: Optional[int]) -> str:
    if code is None:
        return CLEAR
    return ACCUWEATHER_ICONS.get(int(code), CLEAR)


def long_range_icon(precip_mm: float, cloud_cover: Optional[float]) -> str:
    if precip_mm > 0:
        return RAIN
    if cloud_cover is not None and cloud_cover > 50:
        return CLOUDY
    return PARTLY_CLOUDY


def climate_normals_icon(
    precip_probability: float,
    cloud_cover: Optional[float],
    temperature_min: float,
) -> str:
    if precip_probability > 40:
        return RAIN
    if cloud_cover is not None and cloud_cover > 50:
        return CLOUDY
    if temperature_min < 0:
        return SNOW
    return PARTLY_CLOUDY


def source_label(source: str) -> str:
    return SOURCE_LABELS.get(source, "Weather")


def icon_url(icon: str) -> str:
    return f"https://openweathermap.org/img/wn/{icon}@2x.png"
