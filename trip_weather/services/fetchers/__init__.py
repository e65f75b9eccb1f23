"""Provider adapters producing normalized ``WeatherRecord`` values."""

from .base import WeatherFetcher, DataNotFound
from .openweather import OpenWeatherFetcher
from .accuweather import AccuWeatherFetcher
from .openweather_18m import OpenWeather18mFetcher
from .climate_normals import ClimateNormalsFetcher

__all__ = [
    "WeatherFetcher",
    "DataNotFound",
    "OpenWeatherFetcher",
    "AccuWeatherFetcher",
    "OpenWeather18mFetcher",
    "ClimateNormalsFetcher",
]
