"""OpenWeatherMap integration.

Public API:
    - OpenWeather: Async HTTP client for the One Call endpoint
    - create_weather_client: Factory function to create the client from settings
    - to_forecast: Convert a One Call payload into ``WeatherForecast``
"""
from trip_rag.services.weather.client import OpenWeather, create_weather_client, to_forecast
from trip_rag.services.weather.schemas import OneCallResponse

__all__ = [
    "OpenWeather",
    "create_weather_client",
    "to_forecast",
    "OneCallResponse",
]
