import datetime as dt
import httpx
from pydantic import ValidationError
from typing import Any, Dict

from trip_rag.core.config import Settings
from trip_rag.core.errors import RecoverableFetchError
from trip_rag.core.schemas import WeatherCondition, WeatherForecast
from trip_rag.services.weather.schemas import OneCallResponse


class OpenWeather:
    """Async client for the OpenWeatherMap One Call API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.openweathermap.org/data/3.0",
        timeout_s: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"accept": "application/json"},
            timeout=httpx.Timeout(timeout_s, connect=10.0),
        )
        self.api_url = base_url.rstrip("/")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "OpenWeather":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._client.aclose()

    async def _aget(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise RecoverableFetchError("weather", str(exc) or type(exc).__name__, cause=exc) from exc

    async def one_call(self, latitude: float, longitude: float) -> OneCallResponse:
        """Fetch current conditions and the daily forecast in metric units."""

        params = {
            "lat": f"{latitude:.6f}",
            "lon": f"{longitude:.6f}",
            "appid": self.api_key,
            "units": "metric",
            "exclude": "minutely,hourly,alerts",
        }
        data = await self._aget(f"{self.api_url}/onecall", params)
        try:
            return OneCallResponse.model_validate(data)
        except ValidationError as exc:
            raise RecoverableFetchError("weather", "unexpected response shape", cause=exc) from exc

    async def forecast(self, latitude: float, longitude: float) -> WeatherForecast:
        """Return the forecast converted to the shared ``WeatherForecast`` model."""

        payload = await self.one_call(latitude, longitude)
        return to_forecast(payload)


def to_forecast(payload: OneCallResponse, *, today: dt.date | None = None) -> WeatherForecast:
    """Map a One Call payload onto ``WeatherForecast``."""

    current = WeatherCondition(
        date=today or dt.date.today(),
        temperature=payload.current.temp,
        humidity=payload.current.humidity,
        wind_speed=payload.current.wind_speed,
    )
    if payload.current.weather:
        current.description = payload.current.weather[0].description
        current.icon = payload.current.weather[0].icon

    forecast = []
    for daily in payload.daily:
        condition = WeatherCondition(
            date=dt.datetime.fromtimestamp(daily.dt, tz=dt.timezone.utc).date(),
            temperature=daily.temp.day,
            humidity=daily.humidity,
            wind_speed=daily.wind_speed,
        )
        if daily.weather:
            condition.description = daily.weather[0].description
            condition.icon = daily.weather[0].icon
        forecast.append(condition)

    return WeatherForecast(current=current, forecast=forecast)


def create_weather_client(settings: Settings) -> OpenWeather:
    """Instantiate the weather client using project settings."""

    api_key = settings.ensure("weather_api_key")
    return OpenWeather(api_key, timeout_s=settings.fetch_timeout_s)
