from typing import List
from pydantic import BaseModel, ConfigDict, Field


class WeatherDescription(BaseModel):
    main: str = ""
    description: str = ""
    icon: str = ""

    model_config = ConfigDict(extra="ignore")


class WeatherCurrent(BaseModel):
    temp: float = 0.0
    humidity: int = 0
    wind_speed: float = 0.0
    weather: List[WeatherDescription] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class DailyTemperature(BaseModel):
    day: float = 0.0
    min: float = 0.0
    max: float = 0.0

    model_config = ConfigDict(extra="ignore")


class WeatherDaily(BaseModel):
    dt: int
    temp: DailyTemperature = Field(default_factory=DailyTemperature)
    humidity: int = 0
    wind_speed: float = 0.0
    weather: List[WeatherDescription] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class OneCallResponse(BaseModel):
    """Subset of the OpenWeatherMap One Call payload used for forecasts."""
    current: WeatherCurrent = Field(default_factory=WeatherCurrent)
    daily: List[WeatherDaily] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")
