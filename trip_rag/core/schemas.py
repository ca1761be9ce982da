"""Pydantic data models for contextual trip retrieval.

This module contains the candidate items gathered from external sources, the
aggregate ``TripContext`` handed to the itinerary generator, and the request,
criteria and weight models that drive validation and ranking.

Key model categories:
- Attraction, Hotel, TransportOption, LocalEvent, EMTItem: candidate items
- WeatherCondition / WeatherForecast: destination weather
- UserProfile / TripData: read-only user history used for similarity signals
- RetrievalRequest: one planning request
- ValidationCriteria / RankingWeights: filter and scoring parameters
- TripContext: everything retrieved for one request
"""
from __future__ import annotations

import datetime as dt
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from trip_rag.core.types import (
    HttpURLStr,
    Lat,
    Lon,
    NonNegMoney,
    NonNegWeight,
    PriceLevel,
    Rating,
)


class Location(BaseModel):
    """Geographic position plus a human-readable address."""
    latitude: Lat = 0.0
    longitude: Lon = 0.0
    address: str = ""

    model_config = ConfigDict(extra="forbid")


class BookableItem(BaseModel):
    """Candidate kind whose availability can be re-checked after retrieval.

    Subclasses set ``availability_stride``: the mock availability check marks
    every item whose index is a multiple of the stride as unavailable.
    """
    available: bool = True

    availability_stride: ClassVar[int] = 1

    def with_availability(self, available: bool) -> "BookableItem":
        """Return a copy of the item with ``available`` replaced."""

        return self.model_copy(update={"available": available})


class Attraction(BookableItem):
    """Tourist attraction, restaurant, park or any other point of interest.

    Attributes:
        id: Identifier from the source system (e.g. a Places ``place_id``)
        name: Display name
        type: Category such as museum, culture, park, restaurant
        location: Coordinates and address
        rating: Average rating on a 0-5 scale
        price_level: Discrete price indicator from 0 (free) to 4 (very expensive)
        opening_hours: Free-form opening hours lines
        description: Short description
        tags: Source categories and keywords used for preference matching
        available: Whether the attraction can be visited in the trip window
    """
    id: str
    name: str
    type: str = "attraction"
    location: Location = Field(default_factory=Location)
    rating: Rating = 0.0
    price_level: PriceLevel = 0
    opening_hours: List[str] = Field(default_factory=list)
    description: str = ""
    tags: List[str] = Field(default_factory=list)

    availability_stride: ClassVar[int] = 5

    model_config = ConfigDict(extra="forbid")


class Hotel(BookableItem):
    """Accommodation option priced per night."""
    id: str
    name: str
    location: Location = Field(default_factory=Location)
    rating: Rating = 0.0
    price_per_night: NonNegMoney = 0.0
    amenities: List[str] = Field(default_factory=list)
    booking_url: Optional[HttpURLStr] = None

    availability_stride: ClassVar[int] = 7

    model_config = ConfigDict(extra="forbid")


class TransportOption(BookableItem):
    """Way of getting to the destination (flight, train, bus, car rental)."""
    type: str
    from_: str = Field(default="", alias="from")
    to: str = ""
    duration: str = ""
    price: NonNegMoney = 0.0
    booking_url: Optional[HttpURLStr] = None
    provider: str = ""

    availability_stride: ClassVar[int] = 4

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class LocalEvent(BaseModel):
    """Dated local happening such as a festival or market."""
    id: str
    name: str
    location: Location = Field(default_factory=Location)
    date: Optional[dt.date] = None
    category: str = ""
    price: NonNegMoney = 0.0
    description: str = ""
    available: bool = True

    model_config = ConfigDict(extra="forbid")


class EMTItem(BaseModel):
    """Emergency medical service, facility or equipment near the destination."""
    id: str
    name: str
    type: str = "facility"
    location: Location = Field(default_factory=Location)
    available: bool = True
    description: str = ""
    contact: str = ""

    model_config = ConfigDict(extra="forbid")


class WeatherCondition(BaseModel):
    """Weather observation or forecast for a single day."""
    date: Optional[dt.date] = None
    temperature: float = 0.0
    description: str = ""
    humidity: int = 0
    wind_speed: float = 0.0
    icon: str = ""

    model_config = ConfigDict(extra="forbid")


class WeatherForecast(BaseModel):
    """Current conditions plus an ordered daily forecast."""
    current: WeatherCondition = Field(default_factory=WeatherCondition)
    forecast: List[WeatherCondition] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class UserProfile(BaseModel):
    """Read-only view of a stored user profile."""
    uid: str
    email: Optional[str] = None
    display_name: str = ""
    travel_preferences: Dict[str, Any] = Field(default_factory=dict)
    trip_history: List[str] = Field(default_factory=list)


class TripData(BaseModel):
    """A trip previously planned by a user."""
    id: str
    user_id: str = ""
    title: str = ""
    destination: str = ""
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    status: str = ""
    itinerary: Dict[str, Any] = Field(default_factory=dict)
    budget: NonNegMoney = 0.0
    travelers: int = Field(default=1, ge=0)


class RetrievalRequest(BaseModel):
    """Parameters of a single planning request."""
    user_id: Optional[str] = None
    destination: str = Field(min_length=1)
    start_date: dt.date
    end_date: dt.date
    budget: NonNegMoney = 0.0
    travelers: int = Field(default=1, ge=1)
    interests: List[str] = Field(default_factory=list)
    preferences: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")

    @field_validator("destination")
    @classmethod
    def strip_destination(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("destination must not be blank")
        return value

    @model_validator(mode="after")
    def validate_dates(self) -> "RetrievalRequest":
        if self.start_date > self.end_date:
            raise ValueError("start_date must be before or equal to end_date")
        return self

    @property
    def days_number(self) -> int:
        return (self.end_date - self.start_date).days + 1


class ValidationCriteria(BaseModel):
    """Constraints applied by the filter stage of validation and ranking."""
    budget: NonNegMoney = Field(default=0.0, description="Total trip budget; 0 means unconstrained")
    required_rating: float = Field(default=0.0, description="Minimum rating an item must have")
    preferred_types: List[str] = Field(default_factory=list)
    accessibility: bool = False
    preferences: Dict[str, Any] = Field(default_factory=dict)
    availability_check: bool = False


class RankingWeights(BaseModel):
    """Weights of the scoring factors.

    They nominally sum to 1.0, but any non-negative combination is accepted.
    """
    rating: NonNegWeight = 0.3
    price: NonNegWeight = 0.25
    distance: NonNegWeight = 0.2
    availability: NonNegWeight = 0.15
    user_match: NonNegWeight = 0.1


class TripContext(BaseModel):
    """Everything retrieved for one planning request.

    List fields are always lists; an empty category means the sources had
    nothing usable, not that retrieval failed.
    """
    destination: str
    user_profile: Optional[UserProfile] = None
    attractions: List[Attraction] = Field(default_factory=list)
    hotels: List[Hotel] = Field(default_factory=list)
    weather: WeatherForecast = Field(default_factory=WeatherForecast)
    local_events: List[LocalEvent] = Field(default_factory=list)
    transportation: List[TransportOption] = Field(default_factory=list)
    similar_trips: List[TripData] = Field(default_factory=list)
    emt_inventory: List[EMTItem] = Field(default_factory=list)

    @field_validator(
        "attractions",
        "hotels",
        "local_events",
        "transportation",
        "similar_trips",
        "emt_inventory",
        mode="before",
    )
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("weather", mode="before")
    @classmethod
    def none_to_empty_weather(cls, value: Any) -> Any:
        return WeatherForecast() if value is None else value


def default_ranking_weights() -> RankingWeights:
    """Return the default 0.3/0.25/0.2/0.15/0.1 weights."""

    return RankingWeights()


__all__ = [
    "Location",
    "BookableItem",
    "Attraction",
    "Hotel",
    "TransportOption",
    "LocalEvent",
    "EMTItem",
    "WeatherCondition",
    "WeatherForecast",
    "UserProfile",
    "TripData",
    "RetrievalRequest",
    "ValidationCriteria",
    "RankingWeights",
    "TripContext",
    "default_ranking_weights",
]
