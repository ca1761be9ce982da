"""Source connector: raw candidate data from third-party providers.

``DataSourceConnector`` talks to Google Places (attractions, hotels) and
OpenWeatherMap (weather) when credentials are configured and otherwise serves
the deterministic data from ``mock_data``. Attraction and hotel lookups never
raise; the remaining fetches may raise ``RecoverableFetchError`` and are
expected to be degraded by the caller.
"""
from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence, Tuple

from trip_rag.core.config import Settings
from trip_rag.core.errors import RecoverableFetchError
from trip_rag.core.schemas import (
    Attraction,
    EMTItem,
    Hotel,
    LocalEvent,
    Location,
    TransportOption,
    WeatherForecast,
)
from trip_rag.services import mock_data
from trip_rag.services.geocoding import get_coordinates_nominatim
from trip_rag.services.places import GooglePlaces, PlaceResult, TextSearch, create_places_client
from trip_rag.services.weather import OpenWeather, create_weather_client

Geocoder = Callable[[str], Awaitable[Optional[Tuple[float, float]]]]

INTEREST_PLACE_TYPES = {
    "culture": ("museum", "art_gallery"),
    "history": ("museum", "art_gallery"),
    "food": ("restaurant", "cafe"),
    "dining": ("restaurant", "cafe"),
    "nature": ("park", "natural_feature"),
    "outdoor": ("park", "natural_feature"),
    "adventure": ("amusement_park", "zoo"),
    "activity": ("amusement_park", "zoo"),
    "shopping": ("shopping_mall", "store"),
    "nightlife": ("night_club", "bar"),
}

PLACE_TYPE_CATEGORIES = {
    "museum": "culture",
    "art_gallery": "culture",
    "restaurant": "dining",
    "cafe": "dining",
    "food": "dining",
    "park": "nature",
    "natural_feature": "nature",
    "amusement_park": "entertainment",
    "zoo": "entertainment",
    "shopping_mall": "shopping",
    "store": "shopping",
    "tourist_attraction": "attraction",
}

# Nightly rate by Places price level 0-4.
HOTEL_BASE_PRICES = (50.0, 100.0, 150.0, 250.0, 400.0)
DEFAULT_HOTEL_PRICE = 100.0


class SourceConnector(Protocol):
    """Interface the context retriever fetches candidates through."""

    async def fetch_attractions(self, destination: str, interests: Sequence[str]) -> List[Attraction]:
        ...

    async def fetch_hotels(
        self, destination: str, check_in: dt.date, check_out: dt.date, budget: float
    ) -> List[Hotel]:
        ...

    async def fetch_weather(self, destination: str, start_date: dt.date, end_date: dt.date) -> WeatherForecast:
        ...

    async def fetch_local_events(
        self, destination: str, start_date: dt.date, end_date: dt.date
    ) -> List[LocalEvent]:
        ...

    async def fetch_transportation(
        self, destination: str, start_date: dt.date, end_date: dt.date
    ) -> List[TransportOption]:
        ...

    async def fetch_emt_inventory(self, destination: str) -> List[EMTItem]:
        ...


def map_interests_to_place_types(interests: Sequence[str]) -> List[str]:
    """Translate traveler interests into Places types, keeping first-seen order."""

    place_types = ["tourist_attraction"]
    for interest in interests:
        for place_type in INTEREST_PLACE_TYPES.get(interest.strip().lower(), ()):
            if place_type not in place_types:
                place_types.append(place_type)
    return place_types


def map_place_type_to_category(types: Sequence[str]) -> str:
    for place_type in types:
        category = PLACE_TYPE_CATEGORIES.get(place_type)
        if category:
            return category
    return "attraction"


def estimate_hotel_price(price_level: int, budget: float, *, assumed_nights: int = 7) -> float:
    """Nightly price from the Places price level, capped by the per-night budget."""

    if not 0 <= price_level < len(HOTEL_BASE_PRICES):
        return DEFAULT_HOTEL_PRICE
    base_price = HOTEL_BASE_PRICES[price_level]
    if budget > 0:
        budget_per_night = budget / assumed_nights
        if budget_per_night < base_price:
            return budget_per_night
    return base_price


def _place_location(place: PlaceResult) -> Location:
    return Location(
        latitude=place.geometry.location.lat,
        longitude=place.geometry.location.lng,
        address=place.vicinity or place.formatted_address or "",
    )


def place_to_attraction(place: PlaceResult) -> Attraction:
    return Attraction(
        id=place.place_id,
        name=place.name,
        type=map_place_type_to_category(place.types),
        location=_place_location(place),
        rating=min(max(place.rating, 0.0), 5.0),
        price_level=min(max(place.price_level, 0), 4),
        opening_hours=list(place.opening_hours.weekday_text) if place.opening_hours else [],
        tags=list(place.types),
        available=True,
    )


def place_to_hotel(place: PlaceResult, budget: float, *, assumed_nights: int = 7) -> Hotel:
    return Hotel(
        id=place.place_id,
        name=place.name,
        location=_place_location(place),
        rating=min(max(place.rating, 0.0), 5.0),
        price_per_night=estimate_hotel_price(place.price_level, budget, assumed_nights=assumed_nights),
        amenities=["WiFi", "Air Conditioning"],
        available=True,
    )


class DataSourceConnector:
    """Default ``SourceConnector`` backed by Places, OpenWeatherMap and mock data."""

    def __init__(
        self,
        places: Optional[GooglePlaces] = None,
        weather: Optional[OpenWeather] = None,
        *,
        geocoder: Geocoder = get_coordinates_nominatim,
        assumed_nights: int = 7,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._places = places
        self._weather = weather
        self._geocoder = geocoder
        self._assumed_nights = assumed_nights
        self._logger = logger or logging.getLogger(__name__)

    async def aclose(self) -> None:
        """Close any HTTP clients owned by the connector."""

        if self._places is not None:
            await self._places.aclose()
        if self._weather is not None:
            await self._weather.aclose()

    async def fetch_attractions(self, destination: str, interests: Sequence[str]) -> List[Attraction]:
        """Attractions for ``destination``; mock data when Places is unavailable."""

        if self._places is None:
            self._logger.info("Maps API key not configured, returning mock attractions")
            return mock_data.mock_attractions(destination)

        place_types = map_interests_to_place_types(interests)
        searches = [
            self._places.text_search(TextSearch(query=f"{place_type} {destination}", type=place_type))
            for place_type in place_types
        ]
        responses = await asyncio.gather(*searches, return_exceptions=True)

        attractions: List[Attraction] = []
        seen_ids = set()
        for place_type, response in zip(place_types, responses):
            if isinstance(response, BaseException):
                self._logger.warning(
                    "Error fetching attractions for type %s: %s",
                    place_type,
                    response,
                    extra={"source": "places", "place_type": place_type},
                )
                continue
            for place in response.results:
                if place.place_id in seen_ids:
                    continue
                seen_ids.add(place.place_id)
                attractions.append(place_to_attraction(place))

        if not attractions:
            self._logger.info("No attractions found via Places for %s, returning mock attractions", destination)
            return mock_data.mock_attractions(destination)
        return attractions

    async def fetch_hotels(
        self, destination: str, check_in: dt.date, check_out: dt.date, budget: float
    ) -> List[Hotel]:
        """Hotels for ``destination``; mock data on any failure."""

        if self._places is None:
            self._logger.info("Maps API key not configured, returning mock hotels")
            return mock_data.mock_hotels(destination)

        try:
            response = await self._places.text_search(
                TextSearch(query=f"hotels in {destination}", type="lodging")
            )
        except RecoverableFetchError as exc:
            self._logger.warning("Hotels API error: %s", exc, extra={"source": "places"})
            return mock_data.mock_hotels(destination)

        hotels = [
            place_to_hotel(place, budget, assumed_nights=self._assumed_nights)
            for place in response.results
        ]
        if not hotels:
            return mock_data.mock_hotels(destination)
        return hotels

    async def fetch_weather(self, destination: str, start_date: dt.date, end_date: dt.date) -> WeatherForecast:
        if self._weather is None:
            self._logger.info("Weather API key not configured, returning mock weather")
            return mock_data.mock_weather(start_date, end_date)

        coordinates = await self._geocoder(destination)
        if coordinates is None:
            raise RecoverableFetchError("weather", f"could not geocode {destination!r}")
        latitude, longitude = coordinates
        return await self._weather.forecast(latitude, longitude)

    async def fetch_local_events(
        self, destination: str, start_date: dt.date, end_date: dt.date
    ) -> List[LocalEvent]:
        return mock_data.mock_local_events(destination, start_date)

    async def fetch_transportation(
        self, destination: str, start_date: dt.date, end_date: dt.date
    ) -> List[TransportOption]:
        return mock_data.mock_transportation(destination)

    async def fetch_emt_inventory(self, destination: str) -> List[EMTItem]:
        return mock_data.emt_inventory(destination)


def create_data_source_connector(
    settings: Settings, *, logger: Optional[logging.Logger] = None
) -> DataSourceConnector:
    """Build the connector, enabling each provider whose key is configured."""

    places = create_places_client(settings) if settings.google_maps_api_key else None
    weather = create_weather_client(settings) if settings.weather_api_key else None
    return DataSourceConnector(places, weather, logger=logger)
