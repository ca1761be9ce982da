"""External collaborators of the retrieval engine.

This package provides the clients and adapters the context retriever pulls
data through:

- Places: Google Places text search for attractions and hotels
- Weather: OpenWeatherMap One Call forecasts
- Geocoding: destination name to coordinates (Nominatim)
- Connector: the ``SourceConnector`` that combines the above with mock data
- Embeddings: ``text -> vector`` providers (deterministic hashing or OpenAI)
- Profiles: read-only user profile and trip history lookup

Example Usage:
    >>> from trip_rag.core.config import Settings
    >>> from trip_rag.services import build_embeddings, create_data_source_connector
    >>>
    >>> settings = Settings.from_env()
    >>> connector = create_data_source_connector(settings)
    >>> embeddings = build_embeddings(settings)
"""

from trip_rag.services.places import GooglePlaces, create_places_client
from trip_rag.services.weather import OpenWeather, create_weather_client
from trip_rag.services.geocoding import get_coordinates_nominatim
from trip_rag.services.connector import (
    DataSourceConnector,
    SourceConnector,
    create_data_source_connector,
)
from trip_rag.services.embeddings import HashingEmbeddings, build_embeddings
from trip_rag.services.profiles import InMemoryUserProfileStore, UserProfileStore

__all__ = [
    # Places
    "GooglePlaces",
    "create_places_client",
    # Weather
    "OpenWeather",
    "create_weather_client",
    # Geocoding
    "get_coordinates_nominatim",
    # Connector
    "DataSourceConnector",
    "SourceConnector",
    "create_data_source_connector",
    # Embeddings
    "HashingEmbeddings",
    "build_embeddings",
    # Profiles
    "InMemoryUserProfileStore",
    "UserProfileStore",
]
