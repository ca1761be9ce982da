"""Google Places integration.

Public API:
    - GooglePlaces: Async HTTP client for the Places text search endpoint
    - create_places_client: Factory function to create the client from settings
    - TextSearch, PlacesResponse, PlaceResult: Pydantic request/response schemas
"""
from trip_rag.services.places.client import GooglePlaces, create_places_client
from trip_rag.services.places.schemas import (
    PlaceResult,
    PlacesResponse,
    TextSearch,
)

__all__ = [
    "GooglePlaces",
    "create_places_client",
    "PlaceResult",
    "PlacesResponse",
    "TextSearch",
]
