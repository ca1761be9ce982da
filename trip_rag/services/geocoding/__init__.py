"""Geocoding and location resolution services.

This module converts destination names to coordinates using the Nominatim
OpenStreetMap API; the weather source needs coordinates.

Public API:
    - get_coordinates_nominatim: Function to convert address to coordinates
"""
from trip_rag.services.geocoding.geocoding import get_coordinates_nominatim

__all__ = [
    "get_coordinates_nominatim",
]
