"""Small helpers for using the public Nominatim geocoding service."""
from __future__ import annotations

from typing import Optional, Tuple

import httpx


async def get_coordinates_nominatim(
    location: str,
    *,
    user_agent: str = "TripRag/1.0",
    timeout: float = 10.0,
) -> Optional[Tuple[float, float]]:
    """Return ``(lat, lon)`` for the requested location or ``None``."""

    if not location:
        return None

    try:
        async with httpx.AsyncClient(timeout=timeout, headers={"User-Agent": user_agent}) as client:
            response = await client.get(
                "https://nominatim.openstreetmap.org/search",
                params={"q": location, "format": "json", "limit": 1},
            )
            response.raise_for_status()
            data = response.json()
    except (httpx.HTTPError, ValueError):
        return None

    if not data:
        return None

    first = data[0]
    try:
        return float(first["lat"]), float(first["lon"])
    except (KeyError, TypeError, ValueError):
        return None
