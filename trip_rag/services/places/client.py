from trip_rag.core.config import Settings
from trip_rag.core.errors import RecoverableFetchError
import httpx
from pydantic import ValidationError
from typing import Dict, Any
from trip_rag.services.places.schemas import TextSearch, PlacesResponse

# Statuses that mean the request itself worked.
_OK_STATUSES = ("OK", "ZERO_RESULTS")


class GooglePlaces:
    """Thin async wrapper around the Google Places text search API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://maps.googleapis.com/maps/api/place",
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
        """Close the underlying HTTPX client."""

        await self._client.aclose()

    async def __aenter__(self) -> "GooglePlaces":
        """Support async context-manager usage."""

        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        """Ensure the HTTP client is closed when leaving a context."""

        await self._client.aclose()

    async def _aget(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Execute an authenticated GET request and return the parsed JSON."""

        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise RecoverableFetchError("places", str(exc) or type(exc).__name__, cause=exc) from exc

    async def text_search(self, input: TextSearch) -> PlacesResponse:
        """Search places matching a free-text query such as ``museum Lisbon``."""

        params = {"key": self.api_key, **input.model_dump(exclude_none=True)}
        data = await self._aget(f"{self.api_url}/textsearch/json", params)
        try:
            result = PlacesResponse.model_validate(data)
        except ValidationError as exc:
            raise RecoverableFetchError("places", "unexpected response shape", cause=exc) from exc
        if result.status not in _OK_STATUSES:
            raise RecoverableFetchError("places", f"Places API error: {result.status}")
        return result


def create_places_client(settings: Settings) -> GooglePlaces:
    """Instantiate the Places client using project settings."""

    api_key = settings.ensure("google_maps_api_key")
    return GooglePlaces(api_key, timeout_s=settings.fetch_timeout_s)
