from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class TextSearch(BaseModel):
    """Request schema for the Places text search endpoint."""
    query: str
    type: Optional[str] = Field(default=None, description="Restrict results to a place type")
    language: Optional[str] = Field(default="en")


class PlaceLocation(BaseModel):
    lat: float = 0.0
    lng: float = 0.0


class PlaceGeometry(BaseModel):
    location: PlaceLocation = Field(default_factory=PlaceLocation)


class PlaceOpeningHours(BaseModel):
    open_now: Optional[bool] = None
    weekday_text: List[str] = Field(default_factory=list)


class PlaceResult(BaseModel):
    """Single place returned by a text search."""
    place_id: str
    name: str
    types: List[str] = Field(default_factory=list)
    rating: float = 0.0
    price_level: int = 0
    geometry: PlaceGeometry = Field(default_factory=PlaceGeometry)
    opening_hours: Optional[PlaceOpeningHours] = None
    vicinity: str = ""
    formatted_address: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class PlacesResponse(BaseModel):
    """Envelope returned by the text search endpoint."""
    results: List[PlaceResult] = Field(default_factory=list)
    status: str

    model_config = ConfigDict(extra="ignore")
