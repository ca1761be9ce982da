"""Pytest configuration and shared fixtures for the trip retrieval project."""
from __future__ import annotations

import asyncio
import datetime as dt
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Ensure the project root is on sys.path so that import trip_rag works under pytest.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from trip_rag.core.errors import RecoverableFetchError  # noqa: E402
from trip_rag.core.schemas import (  # noqa: E402
    Attraction,
    EMTItem,
    Hotel,
    LocalEvent,
    RetrievalRequest,
    TransportOption,
    WeatherForecast,
)
from trip_rag.pipelines.ranking import ValidatorRanker  # noqa: E402
from trip_rag.pipelines.vector_index import VectorIndex  # noqa: E402
from trip_rag.services import mock_data  # noqa: E402
from trip_rag.services.embeddings import HashingEmbeddings  # noqa: E402


def make_attraction(id: str = "a1", **overrides) -> Attraction:
    data = {"id": id, "name": f"Attraction {id}", "type": "culture", "rating": 4.0, "price_level": 1}
    data.update(overrides)
    return Attraction(**data)


def make_hotel(id: str = "h1", **overrides) -> Hotel:
    data = {"id": id, "name": f"Hotel {id}", "rating": 4.0, "price_per_night": 100.0}
    data.update(overrides)
    return Hotel(**data)


class StubConnector:
    """In-memory ``SourceConnector`` whose sources can be made to fail or stall."""

    def __init__(
        self,
        *,
        failing: Optional[List[str]] = None,
        delays: Optional[Dict[str, float]] = None,
    ) -> None:
        self.failing = set(failing or [])
        self.delays = delays or {}
        self.calls: List[str] = []
        self.closed = False

    async def _source(self, name: str, value):
        self.calls.append(name)
        delay = self.delays.get(name)
        if delay:
            await asyncio.sleep(delay)
        if name in self.failing:
            raise RecoverableFetchError(name, "upstream unavailable")
        return value

    async def fetch_attractions(self, destination, interests) -> List[Attraction]:
        return await self._source("attractions", mock_data.mock_attractions(destination))

    async def fetch_hotels(self, destination, check_in, check_out, budget) -> List[Hotel]:
        return await self._source("hotels", mock_data.mock_hotels(destination))

    async def fetch_weather(self, destination, start_date, end_date) -> WeatherForecast:
        return await self._source("weather", mock_data.mock_weather(start_date, end_date))

    async def fetch_local_events(self, destination, start_date, end_date) -> List[LocalEvent]:
        return await self._source("local_events", mock_data.mock_local_events(destination, start_date))

    async def fetch_transportation(self, destination, start_date, end_date) -> List[TransportOption]:
        return await self._source("transportation", mock_data.mock_transportation(destination))

    async def fetch_emt_inventory(self, destination) -> List[EMTItem]:
        return await self._source("emt_inventory", mock_data.emt_inventory(destination))

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def embeddings() -> HashingEmbeddings:
    return HashingEmbeddings(dimensions=64)


@pytest.fixture
def vector_index(embeddings: HashingEmbeddings) -> VectorIndex:
    return VectorIndex(embeddings)


@pytest.fixture
def ranker() -> ValidatorRanker:
    return ValidatorRanker()


@pytest.fixture
def retrieval_request() -> RetrievalRequest:
    return RetrievalRequest(
        destination="Lisbon",
        start_date=dt.date(2025, 5, 10),
        end_date=dt.date(2025, 5, 14),
        budget=2000,
        travelers=2,
        interests=["culture"],
    )
