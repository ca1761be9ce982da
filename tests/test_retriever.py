"""Tests for the concurrent context retriever."""
from __future__ import annotations

import asyncio
import datetime as dt
import time
from typing import List, Optional

import pytest

from trip_rag.core.config import Settings
from trip_rag.core.errors import ConfigurationError
from trip_rag.core.schemas import RetrievalRequest, TripContext, TripData, UserProfile
from trip_rag.pipelines.retriever import ContextRetriever, build_context_retriever
from trip_rag.pipelines.vector_index import VectorIndex
from trip_rag.services.embeddings import HashingEmbeddings
from trip_rag.services.profiles import InMemoryUserProfileStore

from conftest import StubConnector


ALL_SOURCES = ["attractions", "hotels", "weather", "local_events", "transportation", "emt_inventory"]


class FailingProfileStore:
    async def get_user_profile(self, uid: str) -> Optional[UserProfile]:
        raise RuntimeError("profile database unavailable")

    async def get_user_trips(self, uid: str) -> List[TripData]:
        raise RuntimeError("profile database unavailable")


class SlowEmbeddings(HashingEmbeddings):
    """Hashing embeddings that stall on every provider call."""

    def __init__(self, delay: float) -> None:
        super().__init__(dimensions=64)
        self.delay = delay
        self.document_batches: List[int] = []

    async def aembed_documents(self, texts: List[str]) -> List[List[float]]:
        self.document_batches.append(len(texts))
        await asyncio.sleep(self.delay)
        return self.embed_documents(texts)

    async def aembed_query(self, text: str) -> List[float]:
        await asyncio.sleep(self.delay)
        return self.embed_query(text)


def _trip_history(count: int) -> List[TripData]:
    return [
        TripData(id=f"t{i}", user_id="u1", title=f"Trip {i}", destination="Lisbon") for i in range(count)
    ]


def _user_request() -> RetrievalRequest:
    return RetrievalRequest(
        user_id="u1",
        destination="Lisbon",
        start_date=dt.date(2025, 5, 10),
        end_date=dt.date(2025, 5, 12),
    )


def _assert_well_formed(context: TripContext) -> None:
    for field in ("attractions", "hotels", "local_events", "transportation", "similar_trips", "emt_inventory"):
        assert isinstance(getattr(context, field), list), field
    assert context.weather is not None


async def test_retrieve_context_ranks_and_applies_budget(vector_index, retrieval_request):
    connector = StubConnector()
    retriever = ContextRetriever(connector, vector_index)

    context = await retriever.retrieve_context(retrieval_request)

    _assert_well_formed(context)
    assert context.destination == "Lisbon"
    # park does not match the "culture" interest
    assert [a.id for a in context.attractions] == ["mock_1", "mock_2"]
    # 800 hotel budget: 120 x 7 = 840 is over, 80 x 7 = 560 fits
    assert [h.id for h in context.hotels] == ["hotel_2"]
    assert len(context.transportation) == 2
    assert len(context.weather.forecast) == 5
    assert len(context.local_events) == 2
    assert len(context.emt_inventory) == 2
    assert context.user_profile is None
    assert context.similar_trips == []
    assert sorted(connector.calls) == sorted(ALL_SOURCES)


async def test_failing_sources_degrade_to_fallbacks(vector_index, retrieval_request):
    connector = StubConnector(failing=ALL_SOURCES)
    retriever = ContextRetriever(connector, vector_index)

    context = await retriever.retrieve_context(retrieval_request)

    _assert_well_formed(context)
    assert [a.id for a in context.attractions] == ["mock_1", "mock_2"]
    assert [h.id for h in context.hotels] == ["hotel_2"]
    assert len(context.weather.forecast) == 5
    assert context.local_events == []
    assert context.transportation == []
    assert context.emt_inventory == []


async def test_unexpected_exceptions_also_degrade(vector_index, retrieval_request):
    class BrokenConnector(StubConnector):
        async def fetch_local_events(self, destination, start_date, end_date):
            raise KeyError("events")

    context = await ContextRetriever(BrokenConnector(), vector_index).retrieve_context(retrieval_request)

    assert context.local_events == []
    assert len(context.transportation) == 2


async def test_slow_source_times_out_and_degrades(vector_index, retrieval_request):
    connector = StubConnector(delays={"local_events": 5.0})
    retriever = ContextRetriever(connector, vector_index, fetch_timeout_s=0.05)

    started = time.perf_counter()
    context = await retriever.retrieve_context(retrieval_request)
    elapsed = time.perf_counter() - started

    assert context.local_events == []
    assert len(context.emt_inventory) == 2
    assert elapsed < 2.0


async def test_deadline_returns_partial_context(vector_index, retrieval_request):
    connector = StubConnector(delays={"transportation": 5.0, "attractions": 5.0})
    retriever = ContextRetriever(connector, vector_index, fetch_timeout_s=30, deadline_s=0.1)

    started = time.perf_counter()
    context = await retriever.retrieve_context(retrieval_request)
    elapsed = time.perf_counter() - started

    _assert_well_formed(context)
    assert context.transportation == []
    # attractions fall back to mock data
    assert [a.id for a in context.attractions] == ["mock_1", "mock_2"]
    assert len(context.local_events) == 2
    assert elapsed < 2.0


async def test_sources_are_fetched_concurrently(vector_index, retrieval_request):
    connector = StubConnector(delays={name: 0.3 for name in ALL_SOURCES})
    retriever = ContextRetriever(connector, vector_index)

    started = time.perf_counter()
    await retriever.retrieve_context(retrieval_request)
    elapsed = time.perf_counter() - started

    assert elapsed < 1.0


async def test_missing_vector_index_is_a_configuration_error(retrieval_request):
    retriever = ContextRetriever(StubConnector(), None)

    with pytest.raises(ConfigurationError):
        await retriever.retrieve_context(retrieval_request)


async def test_user_profile_and_similar_trips(vector_index):
    profile = UserProfile(uid="u1", display_name="Sam", travel_preferences={"pace": "slow"})
    trips = [
        TripData(id="lisbon", user_id="u1", title="Spring in Lisbon", destination="Lisbon"),
        TripData(id="tokyo", user_id="u1", title="Tokyo nights", destination="Tokyo"),
        TripData(id="draft", user_id="u1", title="Someday"),
        TripData(id="other", user_id="u2", title="Lisbon weekend", destination="Lisbon"),
    ]
    store = InMemoryUserProfileStore([profile], trips)
    await vector_index.store_trip_embedding(trips[3])
    retriever = ContextRetriever(StubConnector(), vector_index, profile_store=store)
    request = RetrievalRequest(
        user_id="u1",
        destination="Lisbon",
        start_date=dt.date(2025, 5, 10),
        end_date=dt.date(2025, 5, 12),
        interests=["culture"],
    )

    context = await retriever.retrieve_context(request)

    assert context.user_profile == profile
    assert {t.id for t in context.similar_trips} == {"lisbon", "tokyo"}
    assert context.similar_trips[0].id == "lisbon"


async def test_similar_trips_are_capped(vector_index):
    trips = [
        TripData(id=f"t{i}", user_id="u1", title=f"Trip {i}", destination="Lisbon") for i in range(8)
    ]
    retriever = ContextRetriever(
        StubConnector(),
        vector_index,
        profile_store=InMemoryUserProfileStore(trips=trips),
    )
    request = RetrievalRequest(
        user_id="u1",
        destination="Lisbon",
        start_date=dt.date(2025, 5, 10),
        end_date=dt.date(2025, 5, 12),
    )

    context = await retriever.retrieve_context(request)

    assert context.user_profile is None
    assert len(context.similar_trips) == 5


async def test_profile_store_failure_degrades(vector_index):
    retriever = ContextRetriever(StubConnector(), vector_index, profile_store=FailingProfileStore())
    request = RetrievalRequest(
        user_id="u1",
        destination="Lisbon",
        start_date=dt.date(2025, 5, 10),
        end_date=dt.date(2025, 5, 12),
    )

    context = await retriever.retrieve_context(request)

    assert context.user_profile is None
    assert context.similar_trips == []


async def test_ranked_attractions_are_indexed(vector_index, retrieval_request):
    retriever = ContextRetriever(StubConnector(), vector_index)

    context = await retriever.retrieve_context(retrieval_request)

    assert vector_index.count("attraction") == len(context.attractions)
    assert vector_index.get("attraction", "mock_1") is not None


async def test_indexing_can_be_disabled(vector_index, retrieval_request):
    retriever = ContextRetriever(StubConnector(), vector_index, index_candidates=False)

    await retriever.retrieve_context(retrieval_request)

    assert vector_index.count("attraction") == 0


async def test_simulated_availability_filters_unavailable_items(vector_index, retrieval_request):
    retriever = ContextRetriever(StubConnector(), vector_index, simulate_availability=True)

    context = await retriever.retrieve_context(retrieval_request)

    # the first item of every kind is marked unavailable
    assert [a.id for a in context.attractions] == ["mock_2"]
    assert [h.id for h in context.hotels] == ["hotel_2"]
    # transport is not filtered on availability, only flagged
    assert [t.available for t in context.transportation] == [False, True]


async def test_min_rating_is_configurable(vector_index, retrieval_request):
    retriever = ContextRetriever(StubConnector(), vector_index, min_rating=4.4)

    context = await retriever.retrieve_context(retrieval_request)

    assert [a.id for a in context.attractions] == ["mock_1"]
    assert context.hotels == []


async def test_aclose_closes_connector(vector_index):
    connector = StubConnector()

    await ContextRetriever(connector, vector_index).aclose()

    assert connector.closed


def test_build_context_retriever_from_settings():
    retriever = build_context_retriever(Settings(embedding_backend="mock", embedding_dimensions=32))

    assert retriever.vector_index is not None
    assert retriever.vector_index.embeddings.dimensions == 32


def test_build_context_retriever_without_backend():
    with pytest.raises(ConfigurationError):
        build_context_retriever(Settings(embedding_backend="none"))


async def test_default_connector_without_keys_serves_mock_data(retrieval_request):
    retriever = build_context_retriever(Settings())

    context = await retriever.retrieve_context(retrieval_request)
    await retriever.aclose()

    assert [a.id for a in context.attractions] == ["mock_1", "mock_2"]
    assert len(context.weather.forecast) == 5


async def test_concurrent_requests_are_independent(vector_index):
    retriever = ContextRetriever(StubConnector(), vector_index)
    requests = [
        RetrievalRequest(
            destination=city,
            start_date=dt.date(2025, 5, 10),
            end_date=dt.date(2025, 5, 11),
        )
        for city in ("Lisbon", "Porto", "Madrid")
    ]

    contexts = await asyncio.gather(*(retriever.retrieve_context(r) for r in requests))

    assert [c.destination for c in contexts] == ["Lisbon", "Porto", "Madrid"]
    assert all(len(c.attractions) == 3 for c in contexts)


async def test_attractions_are_indexed_in_one_batch(retrieval_request):
    embeddings = SlowEmbeddings(delay=0)
    retriever = ContextRetriever(StubConnector(), VectorIndex(embeddings))

    context = await retriever.retrieve_context(retrieval_request)

    assert embeddings.document_batches == [len(context.attractions)]
    assert retriever.vector_index.count("attraction") == len(context.attractions)


async def test_slow_indexing_does_not_outlast_the_deadline(retrieval_request):
    index = VectorIndex(SlowEmbeddings(delay=2.0))
    retriever = ContextRetriever(StubConnector(), index, fetch_timeout_s=0.3, deadline_s=0.3)

    started = time.perf_counter()
    context = await retriever.retrieve_context(retrieval_request)
    elapsed = time.perf_counter() - started

    assert [a.id for a in context.attractions] == ["mock_1", "mock_2"]
    assert index.count("attraction") == 0
    assert elapsed < 1.0


async def test_slow_indexing_is_bounded_without_a_deadline(retrieval_request):
    retriever = ContextRetriever(StubConnector(), VectorIndex(SlowEmbeddings(delay=2.0)), fetch_timeout_s=0.3)

    started = time.perf_counter()
    context = await retriever.retrieve_context(retrieval_request)
    elapsed = time.perf_counter() - started

    assert len(context.attractions) == 2
    assert elapsed < 1.0


async def test_slow_similarity_falls_back_to_recent_trips():
    trips = _trip_history(30)
    retriever = ContextRetriever(
        StubConnector(),
        VectorIndex(SlowEmbeddings(delay=2.0)),
        profile_store=InMemoryUserProfileStore(trips=trips),
        fetch_timeout_s=0.3,
        index_candidates=False,
    )

    started = time.perf_counter()
    context = await retriever.retrieve_context(_user_request())
    elapsed = time.perf_counter() - started

    assert [t.id for t in context.similar_trips] == ["t0", "t1", "t2", "t3", "t4"]
    assert elapsed < 1.0


async def test_trip_history_is_embedded_once_across_requests():
    embeddings = SlowEmbeddings(delay=0)
    retriever = ContextRetriever(
        StubConnector(),
        VectorIndex(embeddings),
        profile_store=InMemoryUserProfileStore(trips=_trip_history(30)),
        index_candidates=False,
    )

    first = await retriever.retrieve_context(_user_request())
    second = await retriever.retrieve_context(_user_request())

    assert embeddings.document_batches == [30]
    assert len(first.similar_trips) == 5
    assert len(second.similar_trips) == 5
