"""Context retrieval: concurrent fan-out over every source, then validate and rank.

``ContextRetriever.retrieve_context`` issues all fetches for a request at
once and joins them before ranking, so latency follows the slowest source
rather than the sum. A source that fails or exceeds its timeout is replaced
by its fallback (mock data for attractions, hotels and weather, an empty list
for the rest, no profile) and the call carries on. When an overall deadline is
set, whatever has not finished by then is cancelled and falls back the same
way, so a partial context is still returned. Indexing the ranked attractions
afterwards is one batched embedding call bounded by the time left before the
deadline (or by one fetch timeout when no deadline is set).
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from trip_rag.core.config import Settings
from trip_rag.core.errors import ConfigurationError
from trip_rag.core.schemas import (
    RankingWeights,
    RetrievalRequest,
    TripContext,
    TripData,
    UserProfile,
    ValidationCriteria,
)
from trip_rag.pipelines.ranking import ValidatorRanker
from trip_rag.pipelines.vector_index import TRIP, VectorIndex
from trip_rag.services import mock_data
from trip_rag.services.connector import SourceConnector, create_data_source_connector
from trip_rag.services.embeddings import build_embeddings
from trip_rag.services.profiles import UserProfileStore

SIMILAR_TRIPS_LIMIT = 5


@dataclass(slots=True)
class _Fetch:
    name: str
    call: Callable[[], Awaitable[Any]]
    fallback: Callable[[], Any]


class ContextRetriever:
    """Gathers, validates and ranks everything needed to plan one trip."""

    def __init__(
        self,
        connector: SourceConnector,
        vector_index: Optional[VectorIndex],
        ranker: Optional[ValidatorRanker] = None,
        profile_store: Optional[UserProfileStore] = None,
        *,
        fetch_timeout_s: float = 30.0,
        deadline_s: Optional[float] = None,
        min_rating: float = 3.0,
        weights: Optional[RankingWeights] = None,
        index_candidates: bool = True,
        simulate_availability: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._connector = connector
        self._vector_index = vector_index
        self._ranker = ranker or ValidatorRanker(logger=logger)
        self._profile_store = profile_store
        self._fetch_timeout_s = fetch_timeout_s
        self._deadline_s = deadline_s
        self._min_rating = min_rating
        self._weights = weights or RankingWeights()
        self._index_candidates = index_candidates
        self._simulate_availability = simulate_availability
        self._logger = logger or logging.getLogger(__name__)

    @property
    def vector_index(self) -> Optional[VectorIndex]:
        return self._vector_index

    async def aclose(self) -> None:
        """Release HTTP clients held by the connector."""

        aclose = getattr(self._connector, "aclose", None)
        if aclose is not None:
            await aclose()

    async def retrieve_context(self, request: RetrievalRequest) -> TripContext:
        """Assemble the ``TripContext`` for ``request``.

        Raises:
            ConfigurationError: if no vector index (and so no embedding
                backend) is configured. Source failures never raise.
        """

        if self._vector_index is None:
            raise ConfigurationError("No embedding backend configured; context retrieval is unavailable")

        self._logger.info(
            "Retrieving context for %s",
            request.destination,
            extra={"destination": request.destination, "user_id": request.user_id},
        )
        started = asyncio.get_running_loop().time()
        results = await self._fan_out(self._plan_fetches(request))

        attractions = results["attractions"]
        hotels = results["hotels"]
        transportation = results["transportation"]
        if self._simulate_availability:
            attractions = self._ranker.simulate_availability(attractions)
            hotels = self._ranker.simulate_availability(hotels)
            transportation = self._ranker.simulate_availability(transportation)

        criteria = ValidationCriteria(
            budget=request.budget,
            required_rating=self._min_rating,
            preferred_types=request.interests,
            preferences=request.preferences,
            availability_check=True,
        )
        context = TripContext(
            destination=request.destination,
            user_profile=results.get("user_profile"),
            attractions=self._ranker.validate_and_rank_attractions(attractions, criteria, self._weights),
            hotels=self._ranker.validate_and_rank_hotels(hotels, criteria, self._weights),
            weather=results["weather"],
            local_events=results["local_events"],
            transportation=transportation,
            similar_trips=results.get("similar_trips", []),
            emt_inventory=results["emt_inventory"],
        )
        context = self._ranker.apply_budget_constraints(context, request.budget)

        if self._index_candidates:
            await self._index_attractions(context, self._time_left(started))
        return context

    def _time_left(self, started: float) -> float:
        """Seconds left for post-fetch work: the rest of the deadline, or one fetch timeout."""

        if self._deadline_s is None:
            return self._fetch_timeout_s
        return self._deadline_s - (asyncio.get_running_loop().time() - started)

    def _plan_fetches(self, request: RetrievalRequest) -> List[_Fetch]:
        connector = self._connector
        destination = request.destination
        start, end = request.start_date, request.end_date

        fetches = [
            _Fetch(
                "attractions",
                lambda: connector.fetch_attractions(destination, request.interests),
                lambda: mock_data.mock_attractions(destination),
            ),
            _Fetch(
                "hotels",
                lambda: connector.fetch_hotels(destination, start, end, request.budget),
                lambda: mock_data.mock_hotels(destination),
            ),
            _Fetch(
                "weather",
                lambda: connector.fetch_weather(destination, start, end),
                lambda: mock_data.mock_weather(start, end),
            ),
            _Fetch("local_events", lambda: connector.fetch_local_events(destination, start, end), list),
            _Fetch("transportation", lambda: connector.fetch_transportation(destination, start, end), list),
            _Fetch("emt_inventory", lambda: connector.fetch_emt_inventory(destination), list),
        ]
        if request.user_id and self._profile_store is not None:
            user_id = request.user_id
            fetches.append(_Fetch("user_profile", lambda: self._fetch_user_profile(user_id), lambda: None))
            # filled once the trips are loaded; serves as the fallback if ranking them is cut short
            history: List[TripData] = []
            fetches.append(
                _Fetch(
                    "similar_trips",
                    lambda: self._fetch_similar_trips(request, history),
                    lambda: history[:SIMILAR_TRIPS_LIMIT],
                )
            )
        return fetches

    async def _run_fetch(self, fetch: _Fetch) -> Any:
        try:
            return await asyncio.wait_for(fetch.call(), timeout=self._fetch_timeout_s)
        except asyncio.TimeoutError:
            self._logger.warning(
                "Fetch %s timed out after %.1fs, using fallback",
                fetch.name,
                self._fetch_timeout_s,
                extra={"source": fetch.name},
            )
        except Exception as exc:
            self._logger.warning(
                "Fetch %s failed, using fallback: %s",
                fetch.name,
                exc,
                extra={"source": fetch.name},
            )
        return fetch.fallback()

    async def _fan_out(self, fetches: List[_Fetch]) -> Dict[str, Any]:
        tasks = {fetch.name: asyncio.create_task(self._run_fetch(fetch)) for fetch in fetches}
        _, pending = await asyncio.wait(list(tasks.values()), timeout=self._deadline_s)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        results: Dict[str, Any] = {}
        for fetch in fetches:
            task = tasks[fetch.name]
            if task in pending:
                self._logger.warning(
                    "Deadline of %.1fs reached before %s finished, using fallback",
                    self._deadline_s,
                    fetch.name,
                    extra={"source": fetch.name},
                )
                results[fetch.name] = fetch.fallback()
            else:
                results[fetch.name] = task.result()
        return results

    async def _fetch_user_profile(self, user_id: str) -> Optional[UserProfile]:
        return await self._profile_store.get_user_profile(user_id)

    async def _fetch_similar_trips(self, request: RetrievalRequest, history: List[TripData]) -> List[TripData]:
        """The user's earlier trips ranked by similarity to this request.

        ``history`` receives the trips with a destination as soon as they are
        loaded, in store order.
        """

        trips = await self._profile_store.get_user_trips(request.user_id)
        history.extend(trip for trip in trips if trip.destination)
        if not history:
            return []

        await self._vector_index.store_trip_embeddings(history)

        query = " ".join([request.destination, *request.interests])
        results = await self._vector_index.search_similar(query, TRIP, 0)
        own_ids = {trip.id for trip in history}
        similar = [
            TripData.model_validate(result.document.metadata)
            for result in results
            if result.document.id in own_ids and result.document.metadata.get("user_id") == request.user_id
        ]
        return similar[:SIMILAR_TRIPS_LIMIT]

    async def _index_attractions(self, context: TripContext, timeout: float) -> None:
        if not context.attractions:
            return
        if timeout <= 0:
            self._logger.warning(
                "Deadline reached, skipping indexing of attractions for %s",
                context.destination,
                extra={"destination": context.destination},
            )
            return
        try:
            await asyncio.wait_for(
                self._vector_index.store_attraction_embeddings(context.attractions),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            self._logger.warning(
                "Indexing attractions for %s timed out after %.1fs",
                context.destination,
                timeout,
                extra={"destination": context.destination},
            )
        except ValueError as exc:
            self._logger.warning(
                "Could not index attractions for %s: %s",
                context.destination,
                exc,
                extra={"destination": context.destination},
            )


def build_context_retriever(
    settings: Settings,
    *,
    profile_store: Optional[UserProfileStore] = None,
    vector_index: Optional[VectorIndex] = None,
    logger: Optional[logging.Logger] = None,
) -> ContextRetriever:
    """Wire the default connector, embeddings and vector index from settings.

    Raises:
        ConfigurationError: if the settings select no usable embedding backend.
    """

    if vector_index is None:
        vector_index = VectorIndex(build_embeddings(settings), logger=logger)
    return ContextRetriever(
        create_data_source_connector(settings, logger=logger),
        vector_index,
        profile_store=profile_store,
        fetch_timeout_s=settings.fetch_timeout_s,
        deadline_s=settings.retrieval_deadline_s,
        min_rating=settings.min_rating,
        logger=logger,
    )
