"""Partitioned in-memory vector index with cosine similarity search.

Documents live in partitions keyed by their ``type`` (``attraction``,
``trip``, ``user_profile`` ...). Every partition keeps a single embedding
dimension, fixed by the first embedded document stored in it. Search is a full
scan of one partition, which is fine for the few thousand documents a single
deployment holds but is not meant to scale beyond that.
"""
from __future__ import annotations

import datetime as dt
import json
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
from langchain_core.embeddings import Embeddings
from langchain_core.tools import StructuredTool

from trip_rag.core.schemas import Attraction, TripData, UserProfile
from trip_rag.pipelines.schemas import EmbeddingDocument, SearchSimilarInput, SimilarityResult

ATTRACTION = "attraction"
TRIP = "trip"
USER_PROFILE = "user_profile"


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between ``a`` and ``b``.

    Returns 0.0 when either vector is empty or all zeros, or when the lengths
    differ.
    """

    if len(a) == 0 or len(a) != len(b):
        return 0.0
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _attraction_document(attraction: Attraction) -> EmbeddingDocument:
    content = " ".join([attraction.name, attraction.type, attraction.description, " ".join(attraction.tags)])
    return EmbeddingDocument(
        id=attraction.id,
        type=ATTRACTION,
        content=content,
        metadata=attraction.model_dump(mode="json"),
    )


def _trip_document(trip: TripData) -> EmbeddingDocument:
    itinerary = json.dumps(trip.itinerary, sort_keys=True, default=str)
    return EmbeddingDocument(
        id=trip.id,
        type=TRIP,
        content=f"{trip.title} {trip.destination} {itinerary}",
        metadata=trip.model_dump(mode="json"),
    )


class InMemoryDocumentStore:
    """Thread-safe document storage backing ``VectorIndex``.

    Writers hold the lock for the whole upsert; readers get a copy of the
    partition taken under the lock, so a scan never observes a half-applied
    write. Concurrent upserts to the same id resolve last-writer-wins.
    """

    def __init__(self) -> None:
        self._partitions: Dict[str, Dict[str, EmbeddingDocument]] = {}
        self._dimensions: Dict[str, int] = {}
        self._lock = threading.Lock()

    def upsert(self, doc: EmbeddingDocument) -> EmbeddingDocument:
        """Insert or replace ``doc`` and return the stored copy.

        Raises:
            ValueError: if the embedding dimension differs from the partition's.
        """

        with self._lock:
            partition = self._partitions.setdefault(doc.type, {})
            if doc.embedding:
                expected = self._dimensions.get(doc.type)
                if expected is not None and expected != len(doc.embedding):
                    raise ValueError(
                        f"Embedding dimension {len(doc.embedding)} does not match "
                        f"partition {doc.type!r} dimension {expected}"
                    )
                self._dimensions[doc.type] = len(doc.embedding)

            now = _now()
            previous = partition.get(doc.id)
            created_at = doc.created_at or (previous.created_at if previous else None) or now
            stored = doc.model_copy(update={"created_at": created_at, "updated_at": now}, deep=True)
            partition[doc.id] = stored
            return stored.model_copy(deep=True)

    def get(self, doc_type: str, doc_id: str) -> Optional[EmbeddingDocument]:
        with self._lock:
            doc = self._partitions.get(doc_type, {}).get(doc_id)
            return doc.model_copy(deep=True) if doc is not None else None

    def scan(self, doc_type: str) -> List[EmbeddingDocument]:
        """Snapshot of a partition in insertion order."""

        with self._lock:
            return list(self._partitions.get(doc_type, {}).values())

    def count(self, doc_type: str) -> int:
        with self._lock:
            return len(self._partitions.get(doc_type, {}))

    def dimension(self, doc_type: str) -> Optional[int]:
        with self._lock:
            return self._dimensions.get(doc_type)


class VectorIndex:
    """Stores embedded documents and answers similarity queries."""

    def __init__(
        self,
        embeddings: Embeddings,
        store: Optional[InMemoryDocumentStore] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._embeddings = embeddings
        self._store = store if store is not None else InMemoryDocumentStore()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def embeddings(self) -> Embeddings:
        return self._embeddings

    async def store_embedding(self, doc: EmbeddingDocument) -> EmbeddingDocument:
        """Upsert ``doc`` into the partition named by ``doc.type``.

        Missing embeddings are computed from ``doc.content``. If the provider
        fails the document is stored without an embedding and is skipped by
        searches until it is stored again.

        Raises:
            ValueError: if ``doc.id`` is empty or the embedding dimension does
                not match the partition.
        """

        if not doc.id:
            raise ValueError("document id is required")

        if not doc.embedding and doc.content:
            try:
                vector = await self._embeddings.aembed_query(doc.content)
            except Exception as exc:
                self._logger.warning(
                    "Failed to generate embedding for %s: %s",
                    doc.id,
                    exc,
                    extra={"doc_id": doc.id, "doc_type": doc.type},
                )
            else:
                doc = doc.model_copy(update={"embedding": list(vector)})

        stored = self._store.upsert(doc)
        self._logger.debug(
            "Stored embedding document %s in partition %s",
            doc.id,
            doc.type,
            extra={"doc_id": doc.id, "doc_type": doc.type},
        )
        return stored

    async def store_embeddings(self, docs: Iterable[EmbeddingDocument]) -> List[EmbeddingDocument]:
        """Upsert several documents, embedding the missing ones in one provider call.

        Behaves like ``store_embedding`` per document. A provider failure
        leaves the whole batch without embeddings.

        Raises:
            ValueError: if any id is empty (nothing is stored) or an embedding
                dimension does not match its partition.
        """

        docs = list(docs)
        if any(not doc.id for doc in docs):
            raise ValueError("document id is required")

        pending = [i for i, doc in enumerate(docs) if not doc.embedding and doc.content]
        if pending:
            try:
                vectors = await self._embeddings.aembed_documents([docs[i].content for i in pending])
            except Exception as exc:
                self._logger.warning(
                    "Failed to generate embeddings for %d documents: %s",
                    len(pending),
                    exc,
                    extra={"doc_count": len(pending)},
                )
            else:
                for i, vector in zip(pending, vectors):
                    docs[i] = docs[i].model_copy(update={"embedding": list(vector)})

        stored = [self._store.upsert(doc) for doc in docs]
        self._logger.debug("Stored %d embedding documents", len(stored), extra={"doc_count": len(stored)})
        return stored

    async def search_similar(self, query: str, doc_type: str, limit: int = 10) -> List[SimilarityResult]:
        """Documents of ``doc_type`` ordered by similarity to ``query``.

        Ties keep insertion order. ``limit`` of zero or less returns every
        embedded document in the partition.
        """

        documents = self._store.scan(doc_type)
        if not documents:
            return []

        query_vector = await self._embeddings.aembed_query(query)
        results = [
            SimilarityResult(document=doc, similarity=cosine_similarity(query_vector, doc.embedding))
            for doc in documents
            if doc.embedding
        ]
        results = sorted(results, key=lambda result: result.similarity, reverse=True)
        if limit > 0:
            results = results[:limit]
        return results

    def get(self, doc_type: str, doc_id: str) -> Optional[EmbeddingDocument]:
        return self._store.get(doc_type, doc_id)

    def count(self, doc_type: str) -> int:
        return self._store.count(doc_type)

    async def store_attraction_embedding(self, attraction: Attraction) -> EmbeddingDocument:
        return await self.store_embedding(_attraction_document(attraction))

    async def store_attraction_embeddings(self, attractions: Iterable[Attraction]) -> int:
        """Store several attractions in one batch, returning how many were stored."""

        stored = await self.store_embeddings(_attraction_document(attraction) for attraction in attractions)
        return len(stored)

    async def store_trip_embedding(self, trip: TripData) -> EmbeddingDocument:
        return await self.store_embedding(_trip_document(trip))

    async def store_trip_embeddings(self, trips: Iterable[TripData]) -> int:
        """Store trips that are new or changed since they were last embedded.

        Returns how many trips were (re)embedded.
        """

        changed = []
        for trip in trips:
            doc = _trip_document(trip)
            existing = self._store.get(TRIP, trip.id)
            if existing is not None and existing.embedding and existing.metadata == doc.metadata:
                continue
            changed.append(doc)
        if not changed:
            return 0
        return len(await self.store_embeddings(changed))

    async def store_user_preferences_embedding(self, profile: UserProfile) -> EmbeddingDocument:
        preferences = json.dumps(profile.travel_preferences, sort_keys=True, default=str)
        return await self.store_embedding(
            EmbeddingDocument(
                id=profile.uid,
                type=USER_PROFILE,
                content=f"{profile.display_name} {preferences}",
                metadata=profile.model_dump(mode="json"),
            )
        )

    async def find_similar_attractions(self, interests: Sequence[str], limit: int = 10) -> List[Attraction]:
        results = await self.search_similar(" ".join(interests), ATTRACTION, limit)
        return [Attraction.model_validate(result.document.metadata) for result in results]

    async def find_similar_trips(
        self,
        destination: str,
        preferences: Optional[Dict[str, Any]] = None,
        limit: int = 10,
        *,
        user_id: Optional[str] = None,
    ) -> List[TripData]:
        """Stored trips closest to ``destination`` and ``preferences``.

        With ``user_id`` only that user's trips are considered.
        """

        query = f"{destination} {json.dumps(preferences or {}, sort_keys=True, default=str)}"
        results = await self.search_similar(query, TRIP, 0 if user_id else limit)
        trips = [TripData.model_validate(result.document.metadata) for result in results]
        if user_id:
            trips = [trip for trip in trips if trip.user_id == user_id]
            if limit > 0:
                trips = trips[:limit]
        return trips

    def as_tool(self, *, name: str = "search_similar", description: Optional[str] = None) -> StructuredTool:
        """Expose similarity search as a LangChain tool."""

        description = description or (
            "Find stored attractions, trips or user profiles similar to a free-text query."
        )

        async def _arun(**kwargs) -> List[Dict[str, Any]]:
            payload = SearchSimilarInput(**kwargs)
            results = await self.search_similar(payload.query, payload.type, payload.limit)
            return [result.model_dump(mode="json", exclude={"document": {"embedding"}}) for result in results]

        return StructuredTool.from_function(
            coroutine=_arun,
            name=name,
            description=description,
            args_schema=SearchSimilarInput,
        )
