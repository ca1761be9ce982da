from __future__ import annotations

import logging
from typing import List, Optional

from trip_rag.core.config import Settings
from trip_rag.core.cost_predictor import CostPredictionRequest, TravelCostPrediction, TravelCostPredictor
from trip_rag.core.logging_config import setup_logging
from trip_rag.core.schemas import RetrievalRequest, TripContext
from trip_rag.pipelines.retriever import ContextRetriever, build_context_retriever
from trip_rag.pipelines.schemas import EmbeddingDocument, SimilarityResult
from trip_rag.pipelines.vector_index import VectorIndex
from trip_rag.services.embeddings import build_embeddings
from trip_rag.services.profiles import InMemoryUserProfileStore, UserProfileStore


class RetrievalBundle:
    """Container for the retriever, vector index and cost predictor.

    Everything is built once from ``Settings`` and shared by all requests.
    Construction fails with ``ConfigurationError`` when the settings select no
    usable embedding backend.

    Attributes:
        settings: Configuration the bundle was built from
        logger: Package logger configured from ``log_level``/``log_format``
        vector_index: Similarity index shared with the retriever
        retriever: Context retriever for planning requests
        cost_predictor: Static-table cost estimator
    """

    def __init__(
        self,
        settings: Settings,
        *,
        profile_store: Optional[UserProfileStore] = None,
    ) -> None:
        settings.validate()
        self.settings = settings
        self.logger = setup_logging(settings.log_level, fmt=settings.log_format)

        self.profile_store = profile_store or InMemoryUserProfileStore()
        self.vector_index = VectorIndex(
            build_embeddings(settings),
            logger=logging.getLogger(f"{self.logger.name}.vector_index"),
        )
        self.retriever: ContextRetriever = build_context_retriever(
            settings,
            profile_store=self.profile_store,
            vector_index=self.vector_index,
            logger=logging.getLogger(f"{self.logger.name}.retriever"),
        )
        self.cost_predictor = TravelCostPredictor(
            logger=logging.getLogger(f"{self.logger.name}.cost_predictor"),
        )

    def __repr__(self) -> str:
        return (
            f"RetrievalBundle(embedding_backend={self.settings.embedding_backend!r}, "
            f"fetch_timeout_s={self.settings.fetch_timeout_s})"
        )

    async def retrieve_context(self, request: RetrievalRequest) -> TripContext:
        return await self.retriever.retrieve_context(request)

    async def store_document(self, doc: EmbeddingDocument) -> EmbeddingDocument:
        return await self.vector_index.store_embedding(doc)

    async def search(self, query: str, doc_type: str, limit: int) -> List[SimilarityResult]:
        return await self.vector_index.search_similar(query, doc_type, limit)

    def predict_costs(self, request: CostPredictionRequest) -> TravelCostPrediction:
        return self.cost_predictor.predict_travel_cost(request)

    async def close(self) -> None:
        await self.retriever.aclose()
