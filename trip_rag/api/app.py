"""FastAPI surface for context retrieval, similarity search and cost estimates."""
from __future__ import annotations

# Load environment variables from .env file
from dotenv import load_dotenv

# Load .env file before anything reads settings from the environment
load_dotenv()


from typing import Dict
from fastapi import FastAPI, HTTPException
import logging
from fastapi.middleware.cors import CORSMiddleware

from trip_rag.api.dependencies import lifespan, get_retrieval_bundle
from trip_rag.api.schemas import ContextRequest, StoredDocumentResponse, VectorSearchRequest, VectorSearchResponse
from trip_rag.core.cost_predictor import CostPredictionRequest, TravelCostPrediction
from trip_rag.core.errors import ConfigurationError
from trip_rag.core.schemas import TripContext
from trip_rag.pipelines.schemas import EmbeddingDocument

logger = logging.getLogger(__name__)

app = FastAPI(title="Trip RAG API", version="0.1.0", lifespan=lifespan)

origins = [
    "http://localhost:3000",
    "http://localhost:3001"
]


app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.post("/context/retrieve", response_model=TripContext)
async def retrieve_context(payload: ContextRequest) -> TripContext:
    """Gather, validate and rank the candidate data for one trip.

    Every source is queried concurrently. Sources that fail or time out are
    replaced by mock data or empty lists, so the response always carries every
    category, possibly empty.

    Args:
        payload: Destination, travel dates, budget, traveler count, interests,
            free-form preferences and an optional user id.

    Returns:
        TripContext with ranked attractions and hotels, weather, local events,
        transport options, similar earlier trips and emergency services.

    Raises:
        HTTPException: 400 for invalid input, 500 when no embedding backend
            is configured

    Example JSON payload:
        ```json
        {
            "user_id": "user-1",
            "destination": "Lisbon",
            "start_date": "2025-05-10",
            "end_date": "2025-05-14",
            "budget": 1500,
            "travelers": 2,
            "interests": ["culture", "food"],
            "preferences": {"cultural": true}
        }
        ```
    """

    logger.info(
        "Context retrieval request received",
        extra={"destination": payload.destination, "days": payload.days_number},
    )
    try:
        bundle = get_retrieval_bundle()
        context = await bundle.retrieve_context(payload)
    except ConfigurationError as exc:
        logger.error("Configuration error during retrieval: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        logger.error("Value error during retrieval: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    logger.info(
        "Context retrieved",
        extra={
            "destination": context.destination,
            "attractions": len(context.attractions),
            "hotels": len(context.hotels),
        },
    )
    return context


@app.post("/vectors/store", response_model=StoredDocumentResponse)
async def store_vector(payload: EmbeddingDocument) -> StoredDocumentResponse:
    """Store a document in the similarity index, embedding its content if needed."""

    try:
        bundle = get_retrieval_bundle()
        stored = await bundle.store_document(payload)
    except ConfigurationError as exc:
        logger.error("Configuration error while storing %s: %s", payload.id, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        logger.error("Value error while storing %s: %s", payload.id, exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return StoredDocumentResponse.from_document(stored)


@app.post("/vectors/search", response_model=VectorSearchResponse)
async def search_vectors(payload: VectorSearchRequest) -> VectorSearchResponse:
    """Return documents of one partition ranked by similarity to the query."""

    try:
        bundle = get_retrieval_bundle()
        results = await bundle.search(payload.query, payload.type, payload.limit)
    except ConfigurationError as exc:
        logger.error("Configuration error during search: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        logger.error("Value error during search: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return VectorSearchResponse(results=results)


@app.post("/costs/predict", response_model=TravelCostPrediction)
async def predict_costs(payload: CostPredictionRequest) -> TravelCostPrediction:
    """Estimate trip costs from static destination and seasonal tables."""

    try:
        bundle = get_retrieval_bundle()
        return bundle.predict_costs(payload)
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Simple health endpoint used for readiness probes."""

    return {"status": "healthy", "service": "trip-rag-api"}
