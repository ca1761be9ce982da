"""Integration-focused tests for the FastAPI surface."""
from __future__ import annotations

from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from trip_rag.api import app as api_app
from trip_rag.api.service import RetrievalBundle
from trip_rag.core.config import Settings
from trip_rag.core.errors import ConfigurationError
from trip_rag.core.schemas import RetrievalRequest, TripContext
from trip_rag.services import mock_data


def _make_context_payload() -> Dict[str, Any]:
    """Return a representative retrieval payload."""

    return {
        "user_id": "user-1",
        "destination": "Lisbon",
        "start_date": "2025-05-10",
        "end_date": "2025-05-14",
        "budget": 2000,
        "travelers": 2,
        "interests": ["culture"],
        "preferences": {"cultural": True},
    }


class StubBundle:
    """Lightweight stand-in for ``RetrievalBundle``."""

    def __init__(self) -> None:
        self.requests: List[RetrievalRequest] = []
        self.error: Exception | None = None

    async def retrieve_context(self, request: RetrievalRequest) -> TripContext:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return TripContext(
            destination=request.destination,
            attractions=mock_data.mock_attractions(request.destination)[:1],
            transportation=mock_data.mock_transportation(request.destination),
        )

    async def close(self) -> None:
        return None


@pytest.fixture
def stub_bundle(monkeypatch) -> StubBundle:
    """Provide a stubbed bundle for API tests."""

    bundle = StubBundle()
    api_app.get_retrieval_bundle.cache_clear()
    monkeypatch.setattr(api_app, "get_retrieval_bundle", lambda: bundle)
    return bundle


@pytest.fixture
def client(stub_bundle: StubBundle) -> TestClient:
    """Yield a TestClient that uses the stubbed bundle."""

    with TestClient(api_app.app) as test_client:
        yield test_client


@pytest.fixture
def real_client(monkeypatch) -> TestClient:
    """Yield a TestClient backed by a real bundle with mock embeddings and no API keys."""

    bundle = RetrievalBundle(Settings(embedding_backend="mock", embedding_dimensions=64, log_format="text"))
    monkeypatch.setattr(api_app, "get_retrieval_bundle", lambda: bundle)
    with TestClient(api_app.app) as test_client:
        yield test_client


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "trip-rag-api"}


def test_retrieve_context_returns_context(client: TestClient, stub_bundle: StubBundle) -> None:
    response = client.post("/context/retrieve", json=_make_context_payload())

    assert response.status_code == 200
    data = response.json()
    assert data["destination"] == "Lisbon"
    assert data["attractions"][0]["id"] == "mock_1"
    assert data["hotels"] == []
    assert data["similar_trips"] == []
    assert data["transportation"][0]["type"] == "flight"

    last_request = stub_bundle.requests[-1]
    assert last_request.user_id == "user-1"
    assert last_request.days_number == 5


def test_retrieve_context_rejects_invalid_dates(client: TestClient, stub_bundle: StubBundle) -> None:
    payload = _make_context_payload()
    payload["end_date"] = "2025-05-01"

    response = client.post("/context/retrieve", json=payload)

    assert response.status_code == 422
    assert stub_bundle.requests == []


def test_configuration_error_maps_to_500(client: TestClient, stub_bundle: StubBundle) -> None:
    stub_bundle.error = ConfigurationError("No embedding backend configured")

    response = client.post("/context/retrieve", json=_make_context_payload())

    assert response.status_code == 500
    assert "embedding backend" in response.json()["detail"]


def test_value_error_maps_to_400(client: TestClient, stub_bundle: StubBundle) -> None:
    stub_bundle.error = ValueError("unsupported destination")

    response = client.post("/context/retrieve", json=_make_context_payload())

    assert response.status_code == 400
    assert response.json()["detail"] == "unsupported destination"


def test_retrieve_context_end_to_end(real_client: TestClient) -> None:
    response = real_client.post("/context/retrieve", json=_make_context_payload())

    assert response.status_code == 200
    data = response.json()
    assert [a["id"] for a in data["attractions"]] == ["mock_1", "mock_2"]
    assert [h["id"] for h in data["hotels"]] == ["hotel_2"]
    assert len(data["weather"]["forecast"]) == 5
    assert data["transportation"][0]["from"] == "Current Location"
    assert len(data["emt_inventory"]) == 2


def test_store_and_search_vectors(real_client: TestClient) -> None:
    for doc_id, content in [("d1", "tile museum azulejo art"), ("d2", "surf beach sunset")]:
        response = real_client.post(
            "/vectors/store", json={"id": doc_id, "type": "attraction", "content": content}
        )
        assert response.status_code == 200
        assert response.json() == {"id": doc_id, "type": "attraction", "embedded": True, "dimensions": 64}

    response = real_client.post("/vectors/search", json={"query": "museum art", "type": "attraction", "limit": 1})

    assert response.status_code == 200
    results = response.json()["results"]
    assert len(results) == 1
    assert results[0]["document"]["id"] == "d1"
    assert results[0]["similarity"] > 0


def test_store_vector_without_id_is_rejected(real_client: TestClient) -> None:
    response = real_client.post("/vectors/store", json={"type": "attraction", "content": "museum"})

    assert response.status_code == 400
    assert "id" in response.json()["detail"]


def test_store_vector_dimension_mismatch_is_rejected(real_client: TestClient) -> None:
    first = real_client.post("/vectors/store", json={"id": "full", "type": "attraction", "content": "museum"})
    assert first.status_code == 200

    response = real_client.post(
        "/vectors/store", json={"id": "short", "type": "attraction", "embedding": [1.0, 0.0]}
    )

    assert response.status_code == 400


def test_search_unknown_partition(real_client: TestClient) -> None:
    response = real_client.post("/vectors/search", json={"query": "anything", "type": "nowhere"})

    assert response.status_code == 200
    assert response.json() == {"results": []}


def test_predict_costs(real_client: TestClient) -> None:
    response = real_client.post(
        "/costs/predict",
        json={"destination": "Paris", "travel_date": "2025-07-15", "duration": 3},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total_estimated_cost"] == pytest.approx(1080.9)
    assert data["confidence_level"] == 0.9


def test_bundle_without_embedding_backend_fails():
    with pytest.raises(ConfigurationError):
        RetrievalBundle(Settings(embedding_backend="none"))


def test_retrieved_attractions_are_searchable(real_client: TestClient) -> None:
    assert real_client.post("/context/retrieve", json=_make_context_payload()).status_code == 200

    response = real_client.post("/vectors/search", json={"query": "museum culture", "type": "attraction", "limit": 0})

    assert response.status_code == 200
    assert {r["document"]["id"] for r in response.json()["results"]} == {"mock_1", "mock_2"}
