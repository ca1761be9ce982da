from typing import List
from pydantic import BaseModel, Field
from trip_rag.core.schemas import RetrievalRequest
from trip_rag.pipelines.schemas import EmbeddingDocument, SearchSimilarInput, SimilarityResult


class ContextRequest(RetrievalRequest):
    """Request payload used to retrieve the context of one trip."""
    pass


class VectorSearchRequest(SearchSimilarInput):
    """Free-text similarity query against one document partition."""
    pass


class StoredDocumentResponse(BaseModel):
    """Document as stored, without its embedding vector."""

    id: str
    type: str
    embedded: bool = Field(..., description="Whether the document has an embedding and is searchable")
    dimensions: int = Field(default=0, description="Length of the stored embedding")

    @classmethod
    def from_document(cls, doc: EmbeddingDocument) -> "StoredDocumentResponse":
        return cls(id=doc.id, type=doc.type, embedded=bool(doc.embedding), dimensions=len(doc.embedding))


class VectorSearchResponse(BaseModel):
    """Ranked similarity results, best first."""

    results: List[SimilarityResult] = Field(default_factory=list)
