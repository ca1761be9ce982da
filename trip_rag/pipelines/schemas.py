from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EmbeddingDocument(BaseModel):
    """Piece of content stored in a vector index partition.

    ``id`` is unique within the partition named by ``type``; storing a
    document with an existing id replaces it.
    """
    id: str = ""
    type: str = Field(min_length=1)
    content: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    embedding: List[float] = Field(default_factory=list)
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    model_config = ConfigDict(extra="forbid")


class SimilarityResult(BaseModel):
    document: EmbeddingDocument
    similarity: float


class SearchSimilarInput(BaseModel):
    query: str
    type: str = "attraction"
    limit: int = 10
