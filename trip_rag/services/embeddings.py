"""Embedding providers behind the LangChain ``Embeddings`` interface.

``HashingEmbeddings`` is the deterministic stand-in used when no real model is
configured (and in tests). A real backend only has to implement the same
``text -> vector`` contract, so the vector index never changes when it is
swapped in.
"""
from __future__ import annotations

import hashlib
import re
from typing import List

import numpy as np
from langchain_core.embeddings import Embeddings
from langchain_openai import OpenAIEmbeddings

from trip_rag.core.config import Settings
from trip_rag.core.errors import ConfigurationError

DEFAULT_MOCK_DIMENSIONS = 128

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


class HashingEmbeddings(Embeddings):
    """Feature-hashed bag-of-words embeddings.

    Every lowercase word is hashed with SHA-256 into one of ``dimensions``
    buckets with a +1/-1 sign, and the result is scaled to unit length. The
    output depends only on the text, never on process state, so identical text
    always yields a bit-identical vector. Text without words maps to the zero
    vector.
    """

    def __init__(self, dimensions: int = DEFAULT_MOCK_DIMENSIONS) -> None:
        if dimensions <= 0:
            raise ValueError("dimensions must be positive")
        self.dimensions = dimensions

    def _embed(self, text: str) -> List[float]:
        vector = np.zeros(self.dimensions, dtype=np.float64)
        for token in _TOKEN_RE.findall((text or "").lower()):
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.dimensions
            vector[bucket] += 1.0 if digest[4] & 1 else -1.0

        norm = float(np.linalg.norm(vector))
        if norm == 0.0:
            return vector.tolist()
        return (vector / norm).tolist()

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        return [self._embed(text) for text in texts]

    def embed_query(self, text: str) -> List[float]:
        return self._embed(text)

    async def aembed_documents(self, texts: List[str]) -> List[List[float]]:
        return self.embed_documents(texts)

    async def aembed_query(self, text: str) -> List[float]:
        return self.embed_query(text)


def build_embeddings(settings: Settings) -> Embeddings:
    """Return the embedding backend selected by ``settings.embedding_backend``.

    Raises:
        ConfigurationError: when no backend is configured at all, the backend
            name is unknown, or the selected backend lacks credentials.
    """

    settings.validate()
    backend = settings.embedding_backend
    if backend == "mock":
        return HashingEmbeddings(settings.embedding_dimensions)
    if backend == "openai":
        return OpenAIEmbeddings(
            api_key=settings.ensure("openai_api_key"),
            model=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
        )
    raise ConfigurationError(
        "No embedding backend configured; set EMBEDDING_BACKEND to 'mock' or 'openai'"
    )
