"""Tests for the embedding providers."""
from __future__ import annotations

import math

import pytest
from langchain_openai import OpenAIEmbeddings

from trip_rag.core.config import Settings
from trip_rag.core.errors import ConfigurationError
from trip_rag.services.embeddings import HashingEmbeddings, build_embeddings


def test_identical_text_yields_identical_vectors():
    first = HashingEmbeddings(128).embed_query("Historic centre with tiled facades")
    second = HashingEmbeddings(128).embed_query("Historic centre with tiled facades")

    assert first == second


def test_vectors_are_unit_length_and_fixed_size():
    vector = HashingEmbeddings(32).embed_query("beach surf sunset seafood")

    assert len(vector) == 32
    assert math.isclose(math.fsum(x * x for x in vector), 1.0, rel_tol=1e-9)


def test_case_and_punctuation_do_not_change_the_vector():
    embeddings = HashingEmbeddings()

    assert embeddings.embed_query("Museum, Park!") == embeddings.embed_query("museum park")


def test_empty_text_is_zero_vector():
    vector = HashingEmbeddings(16).embed_query("")

    assert vector == [0.0] * 16


def test_different_text_differs():
    embeddings = HashingEmbeddings()

    assert embeddings.embed_query("mountain hiking") != embeddings.embed_query("city nightlife")


async def test_async_methods_match_sync(embeddings):
    texts = ["alpha", "beta gamma"]

    assert await embeddings.aembed_documents(texts) == embeddings.embed_documents(texts)
    assert await embeddings.aembed_query("alpha") == embeddings.embed_query("alpha")


def test_dimensions_must_be_positive():
    with pytest.raises(ValueError):
        HashingEmbeddings(0)


def test_build_embeddings_mock_backend():
    embeddings = build_embeddings(Settings(embedding_backend="mock", embedding_dimensions=48))

    assert isinstance(embeddings, HashingEmbeddings)
    assert embeddings.dimensions == 48


def test_build_embeddings_without_backend_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        build_embeddings(Settings(embedding_backend="none"))


def test_build_embeddings_unknown_backend():
    with pytest.raises(ConfigurationError):
        build_embeddings(Settings(embedding_backend="word2vec"))


def test_build_embeddings_openai_requires_key():
    with pytest.raises(ConfigurationError):
        build_embeddings(Settings(embedding_backend="openai", openai_api_key=None))


def test_build_embeddings_openai_backend():
    embeddings = build_embeddings(
        Settings(embedding_backend="openai", openai_api_key="sk-test", embedding_dimensions=256)
    )

    assert isinstance(embeddings, OpenAIEmbeddings)
    assert embeddings.dimensions == 256
