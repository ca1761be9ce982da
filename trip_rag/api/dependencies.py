from trip_rag.api.service import RetrievalBundle
from trip_rag.core.config import Settings
from fastapi import FastAPI
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from functools import lru_cache


@lru_cache(maxsize=1)
def get_retrieval_bundle() -> RetrievalBundle:
    settings = Settings.from_env()
    return RetrievalBundle(settings)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    try:
        yield
    finally:
        # Only close a bundle that was actually built.
        if get_retrieval_bundle.cache_info().currsize:
            bundle = get_retrieval_bundle()
            await bundle.close()
