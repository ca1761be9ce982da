"""Configuration helpers for API keys and environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Optional

from trip_rag.core.errors import ConfigurationError

EmbeddingBackend = Literal["mock", "openai", "none"]

_EMBEDDING_BACKENDS = ("mock", "openai", "none")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {name} must be a number, got {raw!r}") from exc


def _env_optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return _env_float(name, 0.0)


@dataclass(slots=True)
class Settings:
    """Centralised container for credentials and retrieval tuning knobs."""

    openai_api_key: Optional[str] = None
    google_maps_api_key: Optional[str] = None
    weather_api_key: Optional[str] = None
    embedding_backend: str = "mock"
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 128
    fetch_timeout_s: float = 30.0
    retrieval_deadline_s: Optional[float] = None
    min_rating: float = 3.0
    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from the process environment."""

        backend = (os.getenv("EMBEDDING_BACKEND") or "mock").strip().lower()
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            google_maps_api_key=os.getenv("GOOGLE_MAPS_API_KEY"),
            weather_api_key=os.getenv("WEATHER_API_KEY"),
            embedding_backend=backend,
            embedding_model=os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"),
            embedding_dimensions=int(_env_float("EMBEDDING_DIMENSIONS", 128)),
            fetch_timeout_s=_env_float("FETCH_TIMEOUT_S", 30.0),
            retrieval_deadline_s=_env_optional_float("RETRIEVAL_DEADLINE_S"),
            min_rating=_env_float("MIN_RATING", 3.0),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )

    def ensure(self, field: str) -> str:
        """Return the requested field and fail fast if it is missing."""

        value = getattr(self, field)
        if not value:
            raise ConfigurationError(f"Missing configuration value: {field}")
        return value

    def validate(self) -> None:
        """Reject settings that can never produce a working retriever."""

        if self.embedding_backend not in _EMBEDDING_BACKENDS:
            raise ConfigurationError(
                f"Unknown EMBEDDING_BACKEND {self.embedding_backend!r}; "
                f"expected one of {', '.join(_EMBEDDING_BACKENDS)}"
            )
        if self.embedding_dimensions <= 0:
            raise ConfigurationError("EMBEDDING_DIMENSIONS must be positive")
        if self.fetch_timeout_s <= 0:
            raise ConfigurationError("FETCH_TIMEOUT_S must be positive")
