"""Exception types raised by the retrieval engine."""
from __future__ import annotations

from typing import Optional


class TripRagError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(TripRagError, RuntimeError):
    """Deployment defect, e.g. no embedding backend configured at all.

    This is the only error that aborts a retrieval call.
    """


class RecoverableFetchError(TripRagError):
    """An external source failed; callers substitute empty or mock data."""

    def __init__(self, source: str, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.cause = cause
