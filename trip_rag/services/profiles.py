"""Read-only access to stored user profiles and their trip history."""
from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from trip_rag.core.schemas import TripData, UserProfile


@runtime_checkable
class UserProfileStore(Protocol):
    """Lookup interface implemented by the persistence layer."""

    async def get_user_profile(self, uid: str) -> Optional[UserProfile]:
        ...

    async def get_user_trips(self, uid: str) -> List[TripData]:
        ...


class InMemoryUserProfileStore:
    """Dictionary-backed store used for local runs and tests."""

    def __init__(
        self,
        profiles: Optional[Iterable[UserProfile]] = None,
        trips: Optional[Iterable[TripData]] = None,
    ) -> None:
        self._profiles: Dict[str, UserProfile] = {p.uid: p for p in profiles or []}
        self._trips: Dict[str, List[TripData]] = {}
        for trip in trips or []:
            self._trips.setdefault(trip.user_id, []).append(trip)
        self._lock = asyncio.Lock()

    async def add_profile(self, profile: UserProfile) -> None:
        async with self._lock:
            self._profiles[profile.uid] = profile

    async def add_trip(self, trip: TripData) -> None:
        async with self._lock:
            self._trips.setdefault(trip.user_id, []).append(trip)

    async def get_user_profile(self, uid: str) -> Optional[UserProfile]:
        return self._profiles.get(uid)

    async def get_user_trips(self, uid: str) -> List[TripData]:
        return list(self._trips.get(uid, []))
