"""Validation, weighted ranking and budget partitioning of candidate items.

Ranking runs in three stages: filter (drop items violating the criteria),
score (weighted sum of normalized factors) and a stable descending sort. The
scores are internal; callers get back plain items in rank order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, List, TypeVar

from trip_rag.core.schemas import (
    Attraction,
    BookableItem,
    Hotel,
    RankingWeights,
    TripContext,
    ValidationCriteria,
)

Item = TypeVar("Item", bound=BookableItem)

MAX_RATING = 5.0
MAX_PRICE_LEVEL = 4.0


@dataclass(slots=True, frozen=True)
class BudgetPolicy:
    """Assumptions used when checking prices against a trip budget.

    Attributes:
        assumed_nights: Nights a hotel price is multiplied by
        hotel_share_cap: Largest share of the budget a single hotel may take
            during validation
        hotel_share / activity_share / transport_share: Budget partition;
            whatever is left over is the unallocated reserve
        planned_activities: Number of activities the activity budget is spread over
        price_level_unit: Cost of one price level step of an attraction
    """

    assumed_nights: int = 7
    hotel_share_cap: float = 0.5
    hotel_share: float = 0.4
    activity_share: float = 0.3
    transport_share: float = 0.2
    planned_activities: int = 5
    price_level_unit: float = 25.0

    def __post_init__(self) -> None:
        if self.assumed_nights <= 0 or self.planned_activities <= 0:
            raise ValueError("assumed_nights and planned_activities must be positive")
        if self.hotel_share + self.activity_share + self.transport_share > 1.0 + 1e-9:
            raise ValueError("budget shares must not exceed 1.0")


@dataclass(slots=True, frozen=True)
class BudgetAllocation:
    total: float
    hotel: float
    activity: float
    transport: float
    reserve: float


def _flag(preferences: Mapping[str, Any], name: str) -> bool:
    return preferences.get(name) is True


class ValidatorRanker:
    """Filters, scores and orders attractions and hotels for one request."""

    def __init__(self, policy: Optional[BudgetPolicy] = None, *, logger: Optional[logging.Logger] = None) -> None:
        self.policy = policy or BudgetPolicy()
        self._logger = logger or logging.getLogger(__name__)

    # Attractions

    def is_attraction_valid(self, attraction: Attraction, criteria: ValidationCriteria) -> bool:
        if criteria.availability_check and not attraction.available:
            return False
        if attraction.rating < criteria.required_rating:
            return False
        if criteria.preferred_types:
            preferred = set(criteria.preferred_types)
            if attraction.type not in preferred and preferred.isdisjoint(attraction.tags):
                return False
        return True

    def attraction_user_match(self, attraction: Attraction, criteria: ValidationCriteria) -> float:
        """Overlap between the attraction and the traveler's stated interests, in [0, 1]."""

        score = 0.0
        factors = 0
        if criteria.preferred_types:
            for preferred in criteria.preferred_types:
                if attraction.type == preferred:
                    score += 1.0
                if preferred in attraction.tags:
                    score += 0.5
            factors += 1

        if criteria.preferences:
            if _flag(criteria.preferences, "cultural") and attraction.type in ("culture", "museum"):
                score += 1.0
            if _flag(criteria.preferences, "outdoor") and attraction.type in ("nature", "park"):
                score += 1.0
            factors += 1

        if factors == 0:
            return 0.5
        return min(score / factors, 1.0)

    def score_attraction(
        self, attraction: Attraction, criteria: ValidationCriteria, weights: RankingWeights
    ) -> float:
        price_score = 1.0 - attraction.price_level / MAX_PRICE_LEVEL
        return (
            weights.rating * (attraction.rating / MAX_RATING)
            + weights.price * price_score
            + weights.availability * (1.0 if attraction.available else 0.0)
            + weights.user_match * self.attraction_user_match(attraction, criteria)
        )

    def validate_and_rank_attractions(
        self,
        attractions: Sequence[Attraction],
        criteria: ValidationCriteria,
        weights: Optional[RankingWeights] = None,
    ) -> List[Attraction]:
        """Drop attractions that violate ``criteria`` and rank the rest best first."""

        weights = weights or RankingWeights()
        valid = [a for a in attractions if self.is_attraction_valid(a, criteria)]
        self._logger.info(
            "Validated attractions: %d of %d remain",
            len(valid),
            len(attractions),
            extra={"category": "attractions", "before": len(attractions), "after": len(valid)},
        )
        return sorted(
            valid,
            key=lambda attraction: self.score_attraction(attraction, criteria, weights),
            reverse=True,
        )

    # Hotels

    def hotel_stay_cost(self, hotel: Hotel) -> float:
        return hotel.price_per_night * self.policy.assumed_nights

    def is_hotel_valid(self, hotel: Hotel, criteria: ValidationCriteria) -> bool:
        if criteria.availability_check and not hotel.available:
            return False
        if hotel.rating < criteria.required_rating:
            return False
        if criteria.budget > 0 and self.hotel_stay_cost(hotel) > self.policy.hotel_share_cap * criteria.budget:
            return False
        return True

    def hotel_user_match(self, hotel: Hotel, criteria: ValidationCriteria) -> float:
        score = 0.5
        if criteria.budget > 0:
            ratio = self.hotel_stay_cost(hotel) / criteria.budget
            if ratio <= 0.3:
                score += 0.3
            elif ratio <= 0.5:
                score += 0.1
            elif ratio > 0.7:
                score -= 0.2

        if _flag(criteria.preferences, "luxury") and hotel.rating >= 4.0:
            score += 0.2
        if _flag(criteria.preferences, "budget") and hotel.price_per_night <= 100:
            score += 0.2
        return min(max(score, 0.0), 1.0)

    def score_hotel(
        self,
        hotel: Hotel,
        criteria: ValidationCriteria,
        weights: RankingWeights,
        max_price: float,
    ) -> float:
        price_score = 1.0 - hotel.price_per_night / max(max_price, 1.0)
        return (
            weights.rating * (hotel.rating / MAX_RATING)
            + weights.price * price_score
            + weights.availability * (1.0 if hotel.available else 0.0)
            + weights.user_match * self.hotel_user_match(hotel, criteria)
        )

    def validate_and_rank_hotels(
        self,
        hotels: Sequence[Hotel],
        criteria: ValidationCriteria,
        weights: Optional[RankingWeights] = None,
    ) -> List[Hotel]:
        """Drop hotels that violate ``criteria`` and rank the rest best first."""

        weights = weights or RankingWeights()
        valid = [h for h in hotels if self.is_hotel_valid(h, criteria)]
        self._logger.info(
            "Validated hotels: %d of %d remain",
            len(valid),
            len(hotels),
            extra={"category": "hotels", "before": len(hotels), "after": len(valid)},
        )
        max_price = max((h.price_per_night for h in valid), default=0.0)
        return sorted(
            valid,
            key=lambda hotel: self.score_hotel(hotel, criteria, weights, max_price),
            reverse=True,
        )

    # Budget

    def allocate_budget(self, total_budget: float) -> BudgetAllocation:
        hotel = total_budget * self.policy.hotel_share
        activity = total_budget * self.policy.activity_share
        transport = total_budget * self.policy.transport_share
        return BudgetAllocation(
            total=total_budget,
            hotel=hotel,
            activity=activity,
            transport=transport,
            reserve=total_budget - hotel - activity - transport,
        )

    def apply_budget_constraints(self, context: TripContext, total_budget: float) -> TripContext:
        """Return a copy of ``context`` keeping only items each budget share can pay for.

        A budget of zero or less leaves the context untouched.
        """

        if total_budget <= 0:
            return context

        allocation = self.allocate_budget(total_budget)
        per_activity = allocation.activity / self.policy.planned_activities

        hotels = [h for h in context.hotels if self.hotel_stay_cost(h) <= allocation.hotel]
        attractions = [
            a for a in context.attractions if a.price_level * self.policy.price_level_unit <= per_activity
        ]
        transportation = [t for t in context.transportation if t.price <= allocation.transport]

        self._logger.info(
            "Applied budget constraints: hotels %d, attractions %d, transport %d",
            len(hotels),
            len(attractions),
            len(transportation),
            extra={
                "total_budget": total_budget,
                "hotel_budget": allocation.hotel,
                "activity_budget": allocation.activity,
                "transport_budget": allocation.transport,
            },
        )
        return context.model_copy(
            update={"hotels": hotels, "attractions": attractions, "transportation": transportation}
        )

    # Availability

    def simulate_availability(self, items: Sequence[Item]) -> List[Item]:
        """Mock availability check standing in for real booking systems.

        Each item kind declares its own stride; items whose index is a multiple
        of it come back unavailable. The input items are left unchanged.
        """

        return [
            item.with_availability(False) if index % item.availability_stride == 0 else item
            for index, item in enumerate(items)
        ]
