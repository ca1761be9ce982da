"""Lightweight trip cost estimation from static destination tables.

The tables below are module-level and never mutated, so a single predictor can
be shared by concurrent requests.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field


@dataclass(frozen=True, slots=True)
class CostFactors:
    """Per-destination daily base costs and demand indicators."""

    base_accommodation_cost: float
    base_food_cost: float
    base_transport_cost: float
    base_activity_cost: float
    cost_of_living_index: float
    popularity_multiplier: float


@dataclass(frozen=True, slots=True)
class SeasonalFactors:
    """Price multipliers by season."""

    peak_season_multiplier: float
    mid_season_multiplier: float
    off_season_multiplier: float
    holiday_multiplier: float
    weekend_multiplier: float


DESTINATION_COST_FACTORS: Mapping[str, CostFactors] = MappingProxyType(
    {
        "paris": CostFactors(120.0, 45.0, 25.0, 35.0, 1.3, 1.8),
        "tokyo": CostFactors(100.0, 40.0, 20.0, 30.0, 1.2, 1.7),
        "london": CostFactors(140.0, 50.0, 30.0, 40.0, 1.4, 1.9),
        "new york": CostFactors(180.0, 55.0, 35.0, 45.0, 1.5, 2.0),
        "bangkok": CostFactors(40.0, 15.0, 10.0, 20.0, 0.6, 1.4),
        "rome": CostFactors(90.0, 35.0, 20.0, 25.0, 1.1, 1.6),
    }
)

GLOBAL_COST_FACTORS = CostFactors(80.0, 30.0, 20.0, 25.0, 1.0, 1.0)

SEASONAL_FACTORS: Mapping[str, SeasonalFactors] = MappingProxyType(
    {"global": SeasonalFactors(1.4, 1.1, 0.8, 1.6, 1.2)}
)

BUDGET_PREFERENCE_MULTIPLIERS: Mapping[str, float] = MappingProxyType(
    {"budget": 0.7, "mid-range": 1.0, "luxury": 1.8, "ultra-luxury": 3.0}
)

PEAK_MONTHS = frozenset({6, 7, 8})
MID_MONTHS = frozenset({4, 5, 9, 10})
COST_UNCERTAINTY = 0.2


class CostPredictionRequest(BaseModel):
    """Inputs of a cost estimate."""
    destination: str = Field(min_length=1)
    travel_date: dt.date
    duration: int = Field(ge=1, description="Trip length in days")
    travelers: int = Field(default=1, ge=1)
    budget_preference: str = Field(default="mid-range", description="budget, mid-range, luxury, ultra-luxury")


class CostRange(BaseModel):
    minimum: float
    maximum: float


class TravelCostPrediction(BaseModel):
    """Estimated trip cost with a per-category breakdown."""
    total_estimated_cost: float
    cost_breakdown: Dict[str, float]
    confidence_level: float
    cost_range: CostRange
    recommendations: List[str] = Field(default_factory=list)
    seasonal_advice: str = ""


def _round(value: float) -> float:
    return round(value, 2)


class TravelCostPredictor:
    """Estimate trip costs from destination, season, group size and budget style."""

    def __init__(
        self,
        cost_factors: Optional[Mapping[str, CostFactors]] = None,
        seasonality: Optional[Mapping[str, SeasonalFactors]] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._cost_factors = cost_factors if cost_factors is not None else DESTINATION_COST_FACTORS
        self._seasonality = seasonality if seasonality is not None else SEASONAL_FACTORS
        self._logger = logger or logging.getLogger(__name__)

    def predict_travel_cost(self, request: CostPredictionRequest) -> TravelCostPrediction:
        """Return the cost estimate for ``request``."""

        key = request.destination.strip().lower()
        factors = self._cost_factors.get(key)
        if factors is None:
            self._logger.info("Using global average cost factors for %s", request.destination)
            factors = GLOBAL_COST_FACTORS

        days = float(request.duration)
        accommodation = factors.base_accommodation_cost * days * factors.cost_of_living_index
        food = factors.base_food_cost * days * factors.cost_of_living_index
        transport = factors.base_transport_cost * days
        activities = factors.base_activity_cost * days

        group_multiplier = self.traveler_multiplier(request.travelers)
        accommodation *= group_multiplier
        food *= request.travelers
        transport *= group_multiplier
        activities *= request.travelers

        seasonal = self.seasonal_multiplier(request.travel_date, request.destination)
        accommodation *= seasonal
        food *= seasonal

        style = self.budget_multiplier(request.budget_preference)
        accommodation *= style
        food *= style
        activities *= style

        total = accommodation + food + transport + activities

        return TravelCostPrediction(
            total_estimated_cost=_round(total),
            cost_breakdown={
                "accommodation": _round(accommodation),
                "food": _round(food),
                "transport": _round(transport),
                "activities": _round(activities),
            },
            confidence_level=self.confidence_level(request.destination, factors),
            cost_range=CostRange(
                minimum=_round(total * (1 - COST_UNCERTAINTY)),
                maximum=_round(total * (1 + COST_UNCERTAINTY)),
            ),
            recommendations=self.recommendations(request, factors),
            seasonal_advice=self.seasonal_advice(request.travel_date),
        )

    @staticmethod
    def traveler_multiplier(travelers: int) -> float:
        """Shared rooms make accommodation scale sub-linearly with group size."""

        if travelers <= 1:
            return 1.0
        if travelers == 2:
            return 1.6
        if travelers <= 4:
            return 1.8
        return 2.0

    def seasonal_multiplier(self, travel_date: dt.date, destination: str) -> float:
        seasonal = self._seasonality.get(destination.strip().lower()) or self._seasonality["global"]
        if travel_date.month in PEAK_MONTHS:
            return seasonal.peak_season_multiplier
        if travel_date.month in MID_MONTHS:
            return seasonal.mid_season_multiplier
        return seasonal.off_season_multiplier

    @staticmethod
    def budget_multiplier(budget_preference: str) -> float:
        return BUDGET_PREFERENCE_MULTIPLIERS.get(budget_preference.strip().lower(), 1.0)

    def confidence_level(self, destination: str, factors: CostFactors) -> float:
        if destination.strip().lower() not in self._cost_factors:
            return 0.6
        if factors.popularity_multiplier > 1.5:
            return 0.9
        if factors.popularity_multiplier > 1.0:
            return 0.8
        return 0.7

    @staticmethod
    def recommendations(request: CostPredictionRequest, factors: CostFactors) -> List[str]:
        tips: List[str] = []
        if factors.cost_of_living_index > 1.5:
            tips.append("Consider staying in budget accommodations or hostels to reduce costs")
            tips.append("Try local street food and markets for affordable dining")
        if request.duration > 7:
            tips.append("Look for weekly accommodation discounts")
            tips.append("Consider public transportation passes for extended stays")
        if request.travelers > 2:
            tips.append("Book group accommodations and activities for discounts")
            tips.append("Split costs for private tours and transportation")
        return tips

    @staticmethod
    def seasonal_advice(travel_date: dt.date) -> str:
        if travel_date.month in PEAK_MONTHS:
            return "Peak season - expect higher prices but better weather and more activities"
        if travel_date.month in MID_MONTHS:
            return "Shoulder season - good balance of weather and pricing"
        return "Off season - lower prices but weather may be less ideal"
