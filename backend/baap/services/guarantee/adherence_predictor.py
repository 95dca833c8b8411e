"""Adherence predictor: probability that a trip stays within its budget.

Four independent sub-scores in [0, 1], combined with a PredictionWeights table:
  user behavior (.40)          price sensitivity, risk tolerance, spontaneity, budget fit
  plan complexity (.25)        trip length, destination and city counts, allocation spread
  market conditions (.20)      season and expensive cities
  historical performance (.15) past trip adherence, recent trips weighted extra

Deterministic: the same inputs always produce the same prediction.
"""

import logging
import math
import statistics
from dataclasses import dataclass, field

from baap.config import settings
from baap.data.market import PEAK_MONTHS, SHOULDER_MONTHS, is_expensive_city
from baap.services.guarantee.config import (
    ComplexityThresholds,
    GuaranteeConfig,
    MarketAdjustments,
    PredictionWeights,
    guarantee_config,
)
from baap.services.guarantee.models import (
    BudgetBreakdown,
    BudgetCategory,
    HistoricalTrip,
    TripDetails,
    UserProfile,
)

logger = logging.getLogger(__name__)


# ---------- Data structures ----------


@dataclass
class PredictionRisk:
    """A narrow, adherence-specific risk."""
    factor: str
    impact: str                              # low | medium | high
    probability: float
    mitigation: str | None = None
    category: BudgetCategory | None = None   # budget category the risk presses on

    def to_dict(self) -> dict:
        return {
            "factor": self.factor,
            "impact": self.impact,
            "probability": self.probability,
            "mitigation": self.mitigation,
            "category": self.category.value if self.category else None,
        }


@dataclass
class Recommendation:
    type: str            # budget_increase | category_adjustment | behavioral_change
    description: str
    impact: float        # expected adherence improvement
    amount: float | None = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "description": self.description,
            "impact": round(self.impact, 4),
            "amount": self.amount,
        }


@dataclass
class PredictionBreakdown:
    user_behavior: float
    plan_complexity: float
    market_conditions: float
    historical_performance: float

    def to_dict(self) -> dict:
        return {
            "user_behavior": round(self.user_behavior, 4),
            "plan_complexity": round(self.plan_complexity, 4),
            "market_conditions": round(self.market_conditions, 4),
            "historical_performance": round(self.historical_performance, 4),
        }


@dataclass
class BehavioralInsights:
    price_sensitivity: float
    spontaneity_score: float
    risk_tolerance: float
    historical_adherence: float

    def to_dict(self) -> dict:
        return {
            "price_sensitivity": self.price_sensitivity,
            "spontaneity_score": self.spontaneity_score,
            "risk_tolerance": self.risk_tolerance,
            "historical_adherence": round(self.historical_adherence, 4),
        }


@dataclass
class AdherencePrediction:
    success_probability: float   # [0, 0.99]
    confidence: float            # [0.5, 0.95]
    breakdown: PredictionBreakdown
    risk_factors: list[PredictionRisk]
    recommendations: list[Recommendation]
    behavioral_insights: BehavioralInsights
    trip: TripDetails
    history: list[HistoricalTrip] = field(default_factory=list)

    @property
    def high_impact_risks(self) -> list[PredictionRisk]:
        return [r for r in self.risk_factors if r.impact == "high"]

    def to_dict(self) -> dict:
        return {
            "success_probability": round(self.success_probability, 4),
            "confidence": round(self.confidence, 4),
            "prediction_breakdown": self.breakdown.to_dict(),
            "risk_factors": [r.to_dict() for r in self.risk_factors],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "behavioral_insights": self.behavioral_insights.to_dict(),
        }


# ---------- Sub-scores ----------


def budget_alignment(profile: UserProfile, budget: BudgetBreakdown, trip: TripDetails) -> float:
    """Step score of per-day budget against the traveler's preferred daily spend.

    Non-decreasing in budget: headroom above the preferred range scores the
    same as landing inside it.
    """
    price_range = profile.preferred_price_range
    if price_range is None or price_range.max <= price_range.min:
        return 0.5

    per_day = budget.total_budget / trip.days
    ratio = (per_day - price_range.min) / (price_range.max - price_range.min)

    if ratio >= 0:
        return 0.8   # within range or above it
    if -0.5 <= ratio < 0:
        return 0.4   # up to 50% under
    return 0.2


def user_behavior_score(profile: UserProfile | None, budget: BudgetBreakdown, trip: TripDetails) -> float:
    if profile is None:
        return 0.5

    score = 0.5
    score += (1 - profile.price_sensitivity) * 0.3
    score += profile.risk_tolerance * 0.2
    score -= profile.spontaneity_score * 0.2
    # Balanced activity preference (close to 0.5) plans better
    score += (1 - abs(profile.activity_preference - 0.5) * 2) * 0.1
    score += budget_alignment(profile, budget, trip) * 0.2

    return max(0.0, min(1.0, score))


def allocation_cv(budget: BudgetBreakdown) -> float:
    """Coefficient of variation across the five category allocations."""
    amounts = list(budget.allocations.values())
    mean = statistics.fmean(amounts)
    if mean <= 0:
        return 0.0
    # Rounded so float noise does not flip the threshold comparison
    return round(statistics.pstdev(amounts) / mean, 9)


def plan_complexity_score(budget: BudgetBreakdown, trip: TripDetails, thresholds: ComplexityThresholds) -> float:
    crossed = sum(trip.days > t for t in thresholds.days)
    crossed += sum(trip.destinations > t for t in thresholds.destinations)
    crossed += sum(len(trip.cities) > t for t in thresholds.cities)
    if allocation_cv(budget) > thresholds.allocation_cv:
        crossed += 1

    return max(thresholds.floor, 1.0 - crossed * thresholds.penalty)


def market_conditions_score(trip: TripDetails, market: MarketAdjustments) -> float:
    score = market.base

    month = trip.start_month
    if month in PEAK_MONTHS:
        score -= market.peak_penalty
    elif month in SHOULDER_MONTHS:
        score -= market.shoulder_penalty

    if any(is_expensive_city(city) for city in trip.cities):
        score -= market.expensive_city_penalty

    return max(market.floor, score)


def historical_score(trips: list[HistoricalTrip], recent_window: int = 3) -> float:
    if not trips:
        return 0.5

    overall = statistics.fmean(t.adherence for t in trips)
    recent = statistics.fmean(t.adherence for t in trips[-recent_window:])
    return overall * 0.6 + recent * 0.4


def combine_scores(breakdown: PredictionBreakdown, weights: PredictionWeights) -> float:
    return (
        breakdown.user_behavior * weights.user_behavior
        + breakdown.plan_complexity * weights.plan_complexity
        + breakdown.market_conditions * weights.market_conditions
        + breakdown.historical_performance * weights.historical_performance
    )


# ---------- Predictor ----------


class AdherencePredictor:
    """Scores a budget + itinerary summary + traveler profile."""

    def __init__(self, config: GuaranteeConfig = guarantee_config, currency: str | None = None):
        self.config = config
        self.rules = config.prediction
        self.currency = currency or settings.currency

    def predict(
        self,
        budget: BudgetBreakdown,
        profile: UserProfile | None,
        trip: TripDetails,
        historical_data: list[HistoricalTrip] | None = None,
        weights: PredictionWeights | None = None,
    ) -> AdherencePrediction:
        """Predict the probability of finishing the trip within budget.

        historical_data overrides the profile's own trip history when given.
        weights defaults to the configured PredictionWeights.
        """
        weights = weights or self.config.weights
        if historical_data is None:
            historical_data = list(profile.historical_trips) if profile else []

        logger.info(
            f"Predicting adherence: budget {budget.total_budget:,.0f}, {trip.days} days, "
            f"{trip.destinations} destinations, {len(trip.cities)} cities"
        )

        breakdown = PredictionBreakdown(
            user_behavior=user_behavior_score(profile, budget, trip),
            plan_complexity=plan_complexity_score(budget, trip, self.config.complexity),
            market_conditions=market_conditions_score(trip, self.config.market),
            historical_performance=historical_score(historical_data, self.rules.recent_trip_window),
        )
        probability = max(0.0, min(self.rules.max_probability, combine_scores(breakdown, weights)))

        risk_factors = self._identify_risks(profile, trip, breakdown)
        recommendations = self._recommend(budget, profile, probability)
        confidence = self._confidence(profile, trip, historical_data, risk_factors)

        logger.debug(f"Adherence breakdown {breakdown.to_dict()} -> {probability:.4f} (confidence {confidence})")

        return AdherencePrediction(
            success_probability=probability,
            confidence=confidence,
            breakdown=breakdown,
            risk_factors=risk_factors,
            recommendations=recommendations,
            behavioral_insights=BehavioralInsights(
                price_sensitivity=profile.price_sensitivity if profile else 0.5,
                spontaneity_score=profile.spontaneity_score if profile else 0.5,
                risk_tolerance=profile.risk_tolerance if profile else 0.5,
                historical_adherence=breakdown.historical_performance,
            ),
            trip=trip,
            history=list(historical_data),
        )

    def _identify_risks(
        self,
        profile: UserProfile | None,
        trip: TripDetails,
        breakdown: PredictionBreakdown,
    ) -> list[PredictionRisk]:
        rules = self.rules
        risks: list[PredictionRisk] = []

        if breakdown.user_behavior < rules.low_user_behavior:
            risks.append(PredictionRisk(
                factor="High price sensitivity with budget mismatch",
                impact="high",
                probability=0.8,
                mitigation="Consider increasing budget or selecting more budget-friendly options",
            ))

        if profile and profile.spontaneity_score > rules.high_spontaneity:
            risks.append(PredictionRisk(
                factor="High spontaneity may lead to unplanned expenses",
                impact="medium",
                probability=0.6,
                mitigation="Build in buffer for spontaneous activities",
                category=BudgetCategory.ACTIVITIES,
            ))

        if trip.days > rules.long_trip_days:
            risks.append(PredictionRisk(
                factor="Long trip duration increases cost variability",
                impact="medium",
                probability=0.5,
                mitigation="Monitor spending regularly and adjust as needed",
            ))

        if len(trip.cities) > rules.many_cities:
            risks.append(PredictionRisk(
                factor="Multiple cities increase transportation costs",
                impact="medium",
                probability=0.4,
                mitigation="Consider fewer destinations or budget airlines",
                category=BudgetCategory.TRANSPORTATION,
            ))

        if trip.start_month in PEAK_MONTHS:
            risks.append(PredictionRisk(
                factor="Peak season pricing may exceed budget",
                impact="high",
                probability=0.7,
                mitigation="Book early for better rates or consider shoulder season",
                category=BudgetCategory.ACCOMMODATION,
            ))

        if breakdown.historical_performance < rules.low_historical:
            risks.append(PredictionRisk(
                factor="Historical budget adherence is low",
                impact="high",
                probability=0.9,
                mitigation="Review past trips to identify spending patterns and adjust planning",
            ))

        return risks

    def _recommend(
        self,
        budget: BudgetBreakdown,
        profile: UserProfile | None,
        probability: float,
    ) -> list[Recommendation]:
        rules = self.rules
        recommendations: list[Recommendation] = []

        if probability < rules.recommend_increase_below:
            gap = rules.recommendation_target - probability
            increase = math.ceil(gap * budget.total_budget)
            recommendations.append(Recommendation(
                type="budget_increase",
                description=(
                    f"Increase total budget by {self.currency} {increase:,} to achieve "
                    f"{round(rules.recommendation_target * 100)}% adherence guarantee"
                ),
                impact=min(0.15, gap),
                amount=increase,
            ))

        for category in BudgetCategory:
            if budget.share(category) > rules.heavy_category_share:
                recommendations.append(Recommendation(
                    type="category_adjustment",
                    description=f"Reduce {category.value} budget by 10-15% and reallocate to build buffer",
                    impact=0.05,
                ))

        if profile and profile.spontaneity_score > rules.high_spontaneity:
            recommendations.append(Recommendation(
                type="behavioral_change",
                description="Set daily spending limits and track expenses in real-time",
                impact=0.08,
            ))

        return recommendations

    def _confidence(
        self,
        profile: UserProfile | None,
        trip: TripDetails,
        history: list[HistoricalTrip],
        risks: list[PredictionRisk],
    ) -> float:
        rules = self.rules
        confidence = rules.confidence_base

        if profile is None:
            confidence -= rules.confidence_no_profile
        if not history:
            confidence -= rules.confidence_no_history

        confidence -= sum(1 for r in risks if r.impact == "high") * rules.confidence_per_high_risk

        if trip.days <= rules.simple_trip_max_days and len(trip.cities) <= rules.simple_trip_max_cities:
            confidence += rules.confidence_simple_trip_bonus

        return round(max(rules.confidence_min, min(rules.confidence_max, confidence)), 4)
