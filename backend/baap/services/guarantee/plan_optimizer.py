"""Plan optimizer: raises predicted adherence toward a target in one bounded pass.

Steps, in fixed order, each skipped when its trigger is false:
  1. Budget increase     gap x 1.5, capped at max_budget_increase, spread by original ratios
  2. Reallocation        at-risk categories give up to 10% (max 5% of total) to miscellaneous
  3. Itinerary edits     cheaper transport / accommodation tier / trimmed priciest activity
Then advisory tactical suggestions, an authoritative re-score through the
adherence predictor, and buffer sizing for whatever gap remains.

There is no escalation beyond max_budget_increase: an unreachable target is
reported through `success=False` and the honest guaranteed adherence.
"""

import logging
from dataclasses import dataclass, field, replace

from baap.config import settings
from baap.data.market import cheaper_accommodation, cheaper_transport
from baap.services.guarantee.adherence_predictor import AdherencePrediction, AdherencePredictor
from baap.services.guarantee.config import GuaranteeConfig, guarantee_config
from baap.services.guarantee.models import (
    BudgetBreakdown,
    BudgetCategory,
    Day,
    HistoricalTrip,
    Itinerary,
    UserProfile,
)

logger = logging.getLogger(__name__)

PLAN_CONDITIONS: tuple[str, ...] = (
    "Follow the optimized itinerary and budget allocations",
    "Use recommended transportation options",
    "Stick to suggested accommodation choices",
    "Monitor daily spending against allocated amounts",
    "Report any significant changes immediately",
)

FALLBACK_OPTIONS: tuple[tuple[str, str, float], ...] = (
    ("Spending exceeds 10% of daily budget", "Implement tactical suggestions or contact support", 0.85),
    ("Unexpected transportation costs", "Use public transport alternatives", 0.90),
    ("Accommodation price changes", "Downgrade to moderate options", 0.88),
)


# ---------- Data structures ----------


@dataclass(frozen=True)
class OptimizationConstraints:
    min_adherence_target: float = 0.95
    max_budget_increase: float | None = None     # fraction of total; None -> configured default
    allow_destination_changes: bool = True
    allow_transportation_changes: bool = True
    allow_accommodation_changes: bool = True

    def __post_init__(self):
        if not 0 < self.min_adherence_target <= 1:
            raise ValueError(f"min_adherence_target must be within (0, 1], got {self.min_adherence_target}")
        if self.max_budget_increase is not None and self.max_budget_increase < 0:
            raise ValueError(f"max_budget_increase cannot be negative, got {self.max_budget_increase}")


@dataclass
class Optimization:
    """One applied change; negative cost is a saving."""
    type: str            # budget_increase | category_reallocation | transportation_change | accommodation_downgrade | destination_swap
    description: str
    impact: float
    cost: float

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "description": self.description,
            "impact": round(self.impact, 4),
            "cost": round(self.cost, 2),
        }


@dataclass
class TacticalSuggestion:
    """Advisory, reversible behavior change. Never applied to the plan."""
    type: str            # swap_transport | change_restaurant | cut_destination | downgrade_accommodation
    description: str
    potential_savings: float
    ease: str            # easy | medium | hard
    alternatives: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "description": self.description,
            "potential_savings": round(self.potential_savings, 2),
            "ease": self.ease,
            "alternatives": list(self.alternatives),
        }


@dataclass
class FallbackOption:
    trigger: str
    action: str
    coverage: float

    def to_dict(self) -> dict:
        return {"trigger": self.trigger, "action": self.action, "coverage": self.coverage}


@dataclass
class Guarantee:
    coverage: float
    conditions: list[str]
    fallback_options: list[FallbackOption]

    def to_dict(self) -> dict:
        return {
            "coverage": round(self.coverage, 4),
            "conditions": list(self.conditions),
            "fallback_options": [f.to_dict() for f in self.fallback_options],
        }


@dataclass
class OptimizedPlan:
    success: bool
    guaranteed_adherence: float
    optimized_itinerary: Itinerary
    optimized_budget: BudgetBreakdown       # buffer_amount set
    optimizations: list[Optimization]
    tactical_suggestions: list[TacticalSuggestion]
    guarantee: Guarantee
    confidence: float
    final_prediction: AdherencePrediction
    estimated_adherence: float = 0.0         # running estimate before the re-score

    @property
    def buffer_amount(self) -> float:
        return self.optimized_budget.buffer_amount

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "guaranteed_adherence": round(self.guaranteed_adherence, 4),
            "optimized_itinerary": self.optimized_itinerary.to_dict(),
            "optimized_budget": self.optimized_budget.to_dict(),
            "optimizations": [o.to_dict() for o in self.optimizations],
            "tactical_suggestions": [s.to_dict() for s in self.tactical_suggestions],
            "guarantee": self.guarantee.to_dict(),
            "confidence": round(self.confidence, 4),
            "estimated_adherence": round(self.estimated_adherence, 4),
        }


# ---------- Optimizer ----------


class PlanOptimizer:
    def __init__(
        self,
        predictor: AdherencePredictor,
        config: GuaranteeConfig = guarantee_config,
        currency: str | None = None,
    ):
        self.predictor = predictor
        self.cfg = config.optimization
        self.max_probability = config.prediction.max_probability
        self.currency = currency or settings.currency

    def optimize(
        self,
        itinerary: Itinerary,
        budget: BudgetBreakdown,
        prediction: AdherencePrediction,
        profile: UserProfile | None,
        constraints: OptimizationConstraints | None = None,
        historical_data: list[HistoricalTrip] | None = None,
    ) -> OptimizedPlan:
        constraints = constraints or OptimizationConstraints()
        target = constraints.min_adherence_target
        adherence = prediction.success_probability

        logger.info(
            f"Optimizing plan {itinerary.itinerary_id}: adherence {adherence:.3f} -> target {target:.3f}"
        )

        optimizations: list[Optimization] = []

        # Step 1: budget increase
        budget, applied = self._increase_budget(budget, adherence, constraints)
        if applied:
            optimizations.append(applied)
            adherence = min(adherence + applied.impact, self.max_probability)

        # Step 2: category reallocation
        budget, moves = self._reallocate(budget, prediction)
        optimizations.extend(moves)
        adherence = min(adherence + sum(m.impact for m in moves), self.max_probability)

        # Step 3: itinerary edits
        itinerary, edits = self._optimize_itinerary(itinerary, budget, constraints)
        optimizations.extend(edits)
        adherence = min(adherence + sum(e.impact for e in edits), self.max_probability)

        suggestions = self.tactical_suggestions(itinerary, budget)

        final_prediction = self._rescore(itinerary, budget, prediction, profile, historical_data)
        guaranteed = min(final_prediction.success_probability, target)
        buffer_amount = self.buffer_amount(budget.total_budget, guaranteed, target)

        logger.info(
            f"Plan {itinerary.itinerary_id}: {len(optimizations)} optimizations, "
            f"estimated {adherence:.3f}, re-scored {final_prediction.success_probability:.3f}, "
            f"buffer {buffer_amount:,.0f}"
        )

        return OptimizedPlan(
            success=guaranteed >= target,
            guaranteed_adherence=guaranteed,
            optimized_itinerary=itinerary,
            optimized_budget=replace(budget, buffer_amount=buffer_amount),
            optimizations=optimizations,
            tactical_suggestions=suggestions,
            guarantee=self._guarantee(guaranteed),
            confidence=final_prediction.confidence,
            final_prediction=final_prediction,
            estimated_adherence=adherence,
        )

    # ---------- Budget ----------

    def _increase_budget(
        self,
        budget: BudgetBreakdown,
        adherence: float,
        constraints: OptimizationConstraints,
    ) -> tuple[BudgetBreakdown, Optimization | None]:
        target = constraints.min_adherence_target
        if adherence >= target:
            return budget, None

        cap = constraints.max_budget_increase
        if cap is None:
            cap = self.cfg.default_max_budget_increase
        increase = min(max(0.0, (target - adherence) * self.cfg.increase_multiplier), cap)
        if increase <= 0:
            return budget, None

        amount = increase * budget.total_budget
        allocated = budget.allocated_total
        if allocated > 0:
            shares = {c: a / allocated for c, a in budget.allocations.items()}
        else:
            shares = {c: 1 / len(BudgetCategory) for c in BudgetCategory}

        increased = replace(
            budget,
            total_budget=budget.total_budget + amount,
            allocations={c: a + amount * shares[c] for c, a in budget.allocations.items()},
        )
        return increased, Optimization(
            type="budget_increase",
            description=(
                f"Increased total budget by {round(increase * 100)}% ({self.currency} {amount:,.0f})"
            ),
            impact=increase * self.cfg.increase_effectiveness,
            cost=amount,
        )

    def _reallocate(
        self,
        budget: BudgetBreakdown,
        prediction: AdherencePrediction,
    ) -> tuple[BudgetBreakdown, list[Optimization]]:
        at_risk: list[BudgetCategory] = []
        for risk in prediction.risk_factors:
            if risk.category and risk.category != BudgetCategory.MISCELLANEOUS and risk.category not in at_risk:
                at_risk.append(risk.category)

        allocations = dict(budget.allocations)
        moves: list[Optimization] = []
        for category in at_risk:
            amount = min(
                allocations[category] * self.cfg.reallocation_category_share,
                budget.total_budget * self.cfg.reallocation_total_cap,
            )
            if amount <= 0:
                continue
            allocations[category] -= amount
            allocations[BudgetCategory.MISCELLANEOUS] += amount
            moves.append(Optimization(
                type="category_reallocation",
                description=f"Reallocated {self.currency} {amount:,.0f} from {category.value} to buffer",
                impact=self.cfg.reallocation_gain,
                cost=0.0,
            ))

        if not moves:
            return budget, moves
        return replace(budget, allocations=allocations), moves

    # ---------- Itinerary ----------

    def _optimize_itinerary(
        self,
        itinerary: Itinerary,
        budget: BudgetBreakdown,
        constraints: OptimizationConstraints,
    ) -> tuple[Itinerary, list[Optimization]]:
        days = list(itinerary.days)
        edits: list[Optimization] = []
        n = len(days)

        if constraints.allow_transportation_changes:
            fair = budget.amount(BudgetCategory.TRANSPORTATION) / n
            for i, day in enumerate(days):
                days[i] = self._cheaper_transport(day, fair, edits)

        if constraints.allow_accommodation_changes:
            fair = budget.amount(BudgetCategory.ACCOMMODATION) / n
            for i, day in enumerate(days):
                days[i] = self._cheaper_accommodation(day, fair, edits)

        if constraints.allow_destination_changes:
            fair = budget.amount(BudgetCategory.ACTIVITIES) / n
            for i, day in enumerate(days):
                days[i] = self._trim_activity(day, fair, edits)

        if not edits:
            return itinerary, edits
        return replace(itinerary, days=days), edits

    def _cheaper_transport(self, day: Day, fair_share: float, edits: list[Optimization]) -> Day:
        leg = day.transportation
        if leg is None or leg.cost <= fair_share * self.cfg.transport_trigger:
            return day

        savings = min(leg.cost * self.cfg.transport_max_saving, leg.cost - fair_share)
        edits.append(Optimization(
            type="transportation_change",
            description=(
                f"Day {day.day}: switched {leg.type} to {cheaper_transport(leg.type)}, "
                f"saving {self.currency} {savings:,.0f}"
            ),
            impact=self.cfg.transport_gain,
            cost=-savings,
        ))
        return replace(
            day,
            transportation=replace(leg, type=cheaper_transport(leg.type), cost=leg.cost - savings),
            total_cost=day.total_cost - savings,
        )

    def _cheaper_accommodation(self, day: Day, fair_share: float, edits: list[Optimization]) -> Day:
        stay = day.accommodation
        if stay is None or stay.cost <= fair_share * self.cfg.accommodation_trigger:
            return day

        savings = min(stay.cost * self.cfg.accommodation_max_saving, stay.cost - fair_share)
        tier = cheaper_accommodation(stay.type)
        edits.append(Optimization(
            type="accommodation_downgrade",
            description=f"Day {day.day}: downgraded {stay.name} to {tier}, saving {self.currency} {savings:,.0f}",
            impact=self.cfg.accommodation_gain,
            cost=-savings,
        ))
        return replace(
            day,
            accommodation=replace(stay, type=tier, cost=stay.cost - savings),
            total_cost=day.total_cost - savings,
        )

    def _trim_activity(self, day: Day, fair_share: float, edits: list[Optimization]) -> Day:
        spend = day.activity_cost
        if not day.destinations or spend <= fair_share * self.cfg.activity_trigger:
            return day

        index = max(range(len(day.destinations)), key=lambda i: day.destinations[i].estimated_cost)
        priciest = day.destinations[index]
        # Day activity spend never drops below the floor share
        savings = min(
            priciest.estimated_cost * self.cfg.activity_max_trim,
            spend - fair_share * self.cfg.activity_day_floor,
        )
        if savings <= 0:
            return day

        edits.append(Optimization(
            type="destination_swap",
            description=f"Optimized {priciest.name} cost, saving {self.currency} {savings:,.0f}",
            impact=self.cfg.activity_gain,
            cost=-savings,
        ))
        destinations = [
            replace(d, estimated_cost=d.estimated_cost - savings) if i == index else d
            for i, d in enumerate(day.destinations)
        ]
        return replace(day, destinations=destinations, total_cost=day.total_cost - savings)

    # ---------- Suggestions / guarantee ----------

    def tactical_suggestions(self, itinerary: Itinerary, budget: BudgetBreakdown) -> list[TacticalSuggestion]:
        cfg = self.cfg
        suggestions: list[TacticalSuggestion] = []

        for day in itinerary.days:
            if day.transportation and day.transportation.type == "taxi":
                suggestions.append(TacticalSuggestion(
                    type="swap_transport",
                    description="Replace taxi rides with public transport or walking where possible",
                    potential_savings=min(day.transportation.cost * cfg.taxi_saving_share, cfg.taxi_saving_cap),
                    ease="medium",
                    alternatives=["Public transport", "Walking", "Ride-sharing"],
                ))

        daily_food = budget.amount(BudgetCategory.FOOD) / itinerary.total_days
        if daily_food > cfg.daily_food_threshold:
            suggestions.append(TacticalSuggestion(
                type="change_restaurant",
                description="Choose local warungs instead of tourist restaurants",
                potential_savings=min(daily_food * cfg.food_saving_share, cfg.food_saving_cap),
                ease="easy",
                alternatives=["Local warungs", "Street food", "Food markets"],
            ))

        count = itinerary.destination_count
        if count > cfg.destination_cut_threshold:
            to_cut = max(1, int(count * cfg.destination_cut_share))
            suggestions.append(TacticalSuggestion(
                type="cut_destination",
                description=f"Remove {to_cut} less essential destination(s)",
                potential_savings=budget.amount(BudgetCategory.ACTIVITIES) * cfg.destination_cut_saving_share,
                ease="hard",
                alternatives=["Focus on top-rated destinations", "Combine nearby attractions"],
            ))

        for day in itinerary.days:
            if day.accommodation and day.accommodation.type == "luxury":
                suggestions.append(TacticalSuggestion(
                    type="downgrade_accommodation",
                    description="Switch from luxury to moderate accommodation",
                    potential_savings=min(day.accommodation.cost * cfg.luxury_saving_share, cfg.luxury_saving_cap),
                    ease="medium",
                    alternatives=["Moderate hotels", "Boutique stays", "Serviced apartments"],
                ))

        return suggestions

    def buffer_amount(self, total_budget: float, adherence: float, target: float) -> float:
        gap = target - adherence
        if gap <= 0:
            return 0.0
        return total_budget * min(gap * self.cfg.buffer_gap_multiplier, self.cfg.buffer_cap)

    def _guarantee(self, adherence: float) -> Guarantee:
        return Guarantee(
            coverage=min(adherence, self.cfg.guarantee_coverage_cap),
            conditions=list(PLAN_CONDITIONS),
            fallback_options=[FallbackOption(t, a, c) for t, a, c in FALLBACK_OPTIONS],
        )

    def _rescore(
        self,
        itinerary: Itinerary,
        budget: BudgetBreakdown,
        prediction: AdherencePrediction,
        profile: UserProfile | None,
        historical_data: list[HistoricalTrip] | None,
    ) -> AdherencePrediction:
        trip = replace(
            prediction.trip,
            days=itinerary.total_days,
            destinations=itinerary.destination_count,
        )
        if historical_data is None:
            historical_data = prediction.history
        return self.predictor.predict(budget, profile, trip, historical_data)
