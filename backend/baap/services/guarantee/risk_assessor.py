"""Risk assessor: broad operational risk sweep over an optimized plan.

Complements the adherence predictor's narrow risk list with a taxonomy that
feeds contingency planning and the contract:
  budget          total and per-category overruns
  schedule        over-scheduling, transport delays
  health_safety   adventure activities, street food
  external        forecast weather, peak-season demand
  user_behavior   spontaneity, price sensitivity

Every factor carries likelihood and impact in [0, 1]; risk_score is their product.
"""

import logging
import statistics
from dataclasses import dataclass, field
from enum import Enum

from baap.data.market import ADVENTURE_TAGS, PEAK_MONTHS, STREET_FOOD_TAGS
from baap.services.guarantee.adherence_predictor import AdherencePrediction
from baap.services.guarantee.config import GuaranteeConfig, RiskThresholds, guarantee_config
from baap.services.guarantee.models import (
    BudgetBreakdown,
    BudgetCategory,
    Itinerary,
    RealTimeFactors,
    UserProfile,
)

logger = logging.getLogger(__name__)


class RiskCategory(str, Enum):
    BUDGET = "budget"
    SCHEDULE = "schedule"
    HEALTH_SAFETY = "health_safety"
    EXTERNAL = "external"
    USER_BEHAVIOR = "user_behavior"


class RiskType(str, Enum):
    COST_OVERRUN = "cost_overrun"
    SCHEDULE_DELAY = "schedule_delay"
    HEALTH_ISSUE = "health_issue"
    SAFETY_CONCERN = "safety_concern"
    WEATHER_IMPACT = "weather_impact"
    DEMAND_SPIKE = "demand_spike"
    USER_NONCOMPLIANCE = "user_noncompliance"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ---------- Data structures ----------


@dataclass
class MitigationStrategy:
    strategy: str
    effectiveness: float
    cost: float
    implementation: str      # automatic | manual | preventive

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy,
            "effectiveness": self.effectiveness,
            "cost": round(self.cost, 2),
            "implementation": self.implementation,
        }


@dataclass
class ContingencyStub:
    condition: str
    action: str
    backup_cost: float | None = None

    def to_dict(self) -> dict:
        return {
            "condition": self.condition,
            "action": self.action,
            "backup_cost": round(self.backup_cost, 2) if self.backup_cost is not None else None,
        }


@dataclass
class RiskFactor:
    id: str
    category: RiskCategory
    type: RiskType
    description: str
    likelihood: float
    impact: float
    triggers: list[str] = field(default_factory=list)
    mitigation_strategies: list[MitigationStrategy] = field(default_factory=list)   # best first
    monitoring_points: list[str] = field(default_factory=list)
    contingency_plans: list[ContingencyStub] = field(default_factory=list)

    def __post_init__(self):
        for name in ("likelihood", "impact"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"Risk {self.id} {name} must be within [0, 1], got {value}")

    @property
    def risk_score(self) -> float:
        return self.likelihood * self.impact

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category.value,
            "type": self.type.value,
            "description": self.description,
            "likelihood": round(self.likelihood, 4),
            "impact": round(self.impact, 4),
            "risk_score": round(self.risk_score, 4),
            "triggers": list(self.triggers),
            "mitigation_strategies": [m.to_dict() for m in self.mitigation_strategies],
            "monitoring_points": list(self.monitoring_points),
            "contingency_plans": [c.to_dict() for c in self.contingency_plans],
        }


@dataclass
class CriticalFailurePoint:
    factor: RiskFactor
    failure_probability: float
    potential_loss: float

    def to_dict(self) -> dict:
        return {
            "factor_id": self.factor.id,
            "description": self.factor.description,
            "failure_probability": round(self.failure_probability, 4),
            "potential_loss": round(self.potential_loss, 2),
        }


@dataclass
class MonitoringPhase:
    time_point: str
    checks: list[str]
    alerts: list[str]

    def to_dict(self) -> dict:
        return {"time_point": self.time_point, "checks": list(self.checks), "alerts": list(self.alerts)}


@dataclass
class RecommendedAction:
    priority: str            # high | medium | low
    action: str
    rationale: str
    expected_benefit: float

    def to_dict(self) -> dict:
        return {
            "priority": self.priority,
            "action": self.action,
            "rationale": self.rationale,
            "expected_benefit": round(self.expected_benefit, 4),
        }


@dataclass
class RiskAssessment:
    overall_risk_score: float
    risk_level: RiskLevel
    risk_factors: list[RiskFactor]
    risk_distribution: dict[RiskCategory, float]
    critical_failure_points: list[CriticalFailurePoint]
    monitoring_schedule: list[MonitoringPhase]
    recommended_actions: list[RecommendedAction]

    def find(self, category: RiskCategory | None = None, type: RiskType | None = None) -> RiskFactor | None:
        """First factor matching the given category and/or type."""
        for factor in self.risk_factors:
            if category is not None and factor.category != category:
                continue
            if type is not None and factor.type != type:
                continue
            return factor
        return None

    def top_factors(self, limit: int) -> list[RiskFactor]:
        return sorted(self.risk_factors, key=lambda f: f.risk_score, reverse=True)[:limit]

    def to_dict(self) -> dict:
        return {
            "overall_risk_score": round(self.overall_risk_score, 4),
            "risk_level": self.risk_level.value,
            "risk_factors": [f.to_dict() for f in self.risk_factors],
            "risk_distribution": {c.value: round(share, 6) for c, share in self.risk_distribution.items()},
            "critical_failure_points": [p.to_dict() for p in self.critical_failure_points],
            "monitoring_schedule": [p.to_dict() for p in self.monitoring_schedule],
            "recommended_actions": [a.to_dict() for a in self.recommended_actions],
        }


# ---------- Aggregation helpers ----------


def risk_level_for(score: float, t: RiskThresholds) -> RiskLevel:
    if score >= t.level_critical:
        return RiskLevel.CRITICAL
    if score >= t.level_high:
        return RiskLevel.HIGH
    if score >= t.level_medium:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def risk_distribution(factors: list[RiskFactor]) -> dict[RiskCategory, float]:
    """Summed risk score per category, normalized to 1 (all zero when empty)."""
    distribution = {category: 0.0 for category in RiskCategory}
    for factor in factors:
        distribution[factor.category] += factor.risk_score

    total = sum(distribution.values())
    if total > 0:
        distribution = {c: score / total for c, score in distribution.items()}
    return distribution


# ---------- Assessor ----------


class RiskAssessor:
    def __init__(self, config: GuaranteeConfig = guarantee_config):
        self.t = config.risk

    def assess(
        self,
        itinerary: Itinerary,
        budget: BudgetBreakdown,
        profile: UserProfile | None,
        prediction: AdherencePrediction,
        real_time: RealTimeFactors | None = None,
    ) -> RiskAssessment:
        logger.info(f"Assessing risks for itinerary {itinerary.itinerary_id} ({itinerary.total_days} days)")

        factors: list[RiskFactor] = []
        factors.extend(self._budget_risks(itinerary, budget))
        factors.extend(self._schedule_risks(itinerary))
        factors.extend(self._health_safety_risks(itinerary))
        factors.extend(self._external_risks(itinerary, real_time))
        factors.extend(self._user_behavior_risks(profile))

        overall = statistics.fmean(f.risk_score for f in factors) if factors else 0.0
        level = risk_level_for(overall, self.t)

        logger.debug(f"Risk factors: {[f.id for f in factors]} -> {overall:.3f} ({level.value})")

        return RiskAssessment(
            overall_risk_score=overall,
            risk_level=level,
            risk_factors=factors,
            risk_distribution=risk_distribution(factors),
            critical_failure_points=self._critical_points(factors, budget),
            monitoring_schedule=self._monitoring_schedule(factors),
            recommended_actions=self._recommended_actions(factors, prediction),
        )

    # ---------- Rules ----------

    def _budget_risks(self, itinerary: Itinerary, budget: BudgetBreakdown) -> list[RiskFactor]:
        t = self.t
        total = budget.total_budget
        factors: list[RiskFactor] = []

        estimated = itinerary.total_cost
        if estimated > total * t.budget_overrun_trigger:
            overage = (estimated - total) / total
            factors.append(RiskFactor(
                id="budget_overrun",
                category=RiskCategory.BUDGET,
                type=RiskType.COST_OVERRUN,
                description="Estimated costs exceed budget by more than 10%",
                likelihood=min(overage, t.budget_overrun_likelihood_cap),
                impact=min(overage, 1.0),
                triggers=["Daily spending exceeds allocation", "Unexpected price increases"],
                mitigation_strategies=[
                    MitigationStrategy("Reserve contingency fund", 0.9, total * 0.05, "preventive"),
                    MitigationStrategy("Implement daily spending caps", 0.7, 0, "automatic"),
                ],
                monitoring_points=["Daily expense tracking", "Price change alerts"],
                contingency_plans=[ContingencyStub(
                    "Spending exceeds 15% of daily budget",
                    "Activate contingency fund or reduce non-essential activities",
                    total * 0.1,
                )],
            ))

        for category, spend in self._category_spend(itinerary).items():
            allocated = budget.amount(category)
            if spend <= allocated * t.category_overrun_trigger:
                continue
            ratio = (spend - allocated) / allocated if allocated > 0 else 1.0
            name = category.value
            factors.append(RiskFactor(
                id=f"budget_{name}_overrun",
                category=RiskCategory.BUDGET,
                type=RiskType.COST_OVERRUN,
                description=f"{name.capitalize()} spending likely to exceed allocation by {ratio * 100:.0f}%",
                likelihood=min(ratio, t.category_likelihood_cap),
                impact=min((spend - allocated) / total, t.category_impact_cap),
                triggers=[f"{name.capitalize()} costs increase", "Unexpected expenses"],
                mitigation_strategies=[MitigationStrategy(f"Optimize {name} choices", 0.6, 0, "manual")],
                monitoring_points=[f"{name.capitalize()} expense tracking"],
                contingency_plans=[ContingencyStub(
                    f"{name.capitalize()} spending exceeds 20% of allocation",
                    f"Switch to cheaper {name} alternatives",
                    min(spend - allocated, allocated * 0.5) if allocated > 0 else spend - allocated,
                )],
            ))

        return factors

    def _category_spend(self, itinerary: Itinerary) -> dict[BudgetCategory, float]:
        """Projected spend per category; food is not itemized so it is estimated."""
        return {
            BudgetCategory.ACCOMMODATION: sum(d.accommodation.cost for d in itinerary.days if d.accommodation),
            BudgetCategory.TRANSPORTATION: sum(d.transportation.cost for d in itinerary.days if d.transportation),
            BudgetCategory.FOOD: itinerary.total_cost * self.t.food_cost_share,
            BudgetCategory.ACTIVITIES: sum(d.activity_cost for d in itinerary.days),
        }

    def _schedule_risks(self, itinerary: Itinerary) -> list[RiskFactor]:
        t = self.t
        factors: list[RiskFactor] = []

        activities = itinerary.destination_count
        if activities > t.overscheduled_activities:
            factors.append(RiskFactor(
                id="schedule_overload",
                category=RiskCategory.SCHEDULE,
                type=RiskType.SCHEDULE_DELAY,
                description="Itinerary is over-scheduled, increasing fatigue and delays",
                likelihood=min(activities / t.overscheduled_divisor, t.overscheduled_likelihood_cap),
                impact=0.2,
                triggers=["Missed activities", "Travel fatigue"],
                mitigation_strategies=[MitigationStrategy("Add buffer time between activities", 0.8, 0, "automatic")],
                monitoring_points=["Activity completion tracking", "Energy level monitoring"],
                contingency_plans=[ContingencyStub(
                    "Multiple activities missed", "Skip low-priority activities and focus on essentials", 0,
                )],
            ))

        if any(day.transportation for day in itinerary.days):
            factors.append(RiskFactor(
                id="transportation_delay",
                category=RiskCategory.SCHEDULE,
                type=RiskType.SCHEDULE_DELAY,
                description="Transportation delays could disrupt schedule",
                likelihood=t.transport_delay_likelihood,
                impact=0.15,
                triggers=["Traffic congestion", "Public transport delays", "Weather issues"],
                mitigation_strategies=[MitigationStrategy("Build transportation buffers", 0.7, 0, "preventive")],
                monitoring_points=["Transportation status updates"],
                contingency_plans=[ContingencyStub(
                    "Transportation delay > 30 minutes", "Adjust subsequent activities or use backup transport", 50_000,
                )],
            ))

        return factors

    def _health_safety_risks(self, itinerary: Itinerary) -> list[RiskFactor]:
        t = self.t
        factors: list[RiskFactor] = []

        adventure = sum(1 for d in itinerary.destinations if d.has_any_tag(ADVENTURE_TAGS))
        if adventure > t.adventure_min_count:
            factors.append(RiskFactor(
                id="health_adventure_risk",
                category=RiskCategory.HEALTH_SAFETY,
                type=RiskType.HEALTH_ISSUE,
                description="Multiple adventure activities increase health and safety risks",
                likelihood=min(adventure / t.adventure_divisor, t.adventure_likelihood_cap),
                impact=0.25,
                triggers=["Injury during activities", "Medical emergencies"],
                mitigation_strategies=[
                    MitigationStrategy("Travel insurance with adventure coverage", 0.8, 500_000, "preventive"),
                ],
                monitoring_points=["Health status monitoring", "Weather conditions"],
                contingency_plans=[ContingencyStub(
                    "Health issue occurs", "Seek medical attention and adjust itinerary", 1_000_000,
                )],
            ))

        street_food = sum(1 for d in itinerary.destinations if d.has_any_tag(STREET_FOOD_TAGS))
        if street_food > t.street_food_min_count:
            factors.append(RiskFactor(
                id="food_safety_risk",
                category=RiskCategory.HEALTH_SAFETY,
                type=RiskType.HEALTH_ISSUE,
                description="Frequent street food consumption increases food safety risks",
                likelihood=t.street_food_likelihood,
                impact=0.15,
                triggers=["Food poisoning", "Water contamination"],
                mitigation_strategies=[
                    MitigationStrategy("Choose reputable establishments and stay hydrated", 0.6, 0, "manual"),
                ],
                monitoring_points=["Health monitoring after meals"],
                contingency_plans=[ContingencyStub("Food-related illness", "Seek medical attention and rest", 200_000)],
            ))

        return factors

    def _external_risks(self, itinerary: Itinerary, real_time: RealTimeFactors | None) -> list[RiskFactor]:
        t = self.t
        factors: list[RiskFactor] = []

        if real_time and real_time.weather:
            bad_days = sum(
                1 for w in real_time.weather
                if w.rain_probability > t.rain_probability_limit
                or w.temperature < t.min_comfortable_temp
                or w.temperature > t.max_comfortable_temp
            )
            if bad_days:
                factors.append(RiskFactor(
                    id="weather_disruption",
                    category=RiskCategory.EXTERNAL,
                    type=RiskType.WEATHER_IMPACT,
                    description=f"{bad_days} days with potentially disruptive weather conditions",
                    likelihood=min(bad_days / itinerary.total_days, t.weather_likelihood_cap),
                    impact=0.2,
                    triggers=["Heavy rain", "Extreme temperatures", "Weather warnings"],
                    mitigation_strategies=[MitigationStrategy(
                        "Monitor weather forecasts and have indoor alternatives", 0.7, 0, "manual",
                    )],
                    monitoring_points=["Weather forecast updates"],
                    contingency_plans=[ContingencyStub(
                        "Severe weather warning", "Modify activities to indoor alternatives", 0,
                    )],
                ))

        start = itinerary.start_date
        if start and start.month in PEAK_MONTHS:
            factors.append(RiskFactor(
                id="demand_spike",
                category=RiskCategory.EXTERNAL,
                type=RiskType.DEMAND_SPIKE,
                description="Travel during peak season increases demand and prices",
                likelihood=t.demand_spike_likelihood,
                impact=0.25,
                triggers=["Higher prices", "Crowded attractions", "Limited availability"],
                mitigation_strategies=[MitigationStrategy(
                    "Book in advance and expect price increases", 0.5, 0, "preventive",
                )],
                monitoring_points=["Price monitoring", "Availability checks"],
                contingency_plans=[ContingencyStub(
                    "Prices increase significantly", "Use pre-booked alternatives or adjust expectations", 0,
                )],
            ))

        return factors

    def _user_behavior_risks(self, profile: UserProfile | None) -> list[RiskFactor]:
        if profile is None:
            return []
        t = self.t
        factors: list[RiskFactor] = []

        if profile.spontaneity_score > t.high_spontaneity:
            factors.append(RiskFactor(
                id="user_spontaneity_risk",
                category=RiskCategory.USER_BEHAVIOR,
                type=RiskType.USER_NONCOMPLIANCE,
                description="High spontaneity score indicates potential deviation from planned budget",
                likelihood=profile.spontaneity_score,
                impact=0.2,
                triggers=["Impulsive spending", "Unplanned activities"],
                mitigation_strategies=[MitigationStrategy(
                    "Set spending reminders and approval workflows", 0.6, 0, "automatic",
                )],
                monitoring_points=["Spending pattern analysis", "Activity tracking"],
                contingency_plans=[ContingencyStub(
                    "Unexpected spending detected", "Trigger spending review and adjustment", 0,
                )],
            ))

        if profile.price_sensitivity > t.high_price_sensitivity:
            factors.append(RiskFactor(
                id="user_price_sensitivity_risk",
                category=RiskCategory.USER_BEHAVIOR,
                type=RiskType.USER_NONCOMPLIANCE,
                description="High price sensitivity may lead to quality compromises or dissatisfaction",
                likelihood=profile.price_sensitivity,
                impact=0.15,
                triggers=["Choosing lowest cost options", "Quality dissatisfaction"],
                mitigation_strategies=[MitigationStrategy(
                    "Balance cost and quality recommendations", 0.7, 0, "automatic",
                )],
                monitoring_points=["Satisfaction feedback", "Quality vs cost analysis"],
                contingency_plans=[ContingencyStub(
                    "Quality complaints", "Upgrade to better alternatives within budget", 100_000,
                )],
            ))

        return factors

    # ---------- Summaries ----------

    def _critical_points(self, factors: list[RiskFactor], budget: BudgetBreakdown) -> list[CriticalFailurePoint]:
        points = [
            CriticalFailurePoint(
                factor=f,
                failure_probability=f.likelihood,
                potential_loss=f.impact * budget.total_budget,
            )
            for f in factors
        ]
        points.sort(key=lambda p: p.failure_probability * p.potential_loss, reverse=True)
        return points[: self.t.critical_points]

    def _monitoring_schedule(self, factors: list[RiskFactor]) -> list[MonitoringPhase]:
        daily_categories = {RiskCategory.BUDGET, RiskCategory.SCHEDULE, RiskCategory.HEALTH_SAFETY}
        return [
            MonitoringPhase(
                time_point="Pre-trip (1 week before)",
                checks=[
                    "Weather forecast review",
                    "Price change monitoring",
                    "Transportation booking confirmation",
                    "Accommodation confirmation",
                ],
                alerts=[f.description for f in factors if f.category == RiskCategory.EXTERNAL],
            ),
            MonitoringPhase(
                time_point="Daily during trip",
                checks=[
                    "Daily spending vs budget",
                    "Activity completion status",
                    "Health and safety status",
                    "Weather conditions",
                ],
                alerts=[f"Monitor: {f.description}" for f in factors if f.category in daily_categories],
            ),
            MonitoringPhase(
                time_point="Emergency triggers",
                checks=[
                    "Sudden price increases",
                    "Transportation disruptions",
                    "Health emergencies",
                    "Weather emergencies",
                ],
                alerts=[f"Critical: {f.description}" for f in factors if f.impact > self.t.critical_alert_impact],
            ),
        ]

    def _recommended_actions(
        self,
        factors: list[RiskFactor],
        prediction: AdherencePrediction,
    ) -> list[RecommendedAction]:
        t = self.t
        actions: list[RecommendedAction] = []

        ranked = sorted(factors, key=lambda f: f.risk_score, reverse=True)
        for factor in ranked[: t.recommended_actions]:
            if not factor.mitigation_strategies:
                continue
            best = factor.mitigation_strategies[0]
            score = factor.risk_score
            if score > t.priority_high:
                priority = "high"
            elif score > t.priority_medium:
                priority = "medium"
            else:
                priority = "low"
            actions.append(RecommendedAction(
                priority=priority,
                action=best.strategy,
                rationale=f"Addresses {factor.description} ({round(score * 100)}% risk score)",
                expected_benefit=best.effectiveness * score,
            ))

        if prediction.success_probability < t.buffer_action_below:
            actions.append(RecommendedAction(
                priority="high",
                action=f"Increase budget buffer to achieve {round(t.buffer_action_below * 100)}% adherence guarantee",
                rationale="Current plan has lower than guaranteed adherence probability",
                expected_benefit=min(t.buffer_action_below - prediction.success_probability, t.max_buffer_benefit),
            ))

        return actions
