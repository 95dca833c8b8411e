"""Guarantee pipeline configuration: single source for all weights and thresholds."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PredictionWeights:
    """How the four adherence sub-scores combine."""
    user_behavior: float = 0.4
    plan_complexity: float = 0.25
    market_conditions: float = 0.2
    historical_performance: float = 0.15


@dataclass(frozen=True)
class ComplexityThresholds:
    """Each threshold crossed costs `penalty` off a perfect 1.0."""
    days: tuple[int, ...] = (7, 14)
    destinations: tuple[int, ...] = (10, 20)
    cities: tuple[int, ...] = (3, 5)
    allocation_cv: float = 0.5       # coefficient of variation across categories
    penalty: float = 0.1
    floor: float = 0.3


@dataclass(frozen=True)
class MarketAdjustments:
    base: float = 0.8
    peak_penalty: float = 0.1
    shoulder_penalty: float = 0.05
    expensive_city_penalty: float = 0.1
    floor: float = 0.5


@dataclass(frozen=True)
class PredictionRules:
    """Risk rules, recommendations and confidence for the adherence predictor."""
    max_probability: float = 0.99          # never promise certainty
    low_user_behavior: float = 0.6
    high_spontaneity: float = 0.7
    long_trip_days: int = 10
    many_cities: int = 3
    low_historical: float = 0.6
    recent_trip_window: int = 3
    recommend_increase_below: float = 0.85
    recommendation_target: float = 0.95
    heavy_category_share: float = 0.3      # category > 30% of total budget

    confidence_base: float = 0.8
    confidence_no_profile: float = 0.2
    confidence_no_history: float = 0.1
    confidence_per_high_risk: float = 0.05
    confidence_simple_trip_bonus: float = 0.1
    simple_trip_max_days: int = 7
    simple_trip_max_cities: int = 2
    confidence_min: float = 0.5
    confidence_max: float = 0.95


@dataclass(frozen=True)
class OptimizationConfig:
    """Plan optimizer multipliers, caps and per-step adherence gains."""
    default_max_budget_increase: float = 0.2
    increase_multiplier: float = 1.5         # gap -> required budget increase
    increase_effectiveness: float = 0.8      # share of increase that becomes adherence
    reallocation_category_share: float = 0.1
    reallocation_total_cap: float = 0.05
    reallocation_gain: float = 0.02

    transport_trigger: float = 1.2           # leg cost vs fair per-day share
    transport_max_saving: float = 0.3
    transport_gain: float = 0.03
    accommodation_trigger: float = 1.3
    accommodation_max_saving: float = 0.2
    accommodation_gain: float = 0.04
    activity_trigger: float = 1.2
    activity_max_trim: float = 0.5
    activity_day_floor: float = 0.8
    activity_gain: float = 0.02

    buffer_gap_multiplier: float = 2.0
    buffer_cap: float = 0.15
    guarantee_coverage_cap: float = 0.95

    # Tactical suggestion caps (IDR)
    taxi_saving_share: float = 0.4
    taxi_saving_cap: float = 100_000
    daily_food_threshold: float = 100_000
    food_saving_share: float = 0.3
    food_saving_cap: float = 50_000
    destination_cut_threshold: int = 8
    destination_cut_share: float = 0.1
    destination_cut_saving_share: float = 0.15
    luxury_saving_share: float = 0.4
    luxury_saving_cap: float = 300_000


@dataclass(frozen=True)
class RiskThresholds:
    """Risk assessment triggers and scaling."""
    budget_overrun_trigger: float = 1.1
    budget_overrun_likelihood_cap: float = 0.8
    category_overrun_trigger: float = 1.2
    category_likelihood_cap: float = 0.7
    category_impact_cap: float = 0.3
    food_cost_share: float = 0.25            # itineraries carry no meal costs
    overscheduled_activities: int = 12
    overscheduled_divisor: float = 20.0
    overscheduled_likelihood_cap: float = 0.6
    transport_delay_likelihood: float = 0.3
    adventure_min_count: int = 2
    adventure_divisor: float = 10.0
    adventure_likelihood_cap: float = 0.4
    street_food_min_count: int = 3
    street_food_likelihood: float = 0.2
    rain_probability_limit: float = 0.7
    min_comfortable_temp: float = 15.0
    max_comfortable_temp: float = 35.0
    weather_likelihood_cap: float = 0.6
    demand_spike_likelihood: float = 0.5
    high_spontaneity: float = 0.7
    high_price_sensitivity: float = 0.6

    level_medium: float = 0.3
    level_high: float = 0.6
    level_critical: float = 0.8
    critical_points: int = 3
    recommended_actions: int = 5
    priority_high: float = 0.6
    priority_medium: float = 0.3
    critical_alert_impact: float = 0.3
    buffer_action_below: float = 0.95
    max_buffer_benefit: float = 0.1


# riskLevel -> share of total budget reserved per resource
RESOURCE_ALLOCATION: dict[str, dict[str, float]] = {
    "low": {"emergency_fund": 0.03, "backup_transportation": 0.02, "alternative_accommodation": 0.02, "communication_credits": 0.01},
    "medium": {"emergency_fund": 0.05, "backup_transportation": 0.03, "alternative_accommodation": 0.03, "communication_credits": 0.02},
    "high": {"emergency_fund": 0.08, "backup_transportation": 0.05, "alternative_accommodation": 0.05, "communication_credits": 0.03},
    "critical": {"emergency_fund": 0.12, "backup_transportation": 0.08, "alternative_accommodation": 0.08, "communication_credits": 0.05},
}

RESPONSE_TIME_MINUTES: dict[str, int] = {
    "immediate": 30,
    "hours": 120,
    "days": 1440,
}


@dataclass(frozen=True)
class ContingencyConfig:
    """Contingency catalog costs are IDR at `reference_budget`, scaled by trip size."""
    reference_budget: float = 5_000_000
    min_cost_scale: float = 0.5
    max_cost_scale: float = 3.0
    scenario_universe: int = 10              # scenarios a full plan would cover
    default_risk_level: str = "medium"


@dataclass(frozen=True)
class ContractConfig:
    min_guarantee_level: float = 0.90
    top_risks: int = 5
    full_coverage_impact: float = 0.5
    counter_width: int = 4


@dataclass(frozen=True)
class BudgetSplit:
    """Default category split when only a total budget is known."""
    accommodation: float = 0.35
    transportation: float = 0.20
    food: float = 0.25
    activities: float = 0.15
    miscellaneous: float = 0.05


@dataclass(frozen=True)
class GuaranteeConfig:
    """Top-level config aggregating all sub-configs."""
    weights: PredictionWeights = field(default_factory=PredictionWeights)
    complexity: ComplexityThresholds = field(default_factory=ComplexityThresholds)
    market: MarketAdjustments = field(default_factory=MarketAdjustments)
    prediction: PredictionRules = field(default_factory=PredictionRules)
    optimization: OptimizationConfig = field(default_factory=OptimizationConfig)
    risk: RiskThresholds = field(default_factory=RiskThresholds)
    contingency: ContingencyConfig = field(default_factory=ContingencyConfig)
    contract: ContractConfig = field(default_factory=ContractConfig)
    budget_split: BudgetSplit = field(default_factory=BudgetSplit)


# Immutable default, safe to share between orchestrators
guarantee_config = GuaranteeConfig()
