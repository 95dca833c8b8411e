import pytest

from conftest import make_budget
from baap.services.guarantee.adherence_predictor import (
    AdherencePredictor,
    allocation_cv,
    budget_alignment,
    historical_score,
    market_conditions_score,
    plan_complexity_score,
)
from baap.services.guarantee.config import ComplexityThresholds, MarketAdjustments, PredictionWeights
from baap.services.guarantee.models import (
    BudgetBreakdown,
    BudgetCategory,
    HistoricalTrip,
    PriceRange,
    TripDetails,
    UserProfile,
)


def test_unknown_traveler_uses_population_defaults(budget, trip):
    prediction = AdherencePredictor().predict(budget, None, trip)

    # 0.5*.4 + 1.0*.25 + 0.8*.2 + 0.5*.15
    assert prediction.success_probability == pytest.approx(0.685)
    assert prediction.breakdown.user_behavior == 0.5
    assert prediction.breakdown.plan_complexity == 1.0
    assert prediction.breakdown.market_conditions == pytest.approx(0.8)
    assert prediction.breakdown.historical_performance == 0.5
    # no profile, no history, two high-impact risks, short single-city trip
    assert prediction.confidence == pytest.approx(0.5)
    assert len(prediction.high_impact_risks) == 2


def test_unknown_traveler_recommendations(budget, trip):
    prediction = AdherencePredictor().predict(budget, None, trip)

    types = [r.type for r in prediction.recommendations]
    assert types == ["budget_increase", "category_adjustment"]
    increase = prediction.recommendations[0]
    assert increase.amount == pytest.approx(1_325_000, abs=1)
    assert increase.impact == pytest.approx(0.15)
    assert "accommodation" in prediction.recommendations[1].description


def test_careful_traveler_scores_high(budget, trip, careful_profile):
    prediction = AdherencePredictor().predict(budget, careful_profile, trip)

    assert prediction.breakdown.user_behavior == 1.0
    assert prediction.breakdown.historical_performance == pytest.approx(0.925)
    assert prediction.success_probability == pytest.approx(0.94875)
    assert prediction.risk_factors == []
    assert prediction.confidence == pytest.approx(0.9)
    assert "budget_increase" not in [r.type for r in prediction.recommendations]
    assert prediction.behavioral_insights.price_sensitivity == 0.2


def test_impulsive_traveler_flags_spontaneity(budget, trip, impulsive_profile):
    prediction = AdherencePredictor().predict(budget, impulsive_profile, trip)

    spontaneity = [r for r in prediction.risk_factors if "spontaneity" in r.factor]
    assert len(spontaneity) == 1
    assert spontaneity[0].category == BudgetCategory.ACTIVITIES
    assert "behavioral_change" in [r.type for r in prediction.recommendations]
    # 0.57*.4 + 1.0*.25 + 0.8*.2 + 0.4*.15
    assert prediction.success_probability == pytest.approx(0.698)


def test_probability_never_reaches_certainty(budget, trip, careful_profile):
    generous = PredictionWeights(user_behavior=1, plan_complexity=1, market_conditions=1, historical_performance=1)
    prediction = AdherencePredictor().predict(budget, careful_profile, trip, weights=generous)

    assert prediction.success_probability == 0.99


def test_prediction_is_deterministic(budget, trip, careful_profile):
    predictor = AdherencePredictor()
    first = predictor.predict(budget, careful_profile, trip)
    second = predictor.predict(budget, careful_profile, trip)

    assert first.to_dict() == second.to_dict()


def test_historical_data_overrides_profile_history(budget, trip, careful_profile):
    perfect = [HistoricalTrip(budget=1_000_000, actual_spent=900_000, adherence=1.0)]
    prediction = AdherencePredictor().predict(budget, careful_profile, trip, historical_data=perfect)

    assert prediction.breakdown.historical_performance == pytest.approx(1.0)
    assert prediction.history == perfect


def test_peak_season_adds_accommodation_risk(budget):
    trip = TripDetails(days=3, destinations=6, cities=["Yogyakarta"], start_date="2025-07-14")
    prediction = AdherencePredictor().predict(budget, None, trip)

    peak = [r for r in prediction.risk_factors if "Peak season" in r.factor]
    assert len(peak) == 1
    assert peak[0].impact == "high"
    assert peak[0].category == BudgetCategory.ACCOMMODATION
    assert prediction.breakdown.market_conditions == pytest.approx(0.7)


def test_many_cities_point_at_transportation(budget):
    trip = TripDetails(days=5, destinations=8, cities=["Jakarta", "Bandung", "Yogyakarta", "Bali"])
    prediction = AdherencePredictor().predict(budget, None, trip)

    multi_city = [r for r in prediction.risk_factors if "Multiple cities" in r.factor]
    assert multi_city[0].category == BudgetCategory.TRANSPORTATION


# ---------- Sub-scores ----------


def test_budget_alignment_steps():
    trip = TripDetails(days=2, destinations=2)
    profile = UserProfile(user_id="u", preferred_price_range=PriceRange(min=1_000_000, max=2_000_000))

    assert budget_alignment(profile, make_budget(3_000_000), trip) == 0.8   # 1.5M/day, inside
    assert budget_alignment(profile, make_budget(4_500_000), trip) == 0.8   # 2.25M/day, above range
    assert budget_alignment(profile, make_budget(1_500_000), trip) == 0.4   # 750k/day, ratio -0.25
    assert budget_alignment(profile, make_budget(10_000_000), trip) == 0.8
    assert budget_alignment(profile, make_budget(800_000), trip) == 0.2      # 400k/day, far under
    assert budget_alignment(UserProfile(user_id="u"), make_budget(), trip) == 0.5


@pytest.mark.parametrize("smaller, bigger", [
    (1_500_000, 3_000_000),
    (3_000_000, 4_500_000),
    (3_000_000, 10_000_000),
    (800_000, 1_500_000),
])
def test_more_budget_never_lowers_probability(smaller, bigger):
    profile = UserProfile(user_id="u", preferred_price_range=PriceRange(min=1_000_000, max=2_000_000))
    trip = TripDetails(days=2, destinations=4)
    predictor = AdherencePredictor()

    low = predictor.predict(make_budget(smaller), profile, trip)
    high = predictor.predict(make_budget(bigger), profile, trip)

    assert high.success_probability >= low.success_probability


def test_default_split_sits_on_the_variation_threshold():
    assert allocation_cv(make_budget()) == pytest.approx(0.5)


def test_plan_complexity_penalties():
    thresholds = ComplexityThresholds()
    busy = TripDetails(days=15, destinations=25, cities=["a", "b", "c", "d", "e", "f"])
    skewed = BudgetBreakdown(
        total_budget=1_000_000,
        allocations={BudgetCategory.ACCOMMODATION: 900_000, BudgetCategory.FOOD: 100_000},
    )

    assert plan_complexity_score(make_budget(), busy, thresholds) == pytest.approx(0.4)
    assert plan_complexity_score(skewed, busy, thresholds) == pytest.approx(0.3)


def test_market_conditions():
    market = MarketAdjustments()

    assert market_conditions_score(TripDetails(days=1, destinations=1), market) == pytest.approx(0.8)
    shoulder = TripDetails(days=1, destinations=1, start_date="2025-10-01")
    assert market_conditions_score(shoulder, market) == pytest.approx(0.75)
    tokyo_peak = TripDetails(days=1, destinations=1, cities=["Tokyo"], start_date="2025-08-01")
    assert market_conditions_score(tokyo_peak, market) == pytest.approx(0.6)


def test_historical_score_weights_recent_trips():
    trips = [HistoricalTrip(1, 1, a) for a in (0.2, 0.2, 1.0, 1.0, 1.0)]

    # overall .68 * .6 + recent 1.0 * .4
    assert historical_score(trips) == pytest.approx(0.808)
    assert historical_score([]) == 0.5


def test_profile_scores_are_range_checked():
    with pytest.raises(ValueError):
        UserProfile(user_id="u", spontaneity_score=1.2)
