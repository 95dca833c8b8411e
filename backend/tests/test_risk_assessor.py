import pytest

from conftest import make_budget, make_itinerary
from baap.services.guarantee.adherence_predictor import AdherencePredictor
from baap.services.guarantee.config import RiskThresholds
from baap.services.guarantee.models import RealTimeFactors, TripDetails, WeatherDay
from baap.services.guarantee.risk_assessor import (
    RiskAssessor,
    RiskFactor,
    RiskCategory,
    RiskLevel,
    RiskType,
    risk_level_for,
)


def assess(itinerary, budget=None, profile=None, real_time=None):
    budget = budget or make_budget()
    prediction = AdherencePredictor().predict(budget, profile, TripDetails.from_itinerary(itinerary))
    return RiskAssessor().assess(itinerary, budget, profile, prediction, real_time)


def ids(assessment):
    return [f.id for f in assessment.risk_factors]


def test_comfortable_trip_only_carries_transport_delay(itinerary):
    assessment = assess(itinerary)

    assert ids(assessment) == ["transportation_delay"]
    assert assessment.overall_risk_score == pytest.approx(0.045)
    assert assessment.risk_level == RiskLevel.LOW
    assert assessment.risk_distribution[RiskCategory.SCHEDULE] == pytest.approx(1.0)


def test_no_factors_means_zero_risk():
    assessment = assess(make_itinerary(transport=None))

    assert assessment.risk_factors == []
    assert assessment.overall_risk_score == 0
    assert assessment.risk_level == RiskLevel.LOW
    assert all(share == 0 for share in assessment.risk_distribution.values())
    assert assessment.critical_failure_points == []


def test_over_budget_trip_flags_total_and_categories():
    assessment = assess(make_itinerary(), budget=make_budget(1_000_000))

    overrun = assessment.find(type=RiskType.COST_OVERRUN)
    assert overrun.id == "budget_overrun"
    assert overrun.likelihood == pytest.approx(0.5)
    assert overrun.impact == pytest.approx(0.5)

    accommodation = next(f for f in assessment.risk_factors if f.id == "budget_accommodation_overrun")
    assert accommodation.likelihood == pytest.approx(0.7)
    assert accommodation.impact == pytest.approx(0.3)
    assert "budget_food_overrun" in ids(assessment)


def test_fifteen_stops_is_overscheduled():
    assessment = assess(make_itinerary(per_day=5))

    overload = next(f for f in assessment.risk_factors if f.id == "schedule_overload")
    assert overload.likelihood == pytest.approx(0.6)
    assert overload.category == RiskCategory.SCHEDULE


def test_adventure_and_street_food_tags():
    adventure = assess(make_itinerary(tags=["adventure"]))
    street = assess(make_itinerary(tags=["street_food"]))

    health = next(f for f in adventure.risk_factors if f.id == "health_adventure_risk")
    assert health.likelihood == pytest.approx(0.4)
    assert "food_safety_risk" in ids(street)


def test_bad_weather_and_peak_season(itinerary):
    weather = RealTimeFactors(weather=[
        WeatherDay("2025-07-14", rain_probability=0.9, temperature=27),
        WeatherDay("2025-07-15", rain_probability=0.1, temperature=38),
        WeatherDay("2025-07-16", rain_probability=0.1, temperature=28),
    ])
    assessment = assess(make_itinerary(start="2025-07-14"), real_time=weather)

    disruption = assessment.find(type=RiskType.WEATHER_IMPACT)
    assert disruption.likelihood == pytest.approx(0.6)
    assert "2 days" in disruption.description
    assert assessment.find(type=RiskType.DEMAND_SPIKE) is not None

    pre_trip = assessment.monitoring_schedule[0]
    assert len(pre_trip.alerts) == 2


def test_no_start_date_means_no_demand_spike():
    itinerary = make_itinerary(start="2025-12-20")
    assert assess(itinerary).find(type=RiskType.DEMAND_SPIKE) is not None
    assert assess(make_itinerary(start="2025-03-10")).find(type=RiskType.DEMAND_SPIKE) is None


def test_traveler_behavior_risks(itinerary, impulsive_profile, careful_profile):
    impulsive = assess(itinerary, profile=impulsive_profile)
    careful = assess(itinerary, profile=careful_profile)

    assert {"user_spontaneity_risk", "user_price_sensitivity_risk"} <= set(ids(impulsive))
    assert impulsive.find(category=RiskCategory.USER_BEHAVIOR).likelihood == 0.9
    assert careful.find(category=RiskCategory.USER_BEHAVIOR) is None


def test_distribution_sums_to_one(impulsive_profile):
    assessment = assess(make_itinerary(per_day=5, tags=["adventure"]), make_budget(1_000_000), impulsive_profile)

    assert sum(assessment.risk_distribution.values()) == pytest.approx(1.0)
    assert 0 <= assessment.overall_risk_score <= 1


def test_critical_points_and_actions_are_bounded(impulsive_profile):
    assessment = assess(make_itinerary(per_day=5, tags=["adventure"]), make_budget(1_000_000), impulsive_profile)

    assert len(assessment.critical_failure_points) == 3
    expected = [p.failure_probability * p.potential_loss for p in assessment.critical_failure_points]
    assert expected == sorted(expected, reverse=True)

    # five strongest factors plus the buffer action
    assert len(assessment.recommended_actions) == 6
    buffer = assessment.recommended_actions[-1]
    assert buffer.priority == "high"
    assert buffer.expected_benefit == pytest.approx(0.1)


def test_monitoring_schedule_has_three_phases(itinerary):
    schedule = assess(itinerary).monitoring_schedule

    assert [p.time_point for p in schedule] == [
        "Pre-trip (1 week before)",
        "Daily during trip",
        "Emergency triggers",
    ]
    assert schedule[1].alerts == ["Monitor: Transportation delays could disrupt schedule"]


def test_risk_level_thresholds():
    t = RiskThresholds()

    assert risk_level_for(0.1, t) == RiskLevel.LOW
    assert risk_level_for(0.3, t) == RiskLevel.MEDIUM
    assert risk_level_for(0.6, t) == RiskLevel.HIGH
    assert risk_level_for(0.85, t) == RiskLevel.CRITICAL


@pytest.mark.parametrize("likelihood, impact", [(1.2, 0.5), (0.5, -0.1)])
def test_risk_factor_scores_stay_in_unit_range(likelihood, impact):
    with pytest.raises(ValueError):
        RiskFactor(
            id="bad",
            category=RiskCategory.BUDGET,
            type=RiskType.COST_OVERRUN,
            description="out of range",
            likelihood=likelihood,
            impact=impact,
        )


def test_overall_score_is_mean_of_factor_scores(impulsive_profile):
    assessment = assess(make_itinerary(per_day=5, tags=["adventure"]), make_budget(1_000_000), impulsive_profile)

    scores = [f.risk_score for f in assessment.risk_factors]
    assert assessment.overall_risk_score == pytest.approx(sum(scores) / len(scores))
