import pytest

from conftest import allocations_sum, make_budget, make_itinerary
from baap.services.guarantee.adherence_predictor import AdherencePredictor
from baap.services.guarantee.models import BudgetCategory, TripDetails
from baap.services.guarantee.plan_optimizer import OptimizationConstraints, PlanOptimizer


@pytest.fixture
def predictor():
    return AdherencePredictor()


@pytest.fixture
def optimizer(predictor):
    return PlanOptimizer(predictor)


def run(optimizer, predictor, itinerary, budget, profile=None, **constraints):
    trip = TripDetails.from_itinerary(itinerary)
    prediction = predictor.predict(budget, profile, trip)
    return optimizer.optimize(itinerary, budget, prediction, profile, OptimizationConstraints(**constraints))


def test_unreachable_target_uses_full_increase_and_reports_failure(optimizer, predictor, itinerary, budget):
    plan = run(optimizer, predictor, itinerary, budget)

    increase = [o for o in plan.optimizations if o.type == "budget_increase"]
    assert len(increase) == 1
    assert increase[0].cost == pytest.approx(1_000_000)        # capped at 20%
    assert plan.optimized_budget.total_budget == pytest.approx(6_000_000)
    assert allocations_sum(plan.optimized_budget) == pytest.approx(6_000_000)
    assert plan.optimized_budget.amount(BudgetCategory.ACCOMMODATION) == pytest.approx(2_100_000)

    assert plan.success is False
    assert plan.guaranteed_adherence == pytest.approx(0.685)
    assert plan.final_prediction.success_probability == pytest.approx(0.685)
    assert plan.estimated_adherence == pytest.approx(0.845)
    assert plan.confidence == plan.final_prediction.confidence
    # gap .265 * 2 capped at 15% of 6M
    assert plan.buffer_amount == pytest.approx(900_000)


def test_budget_never_grows_past_the_allowed_increase(optimizer, predictor, itinerary, budget):
    for cap in (0.0, 0.05, 0.2, 0.5):
        plan = run(optimizer, predictor, itinerary, budget, max_budget_increase=cap)
        assert plan.optimized_budget.total_budget <= budget.total_budget * (1 + cap) + 1e-6
        assert plan.guaranteed_adherence <= 0.95


def test_no_increase_when_disallowed(optimizer, predictor, itinerary, budget):
    plan = run(optimizer, predictor, itinerary, budget, max_budget_increase=0.0)

    assert "budget_increase" not in [o.type for o in plan.optimizations]
    assert plan.optimized_budget.total_budget == 5_000_000


def test_target_already_met_changes_nothing(optimizer, predictor, itinerary, budget, careful_profile):
    plan = run(optimizer, predictor, itinerary, budget, careful_profile, min_adherence_target=0.9)

    assert plan.optimizations == []
    assert plan.success is True
    assert plan.guaranteed_adherence == pytest.approx(0.9)
    assert plan.buffer_amount == 0
    assert plan.optimized_itinerary is itinerary


def test_spontaneity_risk_moves_activity_money_to_buffer(optimizer, predictor, itinerary, budget, impulsive_profile):
    plan = run(optimizer, predictor, itinerary, budget, impulsive_profile, max_budget_increase=0.0)

    moves = [o for o in plan.optimizations if o.type == "category_reallocation"]
    assert len(moves) == 1
    assert "activities" in moves[0].description
    assert plan.optimized_budget.amount(BudgetCategory.ACTIVITIES) == pytest.approx(675_000)
    assert plan.optimized_budget.amount(BudgetCategory.MISCELLANEOUS) == pytest.approx(325_000)
    assert allocations_sum(plan.optimized_budget) == pytest.approx(5_000_000)


def test_expensive_itinerary_gets_cheaper_options(optimizer, predictor, budget):
    pricey = make_itinerary(stay=("luxury", 2_000_000), transport=("private_car", 900_000), dest_cost=400_000)

    plan = run(optimizer, predictor, pricey, budget, max_budget_increase=0.0)

    types = [o.type for o in plan.optimizations]
    assert types.count("transportation_change") == 3
    assert types.count("accommodation_downgrade") == 3
    assert types.count("destination_swap") == 3

    day = plan.optimized_itinerary.days[0]
    assert day.transportation.type == "rental_car"
    assert day.transportation.cost == pytest.approx(630_000)
    assert day.accommodation.type == "moderate"
    assert day.accommodation.cost == pytest.approx(1_600_000)
    assert day.destinations[0].estimated_cost == pytest.approx(200_000)
    assert day.total_cost == pytest.approx(2_830_000)
    assert day.total_cost == pytest.approx(day.computed_cost)

    # input plan untouched
    assert pricey.days[0].transportation.cost == 900_000
    assert pricey.days[0].total_cost == pytest.approx(3_700_000)


def test_constraints_gate_itinerary_edits(optimizer, predictor, budget):
    pricey = make_itinerary(stay=("luxury", 2_000_000), transport=("private_car", 900_000), dest_cost=400_000)

    plan = run(
        optimizer, predictor, pricey, budget,
        max_budget_increase=0.0,
        allow_transportation_changes=False,
        allow_destination_changes=False,
    )

    types = {o.type for o in plan.optimizations}
    assert types == {"accommodation_downgrade"}
    assert plan.optimized_itinerary.days[0].transportation.cost == 900_000


def test_tactical_suggestions_are_advisory(optimizer, itinerary, budget):
    suggestions = optimizer.tactical_suggestions(itinerary, budget)

    types = [s.type for s in suggestions]
    assert types.count("swap_transport") == 3        # a taxi every day
    assert "change_restaurant" in types
    restaurant = next(s for s in suggestions if s.type == "change_restaurant")
    assert restaurant.potential_savings == pytest.approx(50_000)


def test_crowded_luxury_trip_suggestions(optimizer):
    crowded = make_itinerary(per_day=3, stay=("luxury", 1_000_000))
    suggestions = optimizer.tactical_suggestions(crowded, make_budget())

    types = [s.type for s in suggestions]
    assert "cut_destination" in types
    assert types.count("downgrade_accommodation") == 3


def test_buffer_amount():
    optimizer = PlanOptimizer(AdherencePredictor())

    assert optimizer.buffer_amount(1_000_000, 0.95, 0.95) == 0
    assert optimizer.buffer_amount(1_000_000, 0.9, 0.95) == pytest.approx(100_000)
    assert optimizer.buffer_amount(1_000_000, 0.5, 0.95) == pytest.approx(150_000)


def test_guarantee_coverage_is_capped(optimizer, predictor, itinerary, budget, careful_profile):
    plan = run(optimizer, predictor, itinerary, budget, careful_profile, min_adherence_target=0.99)

    assert plan.guarantee.coverage <= 0.95
    assert len(plan.guarantee.fallback_options) == 3


def test_constraints_validate_inputs():
    with pytest.raises(ValueError):
        OptimizationConstraints(min_adherence_target=0)
    with pytest.raises(ValueError):
        OptimizationConstraints(max_budget_increase=-0.1)
