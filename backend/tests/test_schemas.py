from datetime import date

import pytest
from pydantic import ValidationError

from baap.schemas.baap import BaaPRequest, ItineraryIn, RealTimeFactorsIn, TripPreferences
from baap.services.guarantee.models import BudgetCategory

ITINERARY = {
    "itineraryId": "itn-client",
    "totalCost": 420_000,
    "days": [
        {
            "day": 1,
            "date": "2025-03-10",
            "destinations": [
                {
                    "id": "yog-kraton",
                    "name": "Kraton Yogyakarta",
                    "city": "Yogyakarta",
                    "coordinates": {"lat": -7.8053, "lng": 110.3642},
                    "scheduledTime": "09:00",
                    "duration": 90,
                    "estimatedCost": 20_000,
                    "tags": ["history"],
                },
            ],
            "accommodation": {"name": "Guesthouse", "type": "budget", "cost": 250_000},
            "transportation": {"type": "taxi", "cost": 150_000, "ecoFriendly": False},
        },
    ],
}


def test_camel_case_request():
    request = BaaPRequest.model_validate({
        "userId": "user-1",
        "preferences": {
            "budget": 5_000_000,
            "days": 3,
            "accommodationType": "budget",
            "startDate": "2025-03-10",
            "constraints": {"allowDestinationChanges": False},
        },
        "guaranteeTarget": 0.9,
        "maxBudgetIncrease": 0.1,
    })

    assert request.user_id == "user-1"
    assert request.preferences.accommodation_type == "budget"
    assert request.preferences.start_date == date(2025, 3, 10)
    assert request.preferences.constraints.allow_destination_changes is False
    assert request.preferences.constraints.allow_transportation_changes is True
    assert request.guarantee_target == 0.9
    assert request.max_budget_increase == 0.1


def test_snake_case_request_and_defaults():
    request = BaaPRequest(user_id="user-1", preferences=TripPreferences(budget=1_000_000, days=2))

    assert request.guarantee_target == 0.95
    assert request.max_budget_increase is None
    assert request.existing_itinerary is None
    assert request.preferences.travelers == 1


@pytest.mark.parametrize("payload", [
    {"userId": "", "preferences": {"budget": 1_000_000, "days": 2}},
    {"userId": "u", "preferences": {"budget": 0, "days": 2}},
    {"userId": "u", "preferences": {"budget": 1_000_000, "days": 0}},
    {"userId": "u", "preferences": {"budget": 1_000_000, "days": 2, "accommodationType": "palace"}},
    {"userId": "u", "preferences": {"budget": 1_000_000, "days": 2}, "guaranteeTarget": 1.5},
    {"userId": "u", "preferences": {"budget": 1_000_000, "days": 2}, "maxBudgetIncrease": -0.1},
    {"userId": "u", "preferences": {"budget": 1_000_000, "days": 2}, "existingItinerary": {"days": []}},
])
def test_bad_requests_are_rejected(payload):
    with pytest.raises(ValidationError):
        BaaPRequest.model_validate(payload)


def test_default_split_when_no_breakdown():
    breakdown = TripPreferences(budget=1_000_000, days=2).budget_breakdown()

    assert breakdown.amount(BudgetCategory.ACCOMMODATION) == pytest.approx(350_000)
    assert breakdown.amount(BudgetCategory.MISCELLANEOUS) == pytest.approx(50_000)


def test_explicit_breakdown():
    prefs = TripPreferences.model_validate({
        "budget": 1_000_000,
        "days": 2,
        "categoryBreakdown": {"accommodation": 500_000, "food": 300_000, "activities": 100_000},
    })

    breakdown = prefs.budget_breakdown()

    assert breakdown.amount(BudgetCategory.ACCOMMODATION) == 500_000
    assert breakdown.amount(BudgetCategory.TRANSPORTATION) == 0


def test_over_allocated_breakdown_is_refused():
    prefs = TripPreferences(budget=1_000_000, days=2, category_breakdown={"accommodation": 1_200_000})

    with pytest.raises(ValueError):
        prefs.budget_breakdown()


def test_itinerary_to_domain():
    itinerary = ItineraryIn.model_validate(ITINERARY).to_domain()

    assert itinerary.itinerary_id == "itn-client"
    assert itinerary.declared_total_cost == 420_000
    day = itinerary.days[0]
    assert day.total_cost == 420_000                 # derived from parts
    assert day.total_time == 90
    assert day.destinations[0].coordinates == (-7.8053, 110.3642)
    assert day.transportation.eco_friendly is False


def test_explicit_day_totals_are_kept():
    payload = {**ITINERARY, "days": [{**ITINERARY["days"][0], "totalCost": 999_000}]}

    day = ItineraryIn.model_validate(payload).to_domain().days[0]

    assert day.total_cost == 999_000


def test_generator_input_copies_preferences():
    prefs = TripPreferences(budget=2_000_000, days=2, cities=["Bali"], interests=["nature"], travelers=2)

    request = prefs.to_generator_input()

    assert request.cities == ["Bali"]
    assert request.travelers == 2
    assert request.max_daily_activities == 4


def test_real_time_factors_to_domain():
    factors = RealTimeFactorsIn.model_validate({
        "weatherConditions": [{"date": "2025-03-10", "rainProbability": 0.8, "temperature": 26}],
    }).to_domain()

    assert factors.weather[0].rain_probability == 0.8
    assert factors.local_events == []
