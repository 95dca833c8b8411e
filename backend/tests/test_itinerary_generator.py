import asyncio
from datetime import date

from conftest import make_destination
from baap.services.itinerary_generator import CatalogItineraryGenerator, GeneratorInput


def generate(generator=None, **kwargs):
    request = GeneratorInput(**{"budget": 5_000_000, "days": 3, "start_date": date(2025, 3, 10), **kwargs})
    return asyncio.run((generator or CatalogItineraryGenerator()).generate_itinerary(request))


def test_generates_a_consistent_plan_for_one_city():
    result = generate(cities=["Yogyakarta"])

    assert result.success
    itinerary = result.itinerary
    assert [d.day for d in itinerary.days] == [1, 2, 3]
    assert [d.date for d in itinerary.days] == ["2025-03-10", "2025-03-11", "2025-03-12"]
    assert {dest.city for dest in itinerary.destinations} == {"Yogyakarta"}
    assert itinerary.destination_count == 5
    for day in itinerary.days:
        assert day.total_cost == day.computed_cost
    assert itinerary.itinerary_id.startswith("itn-")


def test_days_start_at_eight_with_buffers():
    day = generate(cities=["Yogyakarta"]).itinerary.days[0]

    first, second = day.destinations
    assert first.scheduled_time == "08:00"
    start = 8 * 60 + first.duration + 30
    assert second.scheduled_time == f"{start // 60:02d}:{start % 60:02d}"


def test_accommodation_every_night_but_the_last():
    days = generate(cities=["Bali"]).itinerary.days

    assert [d.accommodation is not None for d in days] == [True, True, False]
    assert days[0].accommodation.cost == 650_000
    assert days[0].transportation.type == "taxi"


def test_interests_rank_matching_destinations_first():
    day = generate(cities=["Yogyakarta"], interests=["adventure"]).itinerary.days[0]

    assert day.destinations[0].id == "yog-merapi"


def test_prices_scale_with_travelers():
    solo = generate(cities=["Yogyakarta"], interests=["adventure"]).itinerary.days[0]
    group = generate(cities=["Yogyakarta"], interests=["adventure"], travelers=3).itinerary.days[0]

    assert group.destinations[0].estimated_cost == solo.destinations[0].estimated_cost * 3
    assert group.accommodation.cost == solo.accommodation.cost * 2      # two rooms


def test_budget_tier_uses_public_transport_per_traveler():
    day = generate(cities=["Jakarta"], accommodation_type="budget", travelers=2).itinerary.days[0]

    assert day.transportation.type == "public_transport"
    assert day.transportation.cost == 80_000
    assert day.transportation.eco_friendly


def test_daily_activity_cap():
    itinerary = generate(days=1, max_daily_activities=2).itinerary

    assert len(itinerary.days[0].destinations) == 2


def test_unknown_city_fails():
    result = generate(cities=["Atlantis"])

    assert not result.success
    assert result.itinerary is None
    assert result.errors == ["No destinations available for Atlantis"]


def test_custom_catalog():
    generator = CatalogItineraryGenerator([make_destination("only", city="Solo")])

    result = generate(generator, days=2, cities=["solo"])

    assert result.success
    assert result.itinerary.destination_count == 1
    assert result.itinerary.days[1].destinations == []
    assert result.itinerary.days[1].transportation is None
