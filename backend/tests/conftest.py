from datetime import datetime, timezone

import pytest

from baap.services.guarantee.models import (
    Accommodation,
    BudgetBreakdown,
    BudgetCategory,
    Day,
    Destination,
    HistoricalTrip,
    Itinerary,
    PriceRange,
    Transportation,
    TripDetails,
    UserProfile,
)

FIXED_NOW = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_destination(
    id: str,
    cost: float = 50_000,
    time: str = "09:00",
    duration: int = 60,
    city: str = "Yogyakarta",
    tags: list[str] | None = None,
    coordinates: tuple[float, float] | None = (-7.80, 110.36),
) -> Destination:
    return Destination(
        id=id,
        name=f"Place {id}",
        category="attraction",
        city=city,
        coordinates=coordinates,
        scheduled_time=time,
        duration=duration,
        estimated_cost=cost,
        tags=tags or [],
    )


def make_itinerary(
    days: int = 3,
    per_day: int = 2,
    start: str = "2025-03-10",
    dest_cost: float = 50_000,
    stay: tuple[str, float] | None = ("moderate", 300_000),
    transport: tuple[str, float] | None = ("taxi", 100_000),
    city: str = "Yogyakarta",
    tags: list[str] | None = None,
) -> Itinerary:
    """Days of `per_day` stops two hours apart, every day with the same stay and transport."""
    year, month, day0 = (int(p) for p in start.split("-"))
    result = []
    for d in range(days):
        destinations = [
            make_destination(
                f"{d + 1}-{i + 1}",
                cost=dest_cost,
                time=f"{9 + i * 2:02d}:00",
                city=city,
                tags=tags,
            )
            for i in range(per_day)
        ]
        result.append(Day.build(
            day=d + 1,
            date=f"{year:04d}-{month:02d}-{day0 + d:02d}",
            destinations=destinations,
            accommodation=Accommodation(name="Hotel", type=stay[0], cost=stay[1]) if stay else None,
            transportation=Transportation(type=transport[0], cost=transport[1]) if transport else None,
        ))
    return Itinerary(itinerary_id="itn-test", days=result)


def make_budget(total: float = 5_000_000) -> BudgetBreakdown:
    return BudgetBreakdown.from_split(total)


@pytest.fixture
def budget() -> BudgetBreakdown:
    return make_budget()


@pytest.fixture
def itinerary() -> Itinerary:
    return make_itinerary()


@pytest.fixture
def trip(itinerary) -> TripDetails:
    return TripDetails.from_itinerary(itinerary)


@pytest.fixture
def careful_profile() -> UserProfile:
    return UserProfile(
        user_id="user-careful",
        name="Careful Traveler",
        price_sensitivity=0.2,
        activity_preference=0.5,
        risk_tolerance=0.8,
        spontaneity_score=0.1,
        preferred_price_range=PriceRange(min=1_000_000, max=2_000_000),
        historical_trips=[
            HistoricalTrip(budget=4_000_000, actual_spent=3_800_000, adherence=0.95),
            HistoricalTrip(budget=6_000_000, actual_spent=5_900_000, adherence=0.9),
        ],
    )


@pytest.fixture
def impulsive_profile() -> UserProfile:
    return UserProfile(
        user_id="user-impulsive",
        price_sensitivity=0.9,
        risk_tolerance=0.1,
        spontaneity_score=0.9,
        historical_trips=[HistoricalTrip(budget=3_000_000, actual_spent=4_200_000, adherence=0.4)],
    )


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


def allocations_sum(budget: BudgetBreakdown) -> float:
    return sum(budget.amount(c) for c in BudgetCategory)
