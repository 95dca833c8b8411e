"""Static market and itinerary lookup tables.

Used for:
- seasonal and city-cost adjustments (adherence prediction, demand-spike risk)
- mode / tier downgrades (plan optimization)
- tag-based activity classification (risk assessment)
"""

# Months (1-12) when prices run hottest: summer and year-end holidays
PEAK_MONTHS: frozenset[int] = frozenset({6, 7, 8, 12, 1})

# Moderate pricing either side of peak
SHOULDER_MONTHS: frozenset[int] = frozenset({4, 5, 9, 10, 11})

# Substring matched, case-insensitive, against destination city names
EXPENSIVE_CITIES: tuple[str, ...] = (
    "Tokyo",
    "Singapore",
    "Zurich",
    "London",
    "New York",
)

# Next-cheaper mode for a transportation leg
TRANSPORT_DOWNGRADES: dict[str, str] = {
    "taxi": "public_transport",
    "rental_car": "taxi",
    "private_car": "rental_car",
    "flight": "train",
}
DEFAULT_TRANSPORT_DOWNGRADE = "public_transport"

# Accommodation tiers, most expensive first
ACCOMMODATION_TIERS: tuple[str, ...] = ("luxury", "moderate", "budget")

# Destination tags that count as adventure activities
ADVENTURE_TAGS: frozenset[str] = frozenset({"adventure", "hiking", "water", "extreme"})

# Destination tags that count as street-food stops
STREET_FOOD_TAGS: frozenset[str] = frozenset({"street_food", "local_eats"})


def is_expensive_city(city: str) -> bool:
    """Check a city name against the expensive-city list."""
    lowered = city.lower()
    return any(expensive.lower() in lowered for expensive in EXPENSIVE_CITIES)


def cheaper_transport(mode: str) -> str:
    return TRANSPORT_DOWNGRADES.get(mode.lower(), DEFAULT_TRANSPORT_DOWNGRADE)


def cheaper_accommodation(tier: str) -> str:
    """One tier down (luxury -> moderate -> budget). Unknown tiers land on budget."""
    tier = tier.lower()
    if tier in ACCOMMODATION_TIERS:
        index = ACCOMMODATION_TIERS.index(tier)
        return ACCOMMODATION_TIERS[min(index + 1, len(ACCOMMODATION_TIERS) - 1)]
    return ACCOMMODATION_TIERS[-1]
