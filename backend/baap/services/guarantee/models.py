"""Domain value objects shared by every pipeline stage.

Built once per run and never mutated: stages derive new objects with
`dataclasses.replace` instead of editing the ones they were handed.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from baap.services.guarantee.config import BudgetSplit


class BudgetCategory(str, Enum):
    ACCOMMODATION = "accommodation"
    TRANSPORTATION = "transportation"
    FOOD = "food"
    ACTIVITIES = "activities"
    MISCELLANEOUS = "miscellaneous"


# Allocations may leave a remainder but may not overshoot the total by more than this share
ALLOCATION_TOLERANCE = 0.01


def parse_date(value: date | str | None) -> date | None:
    """Accept a date, an ISO date/datetime string, or None."""
    if value is None or isinstance(value, date):
        return value
    if not value:
        return None
    return date.fromisoformat(value[:10])


def _check_score(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be within [0, 1], got {value}")


# ---------- Budget ----------


@dataclass(frozen=True)
class BudgetBreakdown:
    """Total budget plus the five category allocations."""
    total_budget: float
    allocations: dict[BudgetCategory, float]
    buffer_amount: float = 0.0

    def __post_init__(self):
        if self.total_budget <= 0:
            raise ValueError(f"total_budget must be positive, got {self.total_budget}")
        given = {BudgetCategory(key): float(value) for key, value in self.allocations.items()}
        normalized = {category: given.get(category, 0.0) for category in BudgetCategory}
        negative = [c.value for c, amount in normalized.items() if amount < 0]
        if negative:
            raise ValueError(f"Negative allocation for: {', '.join(negative)}")
        allocated = sum(normalized.values())
        if allocated > self.total_budget * (1 + ALLOCATION_TOLERANCE):
            raise ValueError(
                f"Category allocations ({allocated:,.0f}) exceed total budget ({self.total_budget:,.0f})"
            )
        object.__setattr__(self, "allocations", normalized)

    @classmethod
    def from_split(cls, total_budget: float, split: BudgetSplit | None = None) -> "BudgetBreakdown":
        split = split or BudgetSplit()
        return cls(
            total_budget=total_budget,
            allocations={category: total_budget * getattr(split, category.value) for category in BudgetCategory},
        )

    @property
    def allocated_total(self) -> float:
        return sum(self.allocations.values())

    def amount(self, category: BudgetCategory) -> float:
        return self.allocations[category]

    def share(self, category: BudgetCategory) -> float:
        return self.allocations[category] / self.total_budget

    def to_dict(self) -> dict:
        return {
            "total_budget": round(self.total_budget, 2),
            "category_breakdown": {c.value: round(amount, 2) for c, amount in self.allocations.items()},
            "buffer_amount": round(self.buffer_amount, 2),
        }


# ---------- Itinerary ----------


@dataclass(frozen=True)
class Destination:
    id: str
    name: str
    category: str
    location: str = ""
    city: str | None = None
    coordinates: tuple[float, float] | None = None  # (lat, lng)
    scheduled_time: str = "09:00"                   # HH:MM
    duration: int = 60                              # minutes
    estimated_cost: float = 0.0
    rating: float = 0.0
    tags: list[str] = field(default_factory=list)

    def __post_init__(self):
        if self.duration <= 0:
            raise ValueError(f"Destination {self.id} duration must be positive, got {self.duration}")
        if self.estimated_cost < 0:
            raise ValueError(f"Destination {self.id} cost cannot be negative, got {self.estimated_cost}")

    def has_any_tag(self, tags: frozenset[str]) -> bool:
        return any(tag.lower() in tags for tag in self.tags)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "location": self.location,
            "city": self.city,
            "coordinates": {"lat": self.coordinates[0], "lng": self.coordinates[1]} if self.coordinates else None,
            "scheduled_time": self.scheduled_time,
            "duration": self.duration,
            "estimated_cost": round(self.estimated_cost, 2),
            "rating": self.rating,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class Accommodation:
    name: str
    type: str            # luxury | moderate | budget
    cost: float
    location: str = ""
    rating: float = 0.0
    amenities: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "cost": round(self.cost, 2),
            "location": self.location,
            "rating": self.rating,
            "amenities": list(self.amenities),
        }


@dataclass(frozen=True)
class Transportation:
    type: str            # taxi | public_transport | rental_car | private_car | flight | train | walking
    cost: float
    route: str = ""
    duration: int = 0    # minutes
    eco_friendly: bool = False

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "cost": round(self.cost, 2),
            "route": self.route,
            "duration": self.duration,
            "eco_friendly": self.eco_friendly,
        }


@dataclass(frozen=True)
class Day:
    day: int             # 1-based
    date: str            # ISO date
    destinations: list[Destination] = field(default_factory=list)
    accommodation: Accommodation | None = None
    transportation: Transportation | None = None
    total_cost: float = 0.0
    total_time: int = 0  # minutes
    theme: str | None = None

    @classmethod
    def build(
        cls,
        day: int,
        date: str,
        destinations: list[Destination],
        accommodation: Accommodation | None = None,
        transportation: Transportation | None = None,
        theme: str | None = None,
    ) -> "Day":
        """Create a day with totals derived from its parts."""
        cost = sum(d.estimated_cost for d in destinations)
        cost += accommodation.cost if accommodation else 0.0
        cost += transportation.cost if transportation else 0.0
        return cls(
            day=day,
            date=date,
            destinations=list(destinations),
            accommodation=accommodation,
            transportation=transportation,
            total_cost=cost,
            total_time=sum(d.duration for d in destinations) + (transportation.duration if transportation else 0),
            theme=theme,
        )

    @property
    def activity_cost(self) -> float:
        return sum(d.estimated_cost for d in self.destinations)

    @property
    def computed_cost(self) -> float:
        """Destinations + accommodation + transportation."""
        cost = self.activity_cost
        if self.accommodation:
            cost += self.accommodation.cost
        if self.transportation:
            cost += self.transportation.cost
        return cost

    def to_dict(self) -> dict:
        return {
            "day": self.day,
            "date": self.date,
            "theme": self.theme,
            "destinations": [d.to_dict() for d in self.destinations],
            "accommodation": self.accommodation.to_dict() if self.accommodation else None,
            "transportation": self.transportation.to_dict() if self.transportation else None,
            "total_cost": round(self.total_cost, 2),
            "total_time": self.total_time,
        }


@dataclass(frozen=True)
class Itinerary:
    itinerary_id: str
    days: list[Day]
    declared_total_cost: float | None = None  # summary total as reported by the producer

    def __post_init__(self):
        if not self.days:
            raise ValueError("Itinerary must contain at least one day")
        numbers = [d.day for d in self.days]
        if numbers != list(range(1, len(numbers) + 1)):
            raise ValueError(f"Day numbers must be 1-based and contiguous, got {numbers}")

    @property
    def total_days(self) -> int:
        return len(self.days)

    @property
    def total_cost(self) -> float:
        return sum(d.total_cost for d in self.days)

    @property
    def total_duration(self) -> int:
        return sum(d.total_time for d in self.days)

    @property
    def destinations(self) -> list[Destination]:
        return [dest for day in self.days for dest in day.destinations]

    @property
    def destination_count(self) -> int:
        return sum(len(d.destinations) for d in self.days)

    @property
    def cities(self) -> list[str]:
        seen: list[str] = []
        for dest in self.destinations:
            if dest.city and dest.city not in seen:
                seen.append(dest.city)
        return seen

    @property
    def start_date(self) -> date | None:
        return parse_date(self.days[0].date)

    def to_dict(self) -> dict:
        return {
            "itinerary_id": self.itinerary_id,
            "summary": {
                "total_days": self.total_days,
                "total_cost": round(self.total_cost, 2),
                "total_duration": self.total_duration,
            },
            "days": [d.to_dict() for d in self.days],
        }


@dataclass(frozen=True)
class TripDetails:
    """The itinerary summary the adherence predictor scores."""
    days: int
    destinations: int
    cities: list[str] = field(default_factory=list)
    start_date: date | None = None

    def __post_init__(self):
        if self.days < 1:
            raise ValueError(f"days must be at least 1, got {self.days}")
        object.__setattr__(self, "start_date", parse_date(self.start_date))

    @classmethod
    def from_itinerary(cls, itinerary: Itinerary, cities: list[str] | None = None) -> "TripDetails":
        return cls(
            days=itinerary.total_days,
            destinations=itinerary.destination_count,
            cities=list(cities) if cities else itinerary.cities,
            start_date=itinerary.start_date,
        )

    @property
    def start_month(self) -> int | None:
        return self.start_date.month if self.start_date else None


# ---------- Traveler ----------


@dataclass(frozen=True)
class PriceRange:
    """Preferred spend per day."""
    min: float
    max: float


@dataclass(frozen=True)
class HistoricalTrip:
    budget: float
    actual_spent: float
    adherence: float     # 0-1
    trip_type: str = "leisure"


@dataclass(frozen=True)
class UserProfile:
    user_id: str
    name: str | None = None
    price_sensitivity: float = 0.5
    activity_preference: float = 0.5
    risk_tolerance: float = 0.5
    spontaneity_score: float = 0.5
    social_preference: float = 0.5
    preferred_price_range: PriceRange | None = None
    historical_trips: list[HistoricalTrip] = field(default_factory=list)

    def __post_init__(self):
        for name in ("price_sensitivity", "activity_preference", "risk_tolerance", "spontaneity_score", "social_preference"):
            _check_score(name, getattr(self, name))


# ---------- Real-time signals ----------


@dataclass(frozen=True)
class WeatherDay:
    date: str
    rain_probability: float
    temperature: float   # Celsius


@dataclass(frozen=True)
class RealTimeFactors:
    weather: list[WeatherDay] = field(default_factory=list)
    local_events: list[dict] = field(default_factory=list)
    currency_fluctuations: dict | None = None
    demand_indicators: dict | None = None
