from dataclasses import replace
from datetime import date
from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from baap.config import settings
from baap.services.guarantee.config import BudgetSplit
from baap.services.guarantee.models import (
    Accommodation,
    BudgetBreakdown,
    BudgetCategory,
    Day,
    Destination,
    Itinerary,
    RealTimeFactors,
    Transportation,
    WeatherDay,
)
from baap.services.itinerary_generator import GeneratorInput

# Accept camelCase from JS clients as well as snake_case
CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


class CategoryBreakdownIn(BaseModel):
    accommodation: float = Field(default=0, ge=0)
    transportation: float = Field(default=0, ge=0)
    food: float = Field(default=0, ge=0)
    activities: float = Field(default=0, ge=0)
    miscellaneous: float = Field(default=0, ge=0)

    model_config = CAMEL


class TripConstraints(BaseModel):
    allow_destination_changes: bool = True
    allow_transportation_changes: bool = True
    allow_accommodation_changes: bool = True

    model_config = CAMEL


class TripPreferences(BaseModel):
    budget: float = Field(gt=0)
    days: int = Field(ge=1)
    travelers: int = Field(default=1, ge=1)
    accommodation_type: Literal["budget", "moderate", "luxury"] = "moderate"
    cities: list[str] = []
    interests: list[str] = []
    themes: list[str] = []
    start_date: date | None = None
    constraints: TripConstraints | None = None
    category_breakdown: CategoryBreakdownIn | None = None
    max_daily_activities: int = Field(default=4, ge=1)

    model_config = CAMEL

    def budget_breakdown(self, split: BudgetSplit | None = None) -> BudgetBreakdown:
        """Explicit breakdown when given, else the default split of the total."""
        if self.category_breakdown is None:
            return BudgetBreakdown.from_split(self.budget, split)
        return BudgetBreakdown(
            total_budget=self.budget,
            allocations={c: getattr(self.category_breakdown, c.value) for c in BudgetCategory},
        )

    def to_generator_input(self) -> GeneratorInput:
        return GeneratorInput(
            budget=self.budget,
            days=self.days,
            travelers=self.travelers,
            accommodation_type=self.accommodation_type,
            cities=list(self.cities),
            interests=list(self.interests),
            themes=list(self.themes),
            start_date=self.start_date,
            max_daily_activities=self.max_daily_activities,
        )


# ---------- Itinerary ----------


class CoordinatesIn(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class DestinationIn(BaseModel):
    id: str
    name: str
    category: str = "attraction"
    location: str = ""
    city: str | None = None
    coordinates: CoordinatesIn | None = None
    scheduled_time: str = "09:00"
    duration: int = Field(default=60, gt=0)
    estimated_cost: float = Field(default=0, ge=0)
    rating: float = 0
    tags: list[str] = []

    model_config = CAMEL

    def to_domain(self) -> Destination:
        return Destination(
            id=self.id,
            name=self.name,
            category=self.category,
            location=self.location,
            city=self.city,
            coordinates=(self.coordinates.lat, self.coordinates.lng) if self.coordinates else None,
            scheduled_time=self.scheduled_time,
            duration=self.duration,
            estimated_cost=self.estimated_cost,
            rating=self.rating,
            tags=list(self.tags),
        )


class AccommodationIn(BaseModel):
    name: str
    type: str = "moderate"
    cost: float = Field(ge=0)
    location: str = ""
    rating: float = 0
    amenities: list[str] = []

    model_config = CAMEL

    def to_domain(self) -> Accommodation:
        return Accommodation(**self.model_dump())


class TransportationIn(BaseModel):
    type: str
    cost: float = Field(ge=0)
    route: str = ""
    duration: int = Field(default=0, ge=0)
    eco_friendly: bool = False

    model_config = CAMEL

    def to_domain(self) -> Transportation:
        return Transportation(**self.model_dump())


class DayIn(BaseModel):
    day: int = Field(ge=1)
    date: str
    destinations: list[DestinationIn] = []
    accommodation: AccommodationIn | None = None
    transportation: TransportationIn | None = None
    total_cost: float | None = None     # derived when omitted
    total_time: int | None = None
    theme: str | None = None

    model_config = CAMEL

    def to_domain(self) -> Day:
        day = Day.build(
            day=self.day,
            date=self.date,
            destinations=[d.to_domain() for d in self.destinations],
            accommodation=self.accommodation.to_domain() if self.accommodation else None,
            transportation=self.transportation.to_domain() if self.transportation else None,
            theme=self.theme,
        )
        overrides = {}
        if self.total_cost is not None:
            overrides["total_cost"] = self.total_cost
        if self.total_time is not None:
            overrides["total_time"] = self.total_time
        return replace(day, **overrides) if overrides else day


class ItineraryIn(BaseModel):
    itinerary_id: str = "existing"
    days: list[DayIn] = Field(min_length=1)
    total_cost: float | None = None

    model_config = CAMEL

    def to_domain(self) -> Itinerary:
        return Itinerary(
            itinerary_id=self.itinerary_id,
            days=[d.to_domain() for d in self.days],
            declared_total_cost=self.total_cost,
        )


# ---------- Live conditions ----------


class WeatherDayIn(BaseModel):
    date: str
    rain_probability: float = Field(ge=0, le=1)
    temperature: float

    model_config = CAMEL


class RealTimeFactorsIn(BaseModel):
    weather_conditions: list[WeatherDayIn] = []
    local_events: list[dict] = []
    currency_fluctuations: dict | None = None
    demand_indicators: dict | None = None

    model_config = CAMEL

    def to_domain(self) -> RealTimeFactors:
        return RealTimeFactors(
            weather=[WeatherDay(w.date, w.rain_probability, w.temperature) for w in self.weather_conditions],
            local_events=list(self.local_events),
            currency_fluctuations=self.currency_fluctuations,
            demand_indicators=self.demand_indicators,
        )


# ---------- Request ----------


class BaaPRequest(BaseModel):
    user_id: str = Field(min_length=1)
    preferences: TripPreferences
    existing_itinerary: ItineraryIn | None = None
    guarantee_target: float = Field(default_factory=lambda: settings.default_guarantee_target, gt=0, le=1)
    max_budget_increase: float | None = Field(default=None, ge=0)
    real_time_factors: RealTimeFactorsIn | None = None

    model_config = CAMEL
