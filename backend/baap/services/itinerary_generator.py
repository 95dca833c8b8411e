"""Itinerary generation from a destination catalog.

Used by the orchestrator when a request arrives without an existing
itinerary. Any object with an async `generate_itinerary(GeneratorInput)`
returning a GeneratorResult can take its place.
"""

import logging
import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Protocol

from baap.data.catalog import (
    DAY_START_MINUTES,
    DEFAULT_CATALOG,
    LOCAL_TRANSPORT,
    NIGHTLY_RATES,
    TRAVELERS_PER_ROOM,
    VISIT_BUFFER_MINUTES,
)
from baap.services.guarantee.models import (
    Accommodation,
    Day,
    Destination,
    Itinerary,
    Transportation,
)

logger = logging.getLogger(__name__)


@dataclass
class GeneratorInput:
    budget: float
    days: int
    travelers: int = 1
    accommodation_type: str = "moderate"
    cities: list[str] = field(default_factory=list)
    interests: list[str] = field(default_factory=list)
    themes: list[str] = field(default_factory=list)
    start_date: date | None = None
    max_daily_activities: int = 4


@dataclass
class GeneratorResult:
    success: bool
    itinerary: Itinerary | None = None
    errors: list[str] = field(default_factory=list)


class ItineraryGenerator(Protocol):
    async def generate_itinerary(self, request: GeneratorInput) -> GeneratorResult: ...


def _format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class CatalogItineraryGenerator:
    """Picks, ranks and schedules catalog destinations into day plans."""

    def __init__(self, catalog: list[Destination] | None = None):
        self.catalog = list(catalog) if catalog is not None else list(DEFAULT_CATALOG)

    async def generate_itinerary(self, request: GeneratorInput) -> GeneratorResult:
        logger.info(
            f"Generating {request.days}-day itinerary for {request.travelers} traveler(s), "
            f"cities={request.cities or 'any'}"
        )
        if request.days < 1:
            return GeneratorResult(success=False, errors=["Trip must last at least one day"])

        candidates = self._candidates(request.cities)
        if not candidates:
            wanted = ", ".join(request.cities) or "any city"
            return GeneratorResult(success=False, errors=[f"No destinations available for {wanted}"])

        ranked = self._rank(candidates, request.interests + request.themes)
        per_day = min(request.max_daily_activities, math.ceil(len(ranked) / request.days))
        chosen = self._group_by_city(ranked[: per_day * request.days])

        start = request.start_date or date.today()
        tier = request.accommodation_type if request.accommodation_type in NIGHTLY_RATES else "moderate"

        days: list[Day] = []
        for i in range(request.days):
            picks = chosen[i * per_day:(i + 1) * per_day]
            days.append(Day.build(
                day=i + 1,
                date=(start + timedelta(days=i)).isoformat(),
                destinations=self._schedule(picks, request.travelers),
                accommodation=self._accommodation(picks, tier, request) if i < request.days - 1 else None,
                transportation=self._transportation(picks, tier, request.travelers),
                theme=picks[0].category if picks else None,
            ))

        itinerary = Itinerary(itinerary_id=f"itn-{uuid.uuid4().hex[:12]}", days=days)
        logger.info(
            f"Generated itinerary {itinerary.itinerary_id}: {itinerary.destination_count} destinations, "
            f"cost {itinerary.total_cost:,.0f} vs budget {request.budget:,.0f}"
        )
        return GeneratorResult(success=True, itinerary=itinerary)

    def _candidates(self, cities: list[str]) -> list[Destination]:
        if not cities:
            return list(self.catalog)
        wanted = {c.lower() for c in cities}
        return [d for d in self.catalog if d.city and d.city.lower() in wanted]

    @staticmethod
    def _rank(candidates: list[Destination], keywords: list[str]) -> list[Destination]:
        wanted = {k.lower() for k in keywords}

        def score(dest: Destination) -> tuple[int, float]:
            overlap = sum(1 for tag in dest.tags if tag.lower() in wanted)
            return overlap, dest.rating

        return sorted(candidates, key=score, reverse=True)

    @staticmethod
    def _group_by_city(destinations: list[Destination]) -> list[Destination]:
        """Stable regroup so consecutive stops share a city, cities in rank order."""
        order: list[str | None] = []
        for d in destinations:
            if d.city not in order:
                order.append(d.city)
        return sorted(destinations, key=lambda d: order.index(d.city))

    @staticmethod
    def _schedule(picks: list[Destination], travelers: int) -> list[Destination]:
        clock = DAY_START_MINUTES
        scheduled = []
        for dest in picks:
            scheduled.append(replace(
                dest,
                scheduled_time=_format_minutes(clock),
                estimated_cost=dest.estimated_cost * travelers,
            ))
            clock += dest.duration + VISIT_BUFFER_MINUTES
        return scheduled

    @staticmethod
    def _accommodation(picks: list[Destination], tier: str, request: GeneratorInput) -> Accommodation:
        city = picks[-1].city if picks and picks[-1].city else (request.cities[0] if request.cities else "")
        rooms = math.ceil(request.travelers / TRAVELERS_PER_ROOM)
        return Accommodation(
            name=f"{tier.capitalize()} stay {city}".strip(),
            type=tier,
            cost=NIGHTLY_RATES[tier] * rooms,
            location=city,
        )

    @staticmethod
    def _transportation(picks: list[Destination], tier: str, travelers: int) -> Transportation | None:
        if not picks:
            return None
        mode, daily_cost, per_traveler = LOCAL_TRANSPORT[tier]
        return Transportation(
            type=mode,
            cost=daily_cost * travelers if per_traveler else daily_cost,
            route=" -> ".join(d.name for d in picks),
            duration=20 * max(0, len(picks) - 1),
            eco_friendly=mode == "public_transport",
        )
