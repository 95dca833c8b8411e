"""Itinerary validation engine.

Rules run in registration order under a single timeout. Error-severity rules
contribute errors; warning-severity rules only ever contribute warnings.

Rules:
    itinerary_structure     totals present and non-negative
    day_structure           day numbering, dates, empty days
    destination_integrity   ids, names, coordinates, times, durations
    cost_consistency        day totals vs parts (1k), trip total vs days (5k)
    budget_compliance       itinerary cost vs requested budget
    time_logic              overlapping visits, long idle gaps
    geographic_logic        long hops between stops, long daily distance
"""

import asyncio
import inspect
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date

from baap.config import settings
from baap.services.guarantee.models import Itinerary

logger = logging.getLogger(__name__)

DAY_COST_TOLERANCE = 1_000
TOTAL_COST_TOLERANCE = 5_000
MAX_GAP_MINUTES = 240
MAX_HOP_KM = 50
MAX_DAILY_KM = 200
EARTH_RADIUS_KM = 6371


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    score: float = 1.0           # 0-1 confidence in the itinerary

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "score": round(self.score, 4),
        }


@dataclass
class ValidationContext:
    budget: float | None = None


RuleFn = Callable[[Itinerary, ValidationContext], ValidationResult | Awaitable[ValidationResult]]


@dataclass
class ValidationRule:
    name: str
    description: str
    validator: RuleFn
    severity: str = "error"      # error | warning
    category: str = "data"       # data | cost | logic | consistency


@dataclass
class ValidationConfig:
    enable_cost_validation: bool = True
    enable_logic_validation: bool = True
    max_errors: int = field(default_factory=lambda: settings.validation_max_errors)
    timeout_ms: int = field(default_factory=lambda: settings.validation_timeout_ms)


def _outcome(errors: list[str], warnings: list[str], score: float) -> ValidationResult:
    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings, score=max(0.0, score))


def parse_time(value: str) -> int | None:
    """'HH:MM' -> minutes after midnight, None when unparseable."""
    try:
        hours, minutes = (int(part) for part in value.split(":"))
    except (AttributeError, ValueError):
        return None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        return None
    return hours * 60 + minutes


def format_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def haversine_km(a: tuple[float, float], b: tuple[float, float]) -> float:
    lat1, lng1 = map(math.radians, a)
    lat2, lng2 = map(math.radians, b)
    h = math.sin((lat2 - lat1) / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin((lng2 - lng1) / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


# ---------- Rules ----------


def check_itinerary_structure(itinerary: Itinerary, ctx: ValidationContext) -> ValidationResult:
    errors = []
    if not itinerary.days:
        errors.append("Itinerary days are missing")
    if itinerary.total_cost < 0:
        errors.append("Total cost is negative")
    if itinerary.total_duration <= 0:
        errors.append("Total duration is missing or negative")
    return _outcome(errors, [], 1.0 if not errors else 0.0)


def check_day_structure(itinerary: Itinerary, ctx: ValidationContext) -> ValidationResult:
    errors, warnings = [], []
    for index, day in enumerate(itinerary.days, start=1):
        if day.day != index:
            errors.append(f"Day {index} has invalid day number")
        if not day.date:
            errors.append(f"Day {index} is missing date")
        else:
            try:
                date.fromisoformat(day.date[:10])
            except ValueError:
                errors.append(f"Day {index} has invalid date {day.date!r}")
        if not day.destinations:
            warnings.append(f"Day {index} has no destinations")
        if day.total_cost < 0:
            errors.append(f"Day {index} has negative total cost")
    return _outcome(errors, warnings, 1 - len(errors) * 0.2 - len(warnings) * 0.1)


def check_destination_integrity(itinerary: Itinerary, ctx: ValidationContext) -> ValidationResult:
    errors, warnings = [], []
    for day in itinerary.days:
        for position, dest in enumerate(day.destinations, start=1):
            label = dest.name or dest.id or str(position)
            if not dest.id:
                errors.append(f"Destination {position} in day {day.day} is missing ID")
            if not dest.name:
                errors.append(f"Destination {dest.id or position} in day {day.day} is missing name")
            if not dest.coordinates:
                warnings.append(f"Destination {label} in day {day.day} has incomplete coordinates")
            if parse_time(dest.scheduled_time) is None:
                errors.append(f"Destination {label} in day {day.day} is missing scheduled time")
            if dest.duration <= 0:
                errors.append(f"Destination {label} in day {day.day} has invalid duration")
    return _outcome(errors, warnings, 1 - len(errors) * 0.15 - len(warnings) * 0.05)


def check_cost_consistency(itinerary: Itinerary, ctx: ValidationContext) -> ValidationResult:
    errors = []
    for day in itinerary.days:
        expected = day.computed_cost
        if abs(day.total_cost - expected) > DAY_COST_TOLERANCE:
            errors.append(f"Day {day.day} cost mismatch: expected {expected:,.0f}, got {day.total_cost:,.0f}")

    if itinerary.declared_total_cost is not None:
        calculated = itinerary.total_cost
        if abs(itinerary.declared_total_cost - calculated) > TOTAL_COST_TOLERANCE:
            errors.append(
                f"Total cost mismatch: expected {calculated:,.0f}, got {itinerary.declared_total_cost:,.0f}"
            )
    return _outcome(errors, [], 1.0 if not errors else 0.5)


def check_budget_compliance(itinerary: Itinerary, ctx: ValidationContext) -> ValidationResult:
    if not ctx.budget:
        return _outcome([], [], 1.0)

    variance = (itinerary.total_cost - ctx.budget) / ctx.budget * 100
    errors, warnings = [], []
    if variance > 20:
        errors.append(f"Itinerary cost exceeds budget by {variance:.1f}%")
    elif variance > 10:
        warnings.append(f"Itinerary cost exceeds budget by {variance:.1f}%")
    elif variance < -20:
        warnings.append(f"Itinerary is significantly under budget ({abs(variance):.1f}% savings)")
    return _outcome(errors, warnings, 1 - abs(variance) / 100)


def check_time_logic(itinerary: Itinerary, ctx: ValidationContext) -> ValidationResult:
    errors, warnings = [], []
    for day in itinerary.days:
        timed = sorted(
            ((parse_time(d.scheduled_time), d) for d in day.destinations if parse_time(d.scheduled_time) is not None),
            key=lambda pair: pair[0],
        )
        for (start, current), (next_start, following) in zip(timed, timed[1:]):
            end = start + current.duration
            if end > next_start:
                errors.append(
                    f"Time overlap in day {day.day}: {current.name} ends at {format_time(end)} "
                    f"but {following.name} starts at {following.scheduled_time}"
                )
            gap = next_start - end
            if gap > MAX_GAP_MINUTES:
                warnings.append(
                    f"Large time gap ({round(gap / 60)}h) in day {day.day} between {current.name} and {following.name}"
                )
    return _outcome(errors, warnings, 1 - len(errors) * 0.2 - len(warnings) * 0.1)


def check_geographic_logic(itinerary: Itinerary, ctx: ValidationContext) -> ValidationResult:
    warnings = []
    for day in itinerary.days:
        total = 0.0
        for current, following in zip(day.destinations, day.destinations[1:]):
            if not (current.coordinates and following.coordinates):
                continue
            distance = haversine_km(current.coordinates, following.coordinates)
            total += distance
            if distance > MAX_HOP_KM:
                warnings.append(
                    f"Long distance ({distance:.1f}km) between {current.name} and {following.name} in day {day.day}"
                )
        if total > MAX_DAILY_KM:
            warnings.append(f"High daily travel distance ({total:.1f}km) in day {day.day}")
    return ValidationResult(is_valid=True, warnings=warnings, score=max(0.5, 1 - len(warnings) * 0.1))


# ---------- Engine ----------


class ValidationEngine:
    def __init__(self, config: ValidationConfig | None = None):
        self.config = config or ValidationConfig()
        self.rules: list[ValidationRule] = []
        self._register_default_rules()

    def _register_default_rules(self) -> None:
        self.add_rule(ValidationRule("itinerary_structure", "Validates basic itinerary structure",
                                     check_itinerary_structure, "error", "data"))
        self.add_rule(ValidationRule("day_structure", "Validates individual day structures",
                                     check_day_structure, "error", "data"))
        self.add_rule(ValidationRule("destination_integrity", "Validates destination data integrity",
                                     check_destination_integrity, "error", "data"))
        if self.config.enable_cost_validation:
            self.add_rule(ValidationRule("cost_consistency", "Validates cost calculations consistency",
                                         check_cost_consistency, "error", "cost"))
            self.add_rule(ValidationRule("budget_compliance", "Validates budget compliance",
                                         check_budget_compliance, "warning", "cost"))
        if self.config.enable_logic_validation:
            self.add_rule(ValidationRule("time_logic", "Validates time scheduling logic",
                                         check_time_logic, "error", "logic"))
            self.add_rule(ValidationRule("geographic_logic", "Validates geographic routing logic",
                                         check_geographic_logic, "warning", "logic"))

    def add_rule(self, rule: ValidationRule) -> None:
        self.rules.append(rule)

    def available_rules(self) -> list[ValidationRule]:
        return list(self.rules)

    async def validate_itinerary(self, itinerary: Itinerary, budget: float | None = None) -> ValidationResult:
        """Run every rule; a timeout or engine failure yields an invalid result."""
        logger.info(f"Validating itinerary {itinerary.itinerary_id} ({len(self.rules)} rules)")
        try:
            return await asyncio.wait_for(
                self._run_rules(itinerary, ValidationContext(budget=budget)),
                timeout=self.config.timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Validation of {itinerary.itinerary_id} timed out after {self.config.timeout_ms}ms")
            return ValidationResult(is_valid=False, errors=["Validation engine error: Validation timeout"], score=0.0)

    async def _run_rules(self, itinerary: Itinerary, ctx: ValidationContext) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []
        scores: list[float] = []

        for rule in self.rules:
            if len(errors) >= self.config.max_errors:
                errors.append(f"Maximum error limit ({self.config.max_errors}) reached")
                break
            try:
                result = rule.validator(itinerary, ctx)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                logger.warning(f"Validation rule {rule.name} failed: {e}")
                errors.append(f"Validation rule '{rule.name}' failed: {e}")
                continue

            if rule.severity == "error":
                errors.extend(result.errors)
            else:
                warnings.extend(result.errors)
            warnings.extend(result.warnings)
            scores.append(result.score)
            # Yield between rules so the timeout can interrupt a long run
            await asyncio.sleep(0)

        score = sum(scores) / len(scores) if scores else 0.0
        logger.debug(f"Validation: {len(errors)} errors, {len(warnings)} warnings, score {score:.2f}")
        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings, score=score)

    def validate_data(self, itinerary: Itinerary, rule_names: list[str] | None = None) -> ValidationResult:
        """Synchronously run a subset of rules by name (all when None). Async rules are skipped."""
        selected = [r for r in self.rules if rule_names is None or r.name in rule_names]
        ctx = ValidationContext()
        errors: list[str] = []
        warnings: list[str] = []
        scores: list[float] = []
        for rule in selected:
            if inspect.iscoroutinefunction(rule.validator):
                continue
            result = rule.validator(itinerary, ctx)
            errors.extend(result.errors)
            warnings.extend(result.warnings)
            scores.append(result.score)
        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            score=sum(scores) / len(scores) if scores else 0.0,
        )
