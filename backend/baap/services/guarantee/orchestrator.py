"""BaaP orchestrator: runs the guarantee pipeline end to end for one request.

    profile lookup -> base itinerary (given or generated) -> validation
    -> AdherencePredictor -> PlanOptimizer -> RiskAssessor
    -> ContingencyPlanner -> ContractGenerator

The orchestrator owns one instance of each stage and is the only error
boundary: anything raised inside `generate_contract` becomes a failure
envelope instead of propagating to the caller.
"""

import logging
import statistics
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from baap.config import Settings, settings as default_settings
from baap.schemas.baap import BaaPRequest
from baap.services.guarantee.adherence_predictor import (
    AdherencePrediction,
    AdherencePredictor,
    BehavioralInsights,
    PredictionBreakdown,
)
from baap.services.guarantee.config import GuaranteeConfig, guarantee_config
from baap.services.guarantee.contingency_planner import (
    ContingencyPlanner,
    ContingencyPlanningResult,
    ResourceAllocation,
    SuccessMetrics,
)
from baap.services.guarantee.contract_generator import (
    ContractGenerator,
    ContractStatus,
    ContractSummary,
    ContractTerms,
    ContractValidation,
    TravelContract,
    utc_now,
)
from baap.services.guarantee.errors import (
    ItineraryGenerationError,
    ItineraryValidationError,
    ProfileLookupError,
)
from baap.services.guarantee.models import (
    BudgetBreakdown,
    Day,
    Destination,
    HistoricalTrip,
    Itinerary,
    TripDetails,
    UserProfile,
)
from baap.services.guarantee.plan_optimizer import Guarantee, OptimizationConstraints, OptimizedPlan, PlanOptimizer
from baap.services.guarantee.risk_assessor import RiskAssessment, RiskAssessor, RiskLevel
from baap.services.itinerary_generator import CatalogItineraryGenerator, ItineraryGenerator
from baap.services.profile_source import UserProfileSource
from baap.services.validation_engine import ValidationEngine

logger = logging.getLogger(__name__)

ENGINES_USED = [
    "AdherencePredictor",
    "PlanOptimizer",
    "RiskAssessor",
    "ContingencyPlanner",
    "ContractGenerator",
]

HEALTHY = "healthy"
DEGRADED = "degraded"
UNHEALTHY = "unhealthy"


# ---------- Result envelope ----------


@dataclass
class BaaPSummary:
    adherence_guarantee: float = 0.0
    total_budget: float = 0.0
    risk_level: str = "unknown"
    optimizations_applied: int = 0
    tactical_suggestions: int = 0

    def to_dict(self) -> dict:
        return {
            "adherence_guarantee": round(self.adherence_guarantee, 4),
            "total_budget": round(self.total_budget, 2),
            "risk_level": self.risk_level,
            "optimizations_applied": self.optimizations_applied,
            "tactical_suggestions": self.tactical_suggestions,
        }


@dataclass
class BaaPComponents:
    prediction: AdherencePrediction | None = None
    optimization: OptimizedPlan | None = None
    risk_assessment: RiskAssessment | None = None
    contingency_planning: ContingencyPlanningResult | None = None

    def to_dict(self) -> dict:
        return {
            "prediction": self.prediction.to_dict() if self.prediction else None,
            "optimization": self.optimization.to_dict() if self.optimization else None,
            "risk_assessment": self.risk_assessment.to_dict() if self.risk_assessment else None,
            "contingency_planning": self.contingency_planning.to_dict() if self.contingency_planning else None,
        }


@dataclass
class BaaPMetadata:
    processing_time_ms: float
    engines_used: list[str]
    confidence: float

    def to_dict(self) -> dict:
        return {
            "processing_time_ms": round(self.processing_time_ms, 1),
            "engines_used": list(self.engines_used),
            "confidence": round(self.confidence, 4),
        }


@dataclass
class BaaPResult:
    success: bool
    contract: TravelContract | None
    summary: BaaPSummary
    components: BaaPComponents
    metadata: BaaPMetadata
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "contract": self.contract.to_dict() if self.contract else None,
            "summary": self.summary.to_dict(),
            "components": self.components.to_dict(),
            "metadata": self.metadata.to_dict(),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


# ---------- Health ----------


@dataclass
class ComponentHealth:
    status: str          # healthy | degraded | unhealthy
    detail: str = ""

    def to_dict(self) -> dict:
        return {"status": self.status, "detail": self.detail}


@dataclass
class HealthReport:
    status: str
    components: dict[str, ComponentHealth]
    checked_at: datetime

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "components": {name: c.to_dict() for name, c in self.components.items()},
            "checked_at": self.checked_at.isoformat(),
        }


def overall_health(components: dict[str, ComponentHealth]) -> str:
    statuses = {c.status for c in components.values()}
    if UNHEALTHY in statuses:
        return UNHEALTHY
    if DEGRADED in statuses:
        return DEGRADED
    return HEALTHY


def _probe_itinerary() -> Itinerary:
    dest = Destination(
        id="probe-1",
        name="Probe Destination",
        category="attraction",
        city="Yogyakarta",
        coordinates=(-7.7956, 110.3695),
        duration=60,
        estimated_cost=100_000,
    )
    return Itinerary(
        itinerary_id="health-probe",
        days=[Day.build(day=1, date="2025-03-10", destinations=[dest])],
    )


# Canned upstream outputs so each stage is probed on its own.


def _probe_prediction(trip: TripDetails) -> AdherencePrediction:
    return AdherencePrediction(
        success_probability=0.8,
        confidence=0.6,
        breakdown=PredictionBreakdown(0.5, 0.5, 0.5, 0.5),
        risk_factors=[],
        recommendations=[],
        behavioral_insights=BehavioralInsights(0.5, 0.5, 0.5, 0.5),
        trip=trip,
    )


def _probe_assessment() -> RiskAssessment:
    return RiskAssessment(
        overall_risk_score=0.3,
        risk_level=RiskLevel.MEDIUM,
        risk_factors=[],
        risk_distribution={},
        critical_failure_points=[],
        monitoring_schedule=[],
        recommended_actions=[],
    )


def _probe_plan(itinerary: Itinerary, budget: BudgetBreakdown, prediction: AdherencePrediction) -> OptimizedPlan:
    return OptimizedPlan(
        success=True,
        guaranteed_adherence=0.9,
        optimized_itinerary=itinerary,
        optimized_budget=budget,
        optimizations=[],
        tactical_suggestions=[],
        guarantee=Guarantee(coverage=0.9, conditions=[], fallback_options=[]),
        confidence=prediction.confidence,
        final_prediction=prediction,
    )


def _probe_contingencies() -> ContingencyPlanningResult:
    return ContingencyPlanningResult(
        primary_contingencies=[],
        secondary_contingencies=[],
        emergency_protocols=[],
        resource_allocation=ResourceAllocation(0.0, 0.0, 0.0, 0.0),
        monitoring_triggers=[],
        success_metrics=SuccessMetrics(0.0, 0.0, 0.0),
    )


# ---------- Orchestrator ----------


class BaaPOrchestrator:
    def __init__(
        self,
        profile_source: UserProfileSource,
        itinerary_generator: ItineraryGenerator | None = None,
        validation_engine: ValidationEngine | None = None,
        config: GuaranteeConfig = guarantee_config,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings or default_settings
        self.config = config
        self.profile_source = profile_source
        self.itinerary_generator = itinerary_generator or CatalogItineraryGenerator()
        self.validation_engine = validation_engine or ValidationEngine()
        self.clock = clock

        self.predictor = AdherencePredictor(config, currency=self.settings.currency)
        self.optimizer = PlanOptimizer(self.predictor, config, currency=self.settings.currency)
        self.assessor = RiskAssessor(config)
        self.planner = ContingencyPlanner(config)
        self.contracts = ContractGenerator(config, self.settings, clock)

    async def generate_contract(self, request: BaaPRequest) -> BaaPResult:
        """Run the full pipeline; never raises."""
        started = time.monotonic()
        prefs = request.preferences
        logger.info(
            f"BaaP request for user {request.user_id}: budget {prefs.budget:,.0f}, {prefs.days} days, "
            f"target {request.guarantee_target:.2f}"
        )

        try:
            # 1. Traveler profile
            profile = self._lookup_profile(request.user_id)

            # 2. Base itinerary, then validation
            itinerary = await self._base_itinerary(request)
            validation = await self.validation_engine.validate_itinerary(itinerary, prefs.budget)
            if not validation.is_valid:
                raise ItineraryValidationError(validation.errors)
            warnings = list(validation.warnings)

            budget = prefs.budget_breakdown(self.config.budget_split)
            trip = TripDetails(
                days=itinerary.total_days,
                destinations=itinerary.destination_count,
                cities=list(prefs.cities) or itinerary.cities,
                start_date=prefs.start_date or itinerary.start_date,
            )
            real_time = request.real_time_factors.to_domain() if request.real_time_factors else None

            # 3. Adherence prediction
            prediction = self.predictor.predict(budget, profile, trip)

            # 4. Optimization
            plan = self.optimizer.optimize(
                itinerary,
                budget,
                prediction,
                profile,
                constraints=self._constraints(request),
            )
            if not plan.success:
                warnings.append(
                    f"Target adherence {request.guarantee_target:.0%} not reachable within the allowed budget "
                    f"increase; guaranteeing {plan.guaranteed_adherence:.1%}"
                )

            # 5. Risk assessment, on the optimized plan
            assessment = self.assessor.assess(
                plan.optimized_itinerary,
                plan.optimized_budget,
                profile,
                prediction,
                real_time,
            )

            # 6. Contingency planning
            contingencies = self.planner.plan(
                plan.optimized_itinerary,
                plan.optimized_budget,
                assessment,
                profile,
                real_time,
            )

            # 7. Contract
            contract = self.contracts.generate(
                profile,
                plan,
                prediction,
                assessment,
                contingencies,
                terms=ContractTerms(
                    validity_days=self.settings.contract_validity_days,
                    guarantee_level=plan.guaranteed_adherence,
                ),
                user_id=request.user_id,
            )
            check = self.contracts.validate_contract(contract)
            if not check.is_valid:
                warnings.extend(f"Contract check: {e}" for e in check.errors)

            elapsed_ms = (time.monotonic() - started) * 1000
            logger.info(
                f"Contract {contract.contract_id} ready for user {request.user_id}: "
                f"adherence {plan.guaranteed_adherence:.3f}, risk {assessment.risk_level.value}, "
                f"{len(warnings)} warnings, {elapsed_ms:.0f}ms"
            )

            return BaaPResult(
                success=True,
                contract=contract,
                summary=BaaPSummary(
                    adherence_guarantee=plan.guaranteed_adherence,
                    total_budget=plan.optimized_budget.total_budget,
                    risk_level=assessment.risk_level.value,
                    optimizations_applied=len(plan.optimizations),
                    tactical_suggestions=len(plan.tactical_suggestions),
                ),
                components=BaaPComponents(
                    prediction=prediction,
                    optimization=plan,
                    risk_assessment=assessment,
                    contingency_planning=contingencies,
                ),
                metadata=BaaPMetadata(
                    processing_time_ms=elapsed_ms,
                    engines_used=list(ENGINES_USED),
                    confidence=statistics.fmean(
                        [prediction.confidence, plan.confidence, 1 - assessment.overall_risk_score]
                    ),
                ),
                warnings=warnings,
            )
        except Exception as e:
            logger.exception(f"BaaP pipeline failed for user {request.user_id}: {e}")
            return BaaPResult(
                success=False,
                contract=None,
                summary=BaaPSummary(),
                components=BaaPComponents(),
                metadata=BaaPMetadata(
                    processing_time_ms=(time.monotonic() - started) * 1000,
                    engines_used=[],
                    confidence=0.0,
                ),
                errors=[str(e)],
            )

    def _lookup_profile(self, user_id: str) -> UserProfile | None:
        try:
            profile = self.profile_source.get_user_profile(user_id)
        except Exception as e:
            raise ProfileLookupError(user_id, e) from e
        if profile is None:
            logger.info(f"No profile for user {user_id}; using population defaults")
        return profile

    async def _base_itinerary(self, request: BaaPRequest) -> Itinerary:
        if request.existing_itinerary is not None:
            itinerary = request.existing_itinerary.to_domain()
            logger.info(f"Using supplied itinerary {itinerary.itinerary_id} ({itinerary.total_days} days)")
            return itinerary

        result = await self.itinerary_generator.generate_itinerary(request.preferences.to_generator_input())
        if not result.success or result.itinerary is None:
            raise ItineraryGenerationError(result.errors)
        return result.itinerary

    def _constraints(self, request: BaaPRequest) -> OptimizationConstraints:
        allowed = request.preferences.constraints
        return OptimizationConstraints(
            min_adherence_target=request.guarantee_target,
            max_budget_increase=(
                request.max_budget_increase
                if request.max_budget_increase is not None
                else self.settings.default_max_budget_increase
            ),
            allow_destination_changes=allowed.allow_destination_changes if allowed else True,
            allow_transportation_changes=allowed.allow_transportation_changes if allowed else True,
            allow_accommodation_changes=allowed.allow_accommodation_changes if allowed else True,
        )

    # ---------- Single-stage access ----------

    def predict_adherence(
        self,
        user_id: str,
        budget: BudgetBreakdown,
        trip: TripDetails,
        historical_data: list[HistoricalTrip] | None = None,
    ) -> AdherencePrediction:
        return self.predictor.predict(budget, self._lookup_profile(user_id), trip, historical_data)

    def validate_contract(self, contract: TravelContract) -> ContractValidation:
        return self.contracts.validate_contract(contract)

    def sign_contract(self, contract: TravelContract, customer_signature: str) -> TravelContract:
        return self.contracts.sign(contract, customer_signature)

    def get_contract_status(self, contract: TravelContract) -> ContractStatus:
        return self.contracts.get_contract_status(contract)

    def get_contract_summary(self, contract: TravelContract) -> ContractSummary:
        return self.contracts.summarize(contract)

    # ---------- Health ----------

    async def health_check(self, check_user_id: str = "health_check") -> HealthReport:
        """Probe every component with a one-day trip and grade each result.

        Each stage gets canned upstream inputs, so one failing stage does not
        mask the others. The optimizer still re-scores through the predictor.
        """
        components: dict[str, ComponentHealth] = {}
        itinerary = _probe_itinerary()
        budget = BudgetBreakdown.from_split(1_000_000, self.config.budget_split)
        trip = TripDetails.from_itinerary(itinerary)
        canned_prediction = _probe_prediction(trip)
        canned_assessment = _probe_assessment()

        profile = self._probe(
            components, "profile_source", lambda: self.profile_source.get_user_profile(check_user_id)
        )
        if components["profile_source"].status == HEALTHY and profile is None:
            components["profile_source"] = ComponentHealth(DEGRADED, f"no profile for {check_user_id}")

        prediction = self._probe(components, "prediction_engine", lambda: self.predictor.predict(budget, None, trip))
        if prediction is not None and not 0.0 <= prediction.success_probability <= 1.0:
            components["prediction_engine"] = ComponentHealth(
                DEGRADED, f"probability out of range: {prediction.success_probability}"
            )

        self._probe(
            components,
            "optimization_service",
            lambda: self.optimizer.optimize(
                itinerary, budget, canned_prediction, None, OptimizationConstraints(min_adherence_target=0.5)
            ),
        )

        self._probe(
            components, "risk_assessment", lambda: self.assessor.assess(itinerary, budget, None, canned_prediction)
        )

        contingencies = self._probe(
            components, "contingency_planning", lambda: self.planner.plan(itinerary, budget, canned_assessment)
        )
        if contingencies is not None and not contingencies.primary_contingencies:
            components["contingency_planning"] = ComponentHealth(DEGRADED, "no primary contingencies")

        self._probe(
            components,
            "contract_generator",
            lambda: self.contracts.generate(
                None,
                _probe_plan(itinerary, budget, canned_prediction),
                canned_prediction,
                canned_assessment,
                _probe_contingencies(),
                user_id="health-probe",
            ),
        )

        try:
            validation = await self.validation_engine.validate_itinerary(itinerary, budget.total_budget)
            components["validation_engine"] = (
                ComponentHealth(HEALTHY) if validation.is_valid
                else ComponentHealth(DEGRADED, "; ".join(validation.errors))
            )
        except Exception as e:
            logger.warning(f"Health probe validation_engine failed: {e}")
            components["validation_engine"] = ComponentHealth(UNHEALTHY, str(e))

        status = overall_health(components)
        logger.info(f"Health check: {status} ({', '.join(f'{n}={c.status}' for n, c in components.items())})")
        return HealthReport(status=status, components=components, checked_at=self.clock())

    @staticmethod
    def _probe(components: dict[str, ComponentHealth], name: str, call: Callable):
        try:
            result = call()
        except Exception as e:
            logger.warning(f"Health probe {name} failed: {e}")
            components[name] = ComponentHealth(UNHEALTHY, str(e))
            return None
        components[name] = ComponentHealth(HEALTHY)
        return result
