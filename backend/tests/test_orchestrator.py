import asyncio

import pytest

from conftest import FIXED_NOW, make_budget
from baap.config import Settings
from baap.schemas.baap import BaaPRequest
from baap.services.guarantee.contract_generator import ContractStatus
from baap.services.guarantee.models import TripDetails
from baap.services.guarantee.orchestrator import (
    DEGRADED,
    HEALTHY,
    UNHEALTHY,
    BaaPOrchestrator,
    ComponentHealth,
    overall_health,
)
from baap.services.itinerary_generator import GeneratorResult
from baap.services.profile_source import InMemoryProfileSource
from baap.services.validation_engine import ValidationEngine
from test_schemas import ITINERARY


class BrokenProfileSource:
    def get_user_profile(self, user_id):
        raise ConnectionError("profile store unreachable")


class EmptyGenerator:
    async def generate_itinerary(self, request):
        return GeneratorResult(success=False, errors=["Generator offline"])


class CrashingValidationEngine(ValidationEngine):
    async def validate_itinerary(self, itinerary, budget=None):
        raise RuntimeError("rules unavailable")


@pytest.fixture
def orchestrator(careful_profile, fixed_clock):
    return BaaPOrchestrator(InMemoryProfileSource([careful_profile]), settings=Settings(), clock=fixed_clock)


def baap_request(user_id="user-careful", **overrides) -> BaaPRequest:
    preferences = {
        "budget": 5_000_000,
        "days": 3,
        "cities": ["Yogyakarta"],
        "startDate": "2025-03-10",
        **overrides.pop("preferences", {}),
    }
    return BaaPRequest.model_validate({"userId": user_id, "preferences": preferences, **overrides})


def run(orchestrator, req):
    return asyncio.run(orchestrator.generate_contract(req))


def test_full_pipeline_for_known_traveler(orchestrator):
    result = run(orchestrator, baap_request(guaranteeTarget=0.9))

    assert result.success
    assert result.errors == []
    assert result.contract is not None
    assert result.contract.user_id == "user-careful"
    assert result.contract.guarantee.level == 0.9
    assert result.summary.adherence_guarantee == pytest.approx(0.9)
    assert result.summary.total_budget == pytest.approx(5_000_000)
    assert result.summary.risk_level == result.components.risk_assessment.risk_level.value
    assert result.summary.optimizations_applied == len(result.components.optimization.optimizations)
    assert result.metadata.engines_used == [
        "AdherencePredictor",
        "PlanOptimizer",
        "RiskAssessor",
        "ContingencyPlanner",
        "ContractGenerator",
    ]
    assert 0 < result.metadata.confidence <= 1
    assert result.metadata.processing_time_ms >= 0
    assert not any("not reachable" in w for w in result.warnings)


def test_unreachable_target_is_a_warning_not_an_error(orchestrator):
    result = run(orchestrator, baap_request(user_id="stranger"))

    assert result.success
    assert result.errors == []
    assert any("not reachable" in w for w in result.warnings)
    assert any(w.startswith("Contract check:") for w in result.warnings)
    assert result.summary.adherence_guarantee < 0.95
    assert result.summary.total_budget <= 5_000_000 * 1.2 + 1e-6


def test_max_budget_increase_is_honored(orchestrator):
    result = run(orchestrator, baap_request(user_id="stranger", maxBudgetIncrease=0.05))

    assert result.summary.total_budget <= 5_000_000 * 1.05 + 1e-6


def test_existing_itinerary_skips_generation(careful_profile, fixed_clock):
    orchestrator = BaaPOrchestrator(
        InMemoryProfileSource([careful_profile]), itinerary_generator=EmptyGenerator(), clock=fixed_clock
    )

    result = run(orchestrator, baap_request(preferences={"days": 1}, existingItinerary=ITINERARY, guaranteeTarget=0.9))

    assert result.success
    assert result.contract.plan.itinerary.itinerary_id == "itn-client"


def test_profile_failure_becomes_failure_envelope(fixed_clock):
    orchestrator = BaaPOrchestrator(BrokenProfileSource(), clock=fixed_clock)

    result = run(orchestrator, baap_request())

    assert not result.success
    assert result.contract is None
    assert result.errors == ["Profile lookup failed for user user-careful: profile store unreachable"]
    assert result.summary.adherence_guarantee == 0
    assert result.summary.total_budget == 0
    assert result.components.prediction is None
    assert result.components.contingency_planning is None
    assert result.metadata.engines_used == []


def test_generator_failure_becomes_failure_envelope(careful_profile, fixed_clock):
    orchestrator = BaaPOrchestrator(
        InMemoryProfileSource([careful_profile]), itinerary_generator=EmptyGenerator(), clock=fixed_clock
    )

    result = run(orchestrator, baap_request())

    assert not result.success
    assert result.errors == ["Failed to generate base itinerary: Generator offline"]


def test_unknown_city_fails_cleanly(orchestrator):
    result = run(orchestrator, baap_request(preferences={"cities": ["Atlantis"]}))

    assert not result.success
    assert "No destinations available for Atlantis" in result.errors[0]


def test_invalid_itinerary_is_rejected(orchestrator):
    broken = {**ITINERARY, "days": [{**ITINERARY["days"][0], "totalCost": 10}]}

    result = run(orchestrator, baap_request(existingItinerary=broken))

    assert not result.success
    assert result.errors[0].startswith("Itinerary failed validation: Day 1 cost mismatch")


def test_concurrent_runs_are_independent(orchestrator):
    async def both():
        return await asyncio.gather(
            orchestrator.generate_contract(baap_request()),
            orchestrator.generate_contract(baap_request(user_id="stranger")),
        )

    first, second = asyncio.run(both())

    assert first.success and second.success
    assert first.contract.contract_id != second.contract.contract_id
    assert first.contract.user_id == "user-careful"
    assert second.contract.user_id == "stranger"


def test_envelope_to_dict(orchestrator):
    data = run(orchestrator, baap_request()).to_dict()

    assert set(data) == {"success", "contract", "summary", "components", "metadata", "errors", "warnings"}
    assert set(data["components"]) == {"prediction", "optimization", "risk_assessment", "contingency_planning"}
    assert data["summary"]["total_budget"] > 0


def test_contract_pass_throughs(orchestrator):
    contract = run(orchestrator, baap_request(guaranteeTarget=0.9)).contract

    assert orchestrator.get_contract_status(contract) == ContractStatus.PENDING_SIGNATURE
    signed = orchestrator.sign_contract(contract, "Careful Traveler")
    assert orchestrator.get_contract_status(signed) == ContractStatus.ACTIVE
    assert orchestrator.validate_contract(signed).is_valid
    assert orchestrator.get_contract_summary(signed).title.endswith(contract.contract_id)
    assert signed.signatures.customer.timestamp == FIXED_NOW


def test_predict_adherence_pass_through(orchestrator):
    prediction = orchestrator.predict_adherence("user-careful", make_budget(), TripDetails(days=3, destinations=6))

    assert prediction.success_probability == pytest.approx(0.94875)


def test_health_check_all_healthy(orchestrator):
    report = asyncio.run(orchestrator.health_check(check_user_id="user-careful"))

    assert report.status == HEALTHY
    assert set(report.components) == {
        "profile_source",
        "prediction_engine",
        "optimization_service",
        "risk_assessment",
        "contingency_planning",
        "contract_generator",
        "validation_engine",
    }
    assert report.checked_at == FIXED_NOW


def test_health_check_reports_broken_component(careful_profile, fixed_clock):
    orchestrator = BaaPOrchestrator(
        InMemoryProfileSource([careful_profile]), validation_engine=CrashingValidationEngine(), clock=fixed_clock
    )

    report = asyncio.run(orchestrator.health_check())

    assert report.components["validation_engine"].status == UNHEALTHY
    assert report.components["prediction_engine"].status == HEALTHY
    assert report.status == UNHEALTHY


def test_overall_health_rule():
    assert overall_health({"a": ComponentHealth(HEALTHY), "b": ComponentHealth(HEALTHY)}) == HEALTHY
    assert overall_health({"a": ComponentHealth(HEALTHY), "b": ComponentHealth(DEGRADED)}) == DEGRADED
    assert overall_health({"a": ComponentHealth(DEGRADED), "b": ComponentHealth(UNHEALTHY)}) == UNHEALTHY


def test_health_check_unknown_check_user_is_degraded(orchestrator):
    report = asyncio.run(orchestrator.health_check())

    assert report.components["profile_source"].status == DEGRADED
    assert report.status == DEGRADED


def test_health_check_unreachable_profile_store(fixed_clock):
    orchestrator = BaaPOrchestrator(BrokenProfileSource(), clock=fixed_clock)

    report = asyncio.run(orchestrator.health_check())

    assert report.components["profile_source"].status == UNHEALTHY
    assert report.components["prediction_engine"].status == HEALTHY
    assert report.status == UNHEALTHY


def test_health_check_broken_predictor_leaves_other_stages_healthy(orchestrator, monkeypatch):
    def crash(*args, **kwargs):
        raise RuntimeError("weights table corrupted")

    monkeypatch.setattr(orchestrator.predictor, "predict", crash)

    report = asyncio.run(orchestrator.health_check(check_user_id="user-careful"))

    assert report.components["prediction_engine"].status == UNHEALTHY
    assert report.components["prediction_engine"].detail == "weights table corrupted"
    # re-scoring goes through the predictor
    assert report.components["optimization_service"].status == UNHEALTHY
    for name in ("risk_assessment", "contingency_planning", "contract_generator", "validation_engine"):
        assert report.components[name].status == HEALTHY
    assert report.status == UNHEALTHY
