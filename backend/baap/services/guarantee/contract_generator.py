"""Travel contract generator.

Assembles the guarantee document from the upstream stage outputs. Contracts are
frozen: signing returns a new contract and leaves the original untouched.

Status lifecycle:
  pending_signature  provider auto-signed at generation, customer not yet
  active             both parties signed
  expired            now > valid_until (checked first, whatever the signatures)
"""

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum

from baap.config import Settings, settings as default_settings
from baap.data import contract_terms as legal
from baap.services.guarantee.adherence_predictor import AdherencePrediction
from baap.services.guarantee.config import GuaranteeConfig, guarantee_config
from baap.services.guarantee.contingency_planner import ContingencyPlanningResult
from baap.services.guarantee.models import BudgetBreakdown, Itinerary, UserProfile
from baap.services.guarantee.plan_optimizer import OptimizedPlan
from baap.services.guarantee.risk_assessor import RiskAssessment

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class ContractStatus(str, Enum):
    PENDING_SIGNATURE = "pending_signature"
    ACTIVE = "active"
    EXPIRED = "expired"


# ---------- Data structures ----------


@dataclass(frozen=True)
class ContractTerms:
    validity_days: int = 365
    guarantee_level: float = 0.95
    service_fees: float = 0.0
    refund_policy: str = "Full refund of service fees if the guarantee is not honored"

    def __post_init__(self):
        if self.validity_days < 0:
            raise ValueError(f"validity_days cannot be negative, got {self.validity_days}")
        if not 0 < self.guarantee_level <= 1:
            raise ValueError(f"guarantee_level must be within (0, 1], got {self.guarantee_level}")


@dataclass(frozen=True)
class ProviderParty:
    name: str
    guarantee: str
    contact: str


@dataclass(frozen=True)
class CustomerParty:
    name: str
    id: str
    agreed_at: datetime


@dataclass(frozen=True)
class GuaranteeSection:
    level: float
    coverage: str
    conditions: list[str]
    exclusions: list[str]
    claim_process: list[str]


@dataclass(frozen=True)
class ContractPlan:
    itinerary: Itinerary | None
    budget: BudgetBreakdown | None
    adherence: float
    confidence: float


@dataclass(frozen=True)
class IdentifiedRisk:
    risk: str
    mitigation: str
    coverage: str


@dataclass(frozen=True)
class MonitoringDuty:
    trigger: str
    action: str
    responsibility: str


@dataclass(frozen=True)
class RiskManagementSection:
    identified_risks: list[IdentifiedRisk]
    monitoring: list[MonitoringDuty]


@dataclass(frozen=True)
class ContractSuggestion:
    type: str
    description: str
    potential_savings: float
    ease: str
    conditions: str


@dataclass(frozen=True)
class PrimaryCoverage:
    scenario: str
    response: str
    coverage: str


@dataclass(frozen=True)
class EmergencyCoverage:
    scenario: str
    actions: list[str]
    contacts: list[str]


@dataclass(frozen=True)
class ContingencySection:
    primary: list[PrimaryCoverage]
    emergency: list[EmergencyCoverage]


@dataclass(frozen=True)
class LegalTerms:
    validity: str
    amendments: str
    termination: str
    liability: str
    dispute_resolution: str
    service_fees: float = 0.0
    refund_policy: str = ""


@dataclass(frozen=True)
class Performance:
    adherence_target: float
    current_adherence: float
    risk_score: float
    contingency_coverage: float   # fraction


@dataclass(frozen=True)
class Signature:
    signed: bool = False
    timestamp: datetime | None = None
    signature: str = ""


@dataclass(frozen=True)
class Signatures:
    provider: Signature
    customer: Signature = field(default_factory=Signature)


@dataclass(frozen=True)
class TravelContract:
    contract_id: str
    user_id: str
    generated_at: datetime
    valid_until: datetime
    provider: ProviderParty
    customer: CustomerParty
    guarantee: GuaranteeSection
    plan: ContractPlan
    risk_management: RiskManagementSection
    tactical_suggestions: list[ContractSuggestion]
    contingencies: ContingencySection
    terms: LegalTerms
    performance: Performance
    signatures: Signatures

    def to_dict(self) -> dict:
        return {
            "contract_id": self.contract_id,
            "user_id": self.user_id,
            "generated_at": _ts(self.generated_at),
            "valid_until": _ts(self.valid_until),
            "parties": {
                "provider": {
                    "name": self.provider.name,
                    "guarantee": self.provider.guarantee,
                    "contact": self.provider.contact,
                },
                "customer": {
                    "name": self.customer.name,
                    "id": self.customer.id,
                    "agreed_at": _ts(self.customer.agreed_at),
                },
            },
            "guarantee": {
                "level": self.guarantee.level,
                "coverage": self.guarantee.coverage,
                "conditions": list(self.guarantee.conditions),
                "exclusions": list(self.guarantee.exclusions),
                "claim_process": list(self.guarantee.claim_process),
            },
            "plan": {
                "itinerary": self.plan.itinerary.to_dict() if self.plan.itinerary else None,
                "budget": self.plan.budget.to_dict() if self.plan.budget else None,
                "adherence": round(self.plan.adherence, 4),
                "confidence": round(self.plan.confidence, 4),
            },
            "risk_management": {
                "identified_risks": [
                    {"risk": r.risk, "mitigation": r.mitigation, "coverage": r.coverage}
                    for r in self.risk_management.identified_risks
                ],
                "monitoring": [
                    {"trigger": m.trigger, "action": m.action, "responsibility": m.responsibility}
                    for m in self.risk_management.monitoring
                ],
            },
            "tactical_suggestions": [
                {
                    "type": s.type,
                    "description": s.description,
                    "potential_savings": round(s.potential_savings, 2),
                    "ease": s.ease,
                    "conditions": s.conditions,
                }
                for s in self.tactical_suggestions
            ],
            "contingencies": {
                "primary": [
                    {"scenario": p.scenario, "response": p.response, "coverage": p.coverage}
                    for p in self.contingencies.primary
                ],
                "emergency": [
                    {"scenario": e.scenario, "actions": list(e.actions), "contacts": list(e.contacts)}
                    for e in self.contingencies.emergency
                ],
            },
            "terms": {
                "validity": self.terms.validity,
                "amendments": self.terms.amendments,
                "termination": self.terms.termination,
                "liability": self.terms.liability,
                "dispute_resolution": self.terms.dispute_resolution,
                "service_fees": self.terms.service_fees,
                "refund_policy": self.terms.refund_policy,
            },
            "performance": {
                "adherence_target": self.performance.adherence_target,
                "current_adherence": round(self.performance.current_adherence, 4),
                "risk_score": round(self.performance.risk_score, 4),
                "contingency_coverage": round(self.performance.contingency_coverage, 4),
            },
            "signatures": {
                party: {"signed": sig.signed, "timestamp": _ts(sig.timestamp), "signature": sig.signature}
                for party, sig in (("provider", self.signatures.provider), ("customer", self.signatures.customer))
            },
        }


@dataclass
class ContractValidation:
    is_valid: bool
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"is_valid": self.is_valid, "errors": list(self.errors)}


@dataclass
class ContractSummary:
    title: str
    guarantee: str
    key_terms: list[str]
    coverage: str
    next_steps: list[str]

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "guarantee": self.guarantee,
            "key_terms": list(self.key_terms),
            "coverage": self.coverage,
            "next_steps": list(self.next_steps),
        }


# ---------- Generator ----------


class ContractGenerator:
    """Builds, validates, signs and summarizes travel contracts.

    Contract ids are `BaaP-{unix millis}-{counter}` with a per-generator
    counter, so ids from one generator are unique and ordered.
    """

    def __init__(
        self,
        config: GuaranteeConfig = guarantee_config,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.cfg = config.contract
        self.settings = settings or default_settings
        self.clock = clock
        self._counter = itertools.count(1)

    def next_contract_id(self, now: datetime) -> str:
        millis = int(now.timestamp() * 1000)
        return f"BaaP-{millis}-{next(self._counter):0{self.cfg.counter_width}d}"

    def generate(
        self,
        profile: UserProfile | None,
        plan: OptimizedPlan,
        prediction: AdherencePrediction,
        assessment: RiskAssessment,
        contingencies: ContingencyPlanningResult,
        terms: ContractTerms | None = None,
        user_id: str | None = None,
    ) -> TravelContract:
        terms = terms or ContractTerms(validity_days=self.settings.contract_validity_days)
        user_id = user_id or (profile.user_id if profile else "anonymous")
        now = self.clock()
        contract_id = self.next_contract_id(now)
        provider = self.settings.provider_name
        level_pct = round(terms.guarantee_level * 100)

        logger.info(f"Generating contract {contract_id} for user {user_id} ({level_pct}% guarantee)")

        contract = TravelContract(
            contract_id=contract_id,
            user_id=user_id,
            generated_at=now,
            valid_until=now + timedelta(days=terms.validity_days),
            provider=ProviderParty(
                name=provider,
                guarantee=f"{level_pct}% Budget Adherence Guarantee",
                contact=self.settings.provider_contact,
            ),
            customer=CustomerParty(
                name=(profile.name if profile and profile.name else "Valued Customer"),
                id=user_id,
                agreed_at=now,
            ),
            guarantee=GuaranteeSection(
                level=terms.guarantee_level,
                coverage=legal.GUARANTEE_COVERAGE_TEMPLATE.format(provider=provider, level=level_pct),
                conditions=list(legal.GUARANTEE_CONDITIONS),
                exclusions=list(legal.GUARANTEE_EXCLUSIONS),
                claim_process=list(legal.CLAIM_PROCESS),
            ),
            plan=ContractPlan(
                itinerary=plan.optimized_itinerary,
                budget=plan.optimized_budget,
                adherence=plan.guaranteed_adherence,
                confidence=plan.confidence,
            ),
            risk_management=self._risk_section(assessment),
            tactical_suggestions=[
                ContractSuggestion(
                    type=s.type,
                    description=s.description,
                    potential_savings=s.potential_savings,
                    ease=s.ease,
                    conditions=legal.TACTICAL_SUGGESTION_CONDITIONS,
                )
                for s in plan.tactical_suggestions
            ],
            contingencies=ContingencySection(
                primary=[
                    PrimaryCoverage(
                        scenario=c.trigger_condition,
                        response=c.primary_action.description,
                        coverage=f"Up to {self.settings.currency} {abs(c.primary_action.cost):,.0f} covered",
                    )
                    for c in contingencies.primary_contingencies
                ],
                emergency=[
                    EmergencyCoverage(
                        scenario=p.scenario,
                        actions=list(p.immediate_actions),
                        contacts=list(p.emergency_contacts),
                    )
                    for p in contingencies.emergency_protocols
                ],
            ),
            terms=LegalTerms(
                validity=legal.VALIDITY_TEMPLATE.format(days=terms.validity_days),
                amendments=legal.AMENDMENTS,
                termination=legal.TERMINATION,
                liability=legal.LIABILITY_TEMPLATE.format(provider=provider),
                dispute_resolution=legal.DISPUTE_RESOLUTION,
                service_fees=terms.service_fees,
                refund_policy=terms.refund_policy,
            ),
            performance=Performance(
                adherence_target=terms.guarantee_level,
                current_adherence=plan.guaranteed_adherence,
                risk_score=assessment.overall_risk_score,
                contingency_coverage=contingencies.success_metrics.coverage,
            ),
            signatures=Signatures(
                provider=Signature(signed=True, timestamp=now, signature=self.settings.provider_signature),
            ),
        )

        logger.debug(
            f"Contract {contract_id}: adherence {plan.guaranteed_adherence:.3f} "
            f"(prediction {prediction.success_probability:.3f}), "
            f"{len(contract.risk_management.identified_risks)} disclosed risks"
        )
        return contract

    def _risk_section(self, assessment: RiskAssessment) -> RiskManagementSection:
        return RiskManagementSection(
            identified_risks=[
                IdentifiedRisk(
                    risk=f.description,
                    mitigation=(
                        f.mitigation_strategies[0].strategy
                        if f.mitigation_strategies else "Monitor and adjust as needed"
                    ),
                    coverage=(
                        "Full coverage available"
                        if f.impact > self.cfg.full_coverage_impact else "Partial coverage available"
                    ),
                )
                for f in assessment.top_factors(self.cfg.top_risks)
            ],
            monitoring=[
                MonitoringDuty(
                    trigger=phase.time_point,
                    action=", ".join(phase.checks),
                    responsibility=legal.RISK_MONITORING_RESPONSIBILITY,
                )
                for phase in assessment.monitoring_schedule
            ],
        )

    # ---------- Lifecycle ----------

    def validate_contract(self, contract: TravelContract) -> ContractValidation:
        """Internal consistency check of a generated contract."""
        errors: list[str] = []

        if contract.guarantee.level < self.cfg.min_guarantee_level:
            errors.append(f"Guarantee level must be at least {round(self.cfg.min_guarantee_level * 100)}%")
        if contract.valid_until <= contract.generated_at:
            errors.append("Contract validity period is invalid")
        if contract.performance.current_adherence < contract.performance.adherence_target:
            errors.append("Current plan does not meet adherence target")
        if contract.plan.itinerary is None:
            errors.append("Contract must include itinerary details")
        if contract.plan.budget is None:
            errors.append("Contract must include budget details")

        return ContractValidation(is_valid=not errors, errors=errors)

    def sign(self, contract: TravelContract, customer_signature: str) -> TravelContract:
        if not customer_signature or not customer_signature.strip():
            raise ValueError("Customer signature cannot be empty")
        logger.info(f"Contract {contract.contract_id} signed by customer {contract.user_id}")
        return replace(
            contract,
            signatures=replace(
                contract.signatures,
                customer=Signature(signed=True, timestamp=self.clock(), signature=customer_signature),
            ),
        )

    def get_contract_status(self, contract: TravelContract, now: datetime | None = None) -> ContractStatus:
        now = now or self.clock()
        if now > contract.valid_until:
            return ContractStatus.EXPIRED
        if contract.signatures.provider.signed and contract.signatures.customer.signed:
            return ContractStatus.ACTIVE
        return ContractStatus.PENDING_SIGNATURE

    def summarize(self, contract: TravelContract) -> ContractSummary:
        budget = contract.plan.budget
        coverage_amount = budget.total_budget if budget else 0.0
        return ContractSummary(
            title=f"Travel Contract {contract.contract_id}",
            guarantee=f"{round(contract.guarantee.level * 100)}% Budget Adherence Guarantee",
            key_terms=[
                f"Valid until: {contract.valid_until.date().isoformat()}",
                f"Coverage: Up to {self.settings.currency} {coverage_amount:,.0f}",
                f"Risk Score: {round(contract.performance.risk_score * 100)}%",
                f"Contingency Coverage: {round(contract.performance.contingency_coverage * 100)}%",
            ],
            coverage=(
                "Comprehensive coverage for budget overruns, travel disruptions, and emergencies "
                "as outlined in the full contract."
            ),
            next_steps=list(legal.NEXT_STEPS),
        )
