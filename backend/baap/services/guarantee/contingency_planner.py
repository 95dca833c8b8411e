"""Contingency planner: pre-authored responses for what can go wrong on the trip.

Primary plans (transport failure, health emergency, budget overrun) are always
present; weather disruption is added only when the risk assessment found a
weather risk. Secondary plans (lost documents, accommodation issues) cover
low-likelihood, high-impact tail events regardless of the assessment.
Catalog costs scale with the trip budget.
"""

import logging
import statistics
from dataclasses import dataclass, field

from baap.data.contingencies import PRIMARY_SCENARIOS, SECONDARY_SCENARIOS
from baap.data.emergency import EMERGENCY_PROTOCOLS, MONITORING_TRIGGERS
from baap.services.guarantee.config import (
    RESOURCE_ALLOCATION,
    RESPONSE_TIME_MINUTES,
    GuaranteeConfig,
    guarantee_config,
)
from baap.services.guarantee.models import BudgetBreakdown, Itinerary, RealTimeFactors, UserProfile
from baap.services.guarantee.risk_assessor import RiskAssessment, RiskCategory, RiskFactor, RiskType

logger = logging.getLogger(__name__)


# ---------- Data structures ----------


@dataclass
class ContingencyAction:
    type: str                # reroute | reschedule | rebook | cancel | upgrade | downgrade
    description: str
    cost: float              # negative = saving
    time_required: int       # minutes

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "description": self.description,
            "cost": round(self.cost, 2),
            "time_required": self.time_required,
        }


@dataclass
class BackupAction:
    type: str
    description: str
    cost: float
    feasibility: float

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "description": self.description,
            "cost": round(self.cost, 2),
            "feasibility": self.feasibility,
        }


@dataclass
class ResourceRequirements:
    contacts: list[str] = field(default_factory=list)
    documents: list[str] = field(default_factory=list)
    tools: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"contacts": list(self.contacts), "documents": list(self.documents), "tools": list(self.tools)}


@dataclass
class CommunicationPlan:
    notify: list[str]
    message: str
    urgency: str             # low | medium | high | critical

    def to_dict(self) -> dict:
        return {"notify": list(self.notify), "message": self.message, "urgency": self.urgency}


@dataclass
class RecoveryStep:
    step: int
    action: str
    responsible: str
    timeframe: str

    def to_dict(self) -> dict:
        return {"step": self.step, "action": self.action, "responsible": self.responsible, "timeframe": self.timeframe}


@dataclass
class ContingencyPlan:
    id: str
    trigger_condition: str
    likelihood: float
    impact: float
    response_time: str       # immediate | hours | days
    primary_action: ContingencyAction
    backup_actions: list[BackupAction]
    resource_requirements: ResourceRequirements
    communication_plan: CommunicationPlan
    recovery_steps: list[RecoveryStep]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "trigger_condition": self.trigger_condition,
            "likelihood": round(self.likelihood, 4),
            "impact": round(self.impact, 4),
            "response_time": self.response_time,
            "primary_action": self.primary_action.to_dict(),
            "backup_actions": [b.to_dict() for b in self.backup_actions],
            "resource_requirements": self.resource_requirements.to_dict(),
            "communication_plan": self.communication_plan.to_dict(),
            "recovery_steps": [s.to_dict() for s in self.recovery_steps],
        }


@dataclass
class EmergencyProtocol:
    scenario: str
    immediate_actions: list[str]
    emergency_contacts: list[str]
    recovery_plan: str

    def to_dict(self) -> dict:
        return {
            "scenario": self.scenario,
            "immediate_actions": list(self.immediate_actions),
            "emergency_contacts": list(self.emergency_contacts),
            "recovery_plan": self.recovery_plan,
        }


@dataclass
class ResourceAllocation:
    emergency_fund: float
    backup_transportation: float
    alternative_accommodation: float
    communication_credits: float

    @property
    def total(self) -> float:
        return (
            self.emergency_fund
            + self.backup_transportation
            + self.alternative_accommodation
            + self.communication_credits
        )

    def to_dict(self) -> dict:
        return {
            "emergency_fund": round(self.emergency_fund, 2),
            "backup_transportation": round(self.backup_transportation, 2),
            "alternative_accommodation": round(self.alternative_accommodation, 2),
            "communication_credits": round(self.communication_credits, 2),
        }


@dataclass
class MonitoringTrigger:
    condition: str
    threshold: float
    action: str
    notification: str

    def to_dict(self) -> dict:
        return {
            "condition": self.condition,
            "threshold": self.threshold,
            "action": self.action,
            "notification": self.notification,
        }


@dataclass
class SuccessMetrics:
    coverage: float          # fraction of the scenario universe covered
    response_time: float     # average minutes
    cost_efficiency: float   # allocated resources per covered scenario

    def to_dict(self) -> dict:
        return {
            "coverage": round(self.coverage, 4),
            "response_time": round(self.response_time, 1),
            "cost_efficiency": round(self.cost_efficiency, 2),
        }


@dataclass
class ContingencyPlanningResult:
    primary_contingencies: list[ContingencyPlan]
    secondary_contingencies: list[ContingencyPlan]
    emergency_protocols: list[EmergencyProtocol]
    resource_allocation: ResourceAllocation
    monitoring_triggers: list[MonitoringTrigger]
    success_metrics: SuccessMetrics

    @property
    def all_contingencies(self) -> list[ContingencyPlan]:
        return self.primary_contingencies + self.secondary_contingencies

    def to_dict(self) -> dict:
        return {
            "primary_contingencies": [p.to_dict() for p in self.primary_contingencies],
            "secondary_contingencies": [p.to_dict() for p in self.secondary_contingencies],
            "emergency_protocols": [p.to_dict() for p in self.emergency_protocols],
            "resource_allocation": self.resource_allocation.to_dict(),
            "monitoring_triggers": [t.to_dict() for t in self.monitoring_triggers],
            "success_metrics": self.success_metrics.to_dict(),
        }


# ---------- Planner ----------


class ContingencyPlanner:
    def __init__(self, config: GuaranteeConfig = guarantee_config):
        self.cfg = config.contingency

    def plan(
        self,
        itinerary: Itinerary,
        budget: BudgetBreakdown,
        assessment: RiskAssessment,
        profile: UserProfile | None = None,
        real_time: RealTimeFactors | None = None,
    ) -> ContingencyPlanningResult:
        who = profile.user_id if profile else "anonymous traveler"
        logger.info(
            f"Planning contingencies for {who}: itinerary {itinerary.itinerary_id}, "
            f"risk level {assessment.risk_level.value}"
            + (", live conditions supplied" if real_time else "")
        )

        scale = self.cost_scale(budget.total_budget)

        primary = [
            self._build("transport_failure", PRIMARY_SCENARIOS["transport_failure"], scale,
                        self._transport_risk(assessment)),
            self._build("health_emergency", PRIMARY_SCENARIOS["health_emergency"], scale,
                        assessment.find(category=RiskCategory.HEALTH_SAFETY)),
            self._build("budget_overrun", PRIMARY_SCENARIOS["budget_overrun"], scale,
                        assessment.find(category=RiskCategory.BUDGET)),
        ]
        weather = assessment.find(type=RiskType.WEATHER_IMPACT)
        if weather:
            plan = self._build("weather_disruption", PRIMARY_SCENARIOS["weather_disruption"], scale, weather)
            plan.impact = weather.impact
            primary.append(plan)

        secondary = [self._build(key, scenario, scale) for key, scenario in SECONDARY_SCENARIOS.items()]

        allocation = self.allocate_resources(budget.total_budget, assessment.risk_level.value)
        metrics = self.success_metrics(primary, secondary, allocation)

        logger.debug(
            f"Contingencies: {len(primary)} primary, {len(secondary)} secondary, "
            f"reserve {allocation.total:,.0f}, coverage {metrics.coverage:.0%}"
        )

        return ContingencyPlanningResult(
            primary_contingencies=primary,
            secondary_contingencies=secondary,
            emergency_protocols=[
                EmergencyProtocol(
                    scenario=p["scenario"],
                    immediate_actions=list(p["immediate_actions"]),
                    emergency_contacts=list(p["emergency_contacts"]),
                    recovery_plan=p["recovery_plan"],
                )
                for p in EMERGENCY_PROTOCOLS
            ],
            resource_allocation=allocation,
            monitoring_triggers=[MonitoringTrigger(**t) for t in MONITORING_TRIGGERS],
            success_metrics=metrics,
        )

    def cost_scale(self, total_budget: float) -> float:
        ratio = total_budget / self.cfg.reference_budget
        return max(self.cfg.min_cost_scale, min(self.cfg.max_cost_scale, ratio))

    def allocate_resources(self, total_budget: float, risk_level: str) -> ResourceAllocation:
        shares = RESOURCE_ALLOCATION.get(risk_level) or RESOURCE_ALLOCATION[self.cfg.default_risk_level]
        return ResourceAllocation(**{name: total_budget * share for name, share in shares.items()})

    def success_metrics(
        self,
        primary: list[ContingencyPlan],
        secondary: list[ContingencyPlan],
        allocation: ResourceAllocation,
    ) -> SuccessMetrics:
        plans = primary + secondary
        if not plans:
            return SuccessMetrics(coverage=0.0, response_time=0.0, cost_efficiency=0.0)
        return SuccessMetrics(
            coverage=min(len(plans) / self.cfg.scenario_universe, 1.0),
            response_time=statistics.fmean(RESPONSE_TIME_MINUTES[p.response_time] for p in plans),
            cost_efficiency=allocation.total / len(plans),
        )

    @staticmethod
    def _transport_risk(assessment: RiskAssessment) -> RiskFactor | None:
        for factor in assessment.risk_factors:
            if factor.id == "transportation_delay":
                return factor
        return assessment.find(category=RiskCategory.SCHEDULE, type=RiskType.SCHEDULE_DELAY)

    @staticmethod
    def _build(key: str, scenario: dict, scale: float, risk: RiskFactor | None = None) -> ContingencyPlan:
        action_type, description, cost, minutes = scenario["primary_action"]
        notify, message, urgency = scenario["communication"]
        return ContingencyPlan(
            id=key,
            trigger_condition=scenario["trigger_condition"],
            likelihood=risk.likelihood if risk else scenario["likelihood"],
            impact=scenario["impact"],
            response_time=scenario["response_time"],
            primary_action=ContingencyAction(action_type, description, cost * scale, minutes),
            backup_actions=[
                BackupAction(kind, text, backup_cost * scale, feasibility)
                for kind, text, backup_cost, feasibility in scenario["backup_actions"]
            ],
            resource_requirements=ResourceRequirements(**{k: list(v) for k, v in scenario["resources"].items()}),
            communication_plan=CommunicationPlan(list(notify), message, urgency),
            recovery_steps=[
                RecoveryStep(i, action, responsible, timeframe)
                for i, (action, responsible, timeframe) in enumerate(scenario["recovery_steps"], start=1)
            ],
        )
