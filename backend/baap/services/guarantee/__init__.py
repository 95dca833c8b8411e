"""Budget guarantee pipeline: turns a trip budget into a signed adherence contract.

Modules:
    config               Weights, thresholds and lookup tables for every stage
    models               Budget, itinerary, traveler and live-condition value objects
    errors               Pipeline exceptions caught by the orchestrator
    adherence_predictor  Probability of finishing within budget
    plan_optimizer       Budget increase, reallocation and itinerary edits toward a target
    risk_assessor        Risk factors, critical failure points, monitoring schedule
    contingency_planner  Scenario playbooks, emergency protocols, reserve allocation
    contract_generator   Contract assembly, validation, signing and status
    orchestrator         Runs the stages for one request and reports health

Pipeline:
    AdherencePredictor → PlanOptimizer → RiskAssessor
    → ContingencyPlanner → ContractGenerator
"""
