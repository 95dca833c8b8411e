"""Fixed legal text for travel contracts."""

GUARANTEE_COVERAGE_TEMPLATE = (
    "{provider} guarantees that your actual travel expenses will not exceed {level}% of the "
    "optimized budget plan. If expenses exceed this threshold due to factors within our control, "
    "{provider} will cover the difference."
)

GUARANTEE_CONDITIONS: tuple[str, ...] = (
    "Follow the optimized itinerary and budget allocations provided",
    "Use recommended transportation and accommodation options",
    "Report any changes or issues immediately through the app",
    "Maintain regular communication during the trip",
    "Allow the platform to monitor and adjust plans as needed",
)

GUARANTEE_EXCLUSIONS: tuple[str, ...] = (
    "Personal purchases and discretionary spending",
    "Force majeure events (natural disasters, political unrest)",
    "Changes made without platform approval",
    "Pre-existing medical conditions not disclosed",
    "Travel outside the planned itinerary without coordination",
)

CLAIM_PROCESS: tuple[str, ...] = (
    "Document all expenses with receipts and photos",
    "Report the issue through the app within 24 hours",
    "Provide supporting evidence and circumstances",
    "Claims are reviewed and processed within 7 business days",
    "Approved claims are refunded within 14 business days",
)

VALIDITY_TEMPLATE = (
    "This contract is valid from the date of signature until {days} days after the planned trip "
    "end date, or until all obligations are fulfilled."
)
AMENDMENTS = (
    "Amendments to this contract must be agreed upon by both parties in writing. The platform "
    "reserves the right to update contingency plans based on changing conditions."
)
TERMINATION = (
    "Either party may terminate this contract with 48 hours notice. Early termination may affect "
    "guarantee coverage. The platform may terminate if terms are violated."
)
LIABILITY_TEMPLATE = (
    "{provider}'s liability is limited to the guarantee amount specified. The platform is not "
    "liable for personal injury, loss of personal belongings, or acts of third parties."
)
DISPUTE_RESOLUTION = (
    "Disputes will be resolved through negotiation first, followed by mediation if necessary. "
    "All disputes subject to Indonesian law and jurisdiction."
)

TACTICAL_SUGGESTION_CONDITIONS = "Available throughout the trip when budget pressures occur"
RISK_MONITORING_RESPONSIBILITY = "Shared between platform and traveler"

NEXT_STEPS: tuple[str, ...] = (
    "Review and sign the contract",
    "Download contingency plans",
    "Set up trip monitoring alerts",
    "Begin your guaranteed journey!",
)
