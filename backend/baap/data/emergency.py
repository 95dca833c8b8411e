"""Trip-independent emergency protocols and in-trip monitoring triggers."""

EMERGENCY_PROTOCOLS: list[dict] = [
    {
        "scenario": "Medical Emergency",
        "immediate_actions": [
            "Call emergency services (112/911)",
            "Contact travel insurance immediately",
            "Notify emergency contact",
            "Provide location and medical details",
        ],
        "emergency_contacts": [
            "Emergency services: 112/911",
            "Travel insurance emergency line",
            "Embassy/Consulate 24/7 emergency",
            "Family emergency contact",
        ],
        "recovery_plan": (
            "Follow medical facility guidance, contact insurance for coverage, arrange alternative "
            "transportation and accommodation as needed"
        ),
    },
    {
        "scenario": "Security Threat",
        "immediate_actions": [
            "Move to safe location immediately",
            "Contact local authorities if needed",
            "Notify emergency contact",
            "Follow local security advisories",
        ],
        "emergency_contacts": [
            "Local police: 110 (Indonesia)",
            "Embassy/Consulate security section",
            "Travel advisory services",
            "Emergency contact",
        ],
        "recovery_plan": (
            "Monitor situation, consider early return if threat persists, document all incidents "
            "for insurance claims"
        ),
    },
    {
        "scenario": "Natural Disaster",
        "immediate_actions": [
            "Follow local authority evacuation orders",
            "Contact embassy for assistance",
            "Notify emergency contact with status",
            "Conserve phone battery and communication",
        ],
        "emergency_contacts": [
            "Local disaster management authorities",
            "Embassy emergency line",
            "International disaster relief organizations",
            "Family emergency contact",
        ],
        "recovery_plan": (
            "Follow evacuation procedures, coordinate with embassy for repatriation, claim travel "
            "insurance for losses"
        ),
    },
    {
        "scenario": "Communication Failure",
        "immediate_actions": [
            "Use backup communication methods",
            "Locate internet cafes or public WiFi",
            "Contact embassy if completely isolated",
            "Conserve device battery",
        ],
        "emergency_contacts": [
            "Embassy communication assistance",
            "Travel companion backup numbers",
            "Hotel front desk",
            "Local SIM card providers",
        ],
        "recovery_plan": (
            "Establish alternative communication channels, update emergency contacts on status, "
            "arrange meeting points if separated from companions"
        ),
    },
]

# threshold is a fraction: share of daily budget spent, share of activities missed, etc.
MONITORING_TRIGGERS: list[dict] = [
    {
        "condition": "Daily spending",
        "threshold": 0.8,
        "action": "Send spending alert and suggest cost-saving measures",
        "notification": "You've spent 80% of your daily budget. Consider reviewing expenses.",
    },
    {
        "condition": "Activity completion rate",
        "threshold": 0.5,
        "action": "Suggest schedule adjustments and backup activities",
        "notification": "Multiple activities have been missed. Would you like alternative suggestions?",
    },
    {
        "condition": "Health status",
        "threshold": 0.7,
        "action": "Recommend rest and medical consultation if needed",
        "notification": "Your health status indicates you may need to slow down the pace.",
    },
    {
        "condition": "Weather impact",
        "threshold": 0.6,
        "action": "Suggest indoor alternatives and schedule changes",
        "notification": "Weather conditions may affect your plans. Indoor alternatives available.",
    },
    {
        "condition": "Transportation status",
        "threshold": 0.8,
        "action": "Monitor transportation and prepare alternatives",
        "notification": "Transportation may be delayed. Backup options are ready.",
    },
]
