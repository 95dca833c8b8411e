"""Contingency scenario catalog.

Costs are IDR for a reference-sized trip; the planner scales them to the
actual budget. `likelihood` / `impact` are defaults used when no matching
risk factor was assessed.
"""

TRAVELER = "Traveler"

PRIMARY_SCENARIOS: dict[str, dict] = {
    "transport_failure": {
        "trigger_condition": "Transportation delay > 2 hours or cancellation",
        "likelihood": 0.15,
        "impact": 0.25,
        "response_time": "hours",
        "primary_action": ("reroute", "Switch to alternative transportation mode", 200_000, 60),
        "backup_actions": [
            ("reschedule", "Postpone affected activities to next available time", 0, 0.8),
            ("cancel", "Cancel remaining day activities and rest", 0, 1.0),
        ],
        "resources": {
            "contacts": ["Local transportation hotline", "Ride-sharing apps"],
            "documents": ["Transportation tickets", "Itinerary backup"],
            "tools": ["Mobile data", "Translation app"],
        },
        "communication": (
            ["Travel companion", "Emergency contact"],
            "Transportation issue encountered, implementing backup plan",
            "medium",
        ),
        "recovery_steps": [
            ("Assess current location and available alternatives", TRAVELER, "Immediate"),
            ("Contact alternative transportation provider", TRAVELER, "Within 30 minutes"),
            ("Update itinerary and notify affected parties", TRAVELER, "Within 1 hour"),
            ("Resume journey with alternative transport", TRAVELER, "Within 2 hours"),
        ],
    },
    "health_emergency": {
        "trigger_condition": "Health issue requiring medical attention",
        "likelihood": 0.05,
        "impact": 0.9,
        "response_time": "immediate",
        "primary_action": ("cancel", "Seek immediate medical attention and cancel activities", 500_000, 30),
        "backup_actions": [
            ("rebook", "Reschedule remaining activities for recovery period", 100_000, 0.6),
        ],
        "resources": {
            "contacts": ["Emergency services (112/911)", "Travel insurance", "Embassy/Consulate"],
            "documents": ["Travel insurance policy", "Medical information", "Passport"],
            "tools": ["Emergency app", "Medical translation card"],
        },
        "communication": (
            ["Emergency contact", "Travel insurance", "Family"],
            "Medical emergency - seeking immediate care",
            "critical",
        ),
        "recovery_steps": [
            ("Ensure immediate safety and call emergency services", TRAVELER, "Immediate"),
            ("Contact travel insurance and embassy if needed", "Traveler/Emergency contact", "Within 1 hour"),
            ("Notify all affected parties and update plans", "Emergency contact", "Within 2 hours"),
            ("Arrange medical transport and accommodation changes", "Travel insurance/Medical facility", "Within 4 hours"),
        ],
    },
    "budget_overrun": {
        "trigger_condition": "Daily spending exceeds budget by 20%",
        "likelihood": 0.2,
        "impact": 0.3,
        "response_time": "hours",
        # Negative cost: the action saves money
        "primary_action": ("downgrade", "Switch to budget alternatives for remaining activities", -100_000, 120),
        "backup_actions": [
            ("cancel", "Cancel non-essential activities", -50_000, 0.9),
        ],
        "resources": {
            "contacts": ["Budget accommodation contacts", "Local transport options"],
            "documents": ["Budget breakdown", "Emergency fund access"],
            "tools": ["Expense tracking app", "Local price comparison"],
        },
        "communication": (
            ["Travel companion"],
            "Adjusting plans to stay within budget",
            "low",
        ),
        "recovery_steps": [
            ("Review current spending vs budget", TRAVELER, "Immediate"),
            ("Identify cost-saving alternatives", TRAVELER, "Within 1 hour"),
            ("Implement budget adjustments", TRAVELER, "Within 2 hours"),
            ("Monitor spending for rest of day", TRAVELER, "Ongoing"),
        ],
    },
    "weather_disruption": {
        "trigger_condition": "Severe weather affecting planned activities",
        "likelihood": 0.0,
        "impact": 0.2,
        "response_time": "hours",
        "primary_action": ("reschedule", "Move outdoor activities to indoor alternatives", 50_000, 180),
        "backup_actions": [
            ("reroute", "Change destination to avoid weather-affected areas", 150_000, 0.7),
        ],
        "resources": {
            "contacts": ["Local weather services", "Alternative activity providers"],
            "documents": ["Weather forecast", "Indoor activity options"],
            "tools": ["Weather app", "Local area knowledge"],
        },
        "communication": (
            ["Travel companion"],
            "Weather causing schedule changes",
            "medium",
        ),
        "recovery_steps": [
            ("Monitor weather updates and assess impact", TRAVELER, "Immediate"),
            ("Identify suitable indoor alternatives", TRAVELER, "Within 1 hour"),
            ("Contact alternative activity providers", TRAVELER, "Within 2 hours"),
            ("Update schedule and notify companions", TRAVELER, "Within 3 hours"),
        ],
    },
}

SECONDARY_SCENARIOS: dict[str, dict] = {
    "lost_documents": {
        "trigger_condition": "Loss of passport, tickets, or important documents",
        "likelihood": 0.02,
        "impact": 0.8,
        "response_time": "immediate",
        "primary_action": ("rebook", "Contact embassy/consulate and arrange document replacement", 1_000_000, 480),
        "backup_actions": [
            ("cancel", "Cancel trip and arrange emergency return", 2_000_000, 0.9),
        ],
        "resources": {
            "contacts": ["Local embassy/consulate", "Travel insurance", "Emergency assistance"],
            "documents": ["Digital copies of documents", "Emergency contact list"],
            "tools": ["Document backup app", "Emergency communication"],
        },
        "communication": (
            ["Emergency contact", "Family", "Employer"],
            "Document loss - implementing emergency protocols",
            "critical",
        ),
        "recovery_steps": [
            ("Report loss to local authorities and embassy", TRAVELER, "Immediate"),
            ("Contact travel insurance for assistance", "Traveler/Emergency contact", "Within 1 hour"),
            ("Arrange temporary documents and accommodations", "Embassy/Insurance", "Within 24 hours"),
            ("Continue trip or arrange return as appropriate", TRAVELER, "Within 48 hours"),
        ],
    },
    "accommodation_issues": {
        "trigger_condition": "Hotel overbooking, maintenance issues, or unacceptable conditions",
        "likelihood": 0.08,
        "impact": 0.4,
        "response_time": "hours",
        "primary_action": ("rebook", "Find alternative accommodation immediately", 300_000, 120),
        "backup_actions": [
            ("upgrade", "Move to better accommodation if current is unacceptable", 500_000, 0.6),
        ],
        "resources": {
            "contacts": ["Hotel booking service", "Alternative accommodation providers"],
            "documents": ["Booking confirmation", "Payment details"],
            "tools": ["Hotel booking apps", "Local area maps"],
        },
        "communication": (
            ["Travel companion", "Booking service"],
            "Accommodation issue - relocating to alternative",
            "medium",
        ),
        "recovery_steps": [
            ("Assess accommodation issue and negotiate with hotel", TRAVELER, "Immediate"),
            ("Search for alternative accommodation", TRAVELER, "Within 30 minutes"),
            ("Book alternative and arrange transport", TRAVELER, "Within 1 hour"),
            ("Move to new accommodation and update plans", TRAVELER, "Within 2 hours"),
        ],
    },
}
