"""Budget-as-a-Plan: adherence guarantees, risk sweeps and travel contracts for trip budgets."""
