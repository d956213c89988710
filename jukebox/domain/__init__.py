"""Domain layer: queue model, fairness ordering and state rules."""
