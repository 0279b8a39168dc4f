"""Rule-based character, scenario and story arc synthesis."""
