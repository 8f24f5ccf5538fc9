"""Output layer: report lines for stdout, run summaries for humans and machines."""
