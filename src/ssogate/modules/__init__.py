"""Domain modules backing identity reconciliation."""
