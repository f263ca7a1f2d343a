"""Per-source checkout provisioning."""
