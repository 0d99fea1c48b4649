"""HTTP API for the CLD engine."""
