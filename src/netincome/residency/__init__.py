"""Residency evidence and the per-year determination state machine."""
