"""Backtracking solver, deterministic propagation and solver errors."""
