"""Deterministic field coercers (numbers, meal types, titles)."""
