"""Bulk action executor backends used outside the core (console, tests)."""
