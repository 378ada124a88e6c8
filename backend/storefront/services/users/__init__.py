"""User account lookups."""
