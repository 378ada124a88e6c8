"""Admin dashboard services."""
