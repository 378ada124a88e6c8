"""Product inventory store."""
