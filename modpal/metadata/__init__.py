"""External metadata lookups."""
