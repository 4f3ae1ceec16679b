"""Short link rule store."""
