"""Domain models and static medical lookup tables."""
