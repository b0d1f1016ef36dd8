"""Domain services: each owns its transaction boundary."""
