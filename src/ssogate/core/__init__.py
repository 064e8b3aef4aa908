"""Core infrastructure: configuration-bound services shared by all modules."""
