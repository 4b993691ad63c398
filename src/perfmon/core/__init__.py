"""Core domain: models, ports and pure pipeline logic."""
