"""Core type registries."""
