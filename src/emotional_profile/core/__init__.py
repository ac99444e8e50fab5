"""Core types: enums, input models, emotion registry, configuration."""
