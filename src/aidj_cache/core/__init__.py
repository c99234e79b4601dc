"""Core layer: configuration, logging, exceptions and shared models."""
