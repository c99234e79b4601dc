"""Application layer: command-line entry points."""
