"""Core settings, logging, errors and resilience primitives."""
