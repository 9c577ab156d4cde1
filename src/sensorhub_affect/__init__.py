"""Affective-state inference from phone motion sensors."""

__version__ = "0.1.0"
