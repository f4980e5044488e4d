"""Adaptive training-plan generation and workout matching."""

__version__ = "0.1.0"
