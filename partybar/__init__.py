"""Drink ordering for a single live party: coin codes, orders and the kitchen pipeline."""

__version__ = "1.0.0"
