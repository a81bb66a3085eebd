"""Tick, tick array, bitmap and position state for a concentrated-liquidity market maker."""

__version__ = "0.1.0"