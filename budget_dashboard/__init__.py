"""Spending aggregation for a personal budget dashboard."""

__version__ = "0.1.0"
