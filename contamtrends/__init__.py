"""Contamination trend analysis for Illinois TRI and water-quality data."""

__version__ = "0.1.0"
