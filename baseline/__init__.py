"""Baseline topic radar: cross-source trending signal aggregation and ranking."""

__version__ = "1.0.0"
