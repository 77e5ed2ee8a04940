"""Merge GitHub pull requests locally in ordered, reversible phases."""

__version__ = "0.1.0"
