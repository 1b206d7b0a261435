"""Segmented append-only commit log with retention policies and an acknowledging TCP broker."""

__version__ = "0.1.0"

__all__ = ["__version__"]