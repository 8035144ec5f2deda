"""Certification level progression enforcement service."""

__version__ = "1.0.0"
