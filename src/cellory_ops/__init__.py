"""Operational resilience tooling for Cellory."""

__version__ = "0.1.0"
