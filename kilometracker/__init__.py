"""Kilometracker edge tier: session-authenticated proxy to the fleet backend API."""

__version__ = "0.1.0"
