"""Backlogged API - visibility and lifecycle-integrity engine for the game backlog catalog."""

__version__ = "0.1.0"
