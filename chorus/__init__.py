"""Deterministic daily seeding and fair per-user word sampling for Choice Chorus."""

__version__ = "0.1.0"
