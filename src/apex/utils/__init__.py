"""Utility helpers shared across the APEX core."""
