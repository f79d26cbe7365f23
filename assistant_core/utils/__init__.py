"""Utilities: logging, clocks and period arithmetic."""
