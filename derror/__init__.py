"""Describe error types, validate the descriptions and render their display messages."""

__version__ = "1.0.0"