"""Agentic fitting of user content into layout templates."""

__version__ = "0.1.0"
