"""Crudio: declarative schema to populated, connected test data graphs."""

__version__ = "0.11.0"
