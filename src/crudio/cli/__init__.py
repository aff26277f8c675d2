"""Command-line interface for Crudio."""
