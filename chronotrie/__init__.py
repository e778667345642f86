"""Command-line interface for Chronotrie."""
