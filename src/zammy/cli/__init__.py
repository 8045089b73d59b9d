"""Command-line interface for zammy."""
