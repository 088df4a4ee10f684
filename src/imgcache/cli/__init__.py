"""Command-line interface for the image cache."""
