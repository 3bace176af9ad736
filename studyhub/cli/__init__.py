"""Command-line interface for studyhub."""
